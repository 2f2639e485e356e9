# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Fleet registry: the single entry point for bot lifecycle operations.

Owns the id -> SessionSupervisor map. Every mutation is synchronous (no await
points), so on a single event loop no lock is needed around the map.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from afkfleet.constants import DEFAULT_HISTORY_CAPACITY, DEFAULT_HISTORY_READ
from afkfleet.errors import PersistenceError
from afkfleet.history import LogHistory
from afkfleet.logging import get_logger
from afkfleet.models import ControlResult
from afkfleet.supervisor import SessionSupervisor

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from afkfleet.broadcast import StatusBroadcaster
    from afkfleet.models import BotConfig, BotCreate, LogEntry, StatusSnapshot
    from afkfleet.protocol.base import ProtocolClient
    from afkfleet.repository import ConfigRepository
    from afkfleet.settings import SupervisorTimings

logger = get_logger(__name__)


class FleetRegistry:
    """Manages the SessionSupervisor of every configured bot."""

    def __init__(
        self,
        repository: ConfigRepository,
        client: ProtocolClient,
        broadcaster: StatusBroadcaster,
        *,
        timings: SupervisorTimings | None = None,
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
        data_dir: Path | None = None,
    ) -> None:
        self.repository = repository
        self.client = client
        self.broadcaster = broadcaster
        self.timings = timings
        self.history_capacity = history_capacity
        self.data_dir = data_dir
        self._supervisors: dict[int, SessionSupervisor] = {}

    def __len__(self) -> int:
        return len(self._supervisors)

    def __contains__(self, bot_id: object) -> bool:
        return bot_id in self._supervisors

    def get(self, bot_id: int) -> SessionSupervisor | None:
        return self._supervisors.get(bot_id)

    def _build(self, config: BotConfig) -> SessionSupervisor:
        history = LogHistory(config.id, self.repository.store, capacity=self.history_capacity)
        history.load()
        return SessionSupervisor(
            config,
            client=self.client,
            broadcaster=self.broadcaster,
            history=history,
            settings_provider=self.repository.get_settings,
            timings=self.timings,
            data_dir=self.data_dir,
        )

    # ── Registry lifecycle ──

    def initialize(self, configs: Iterable[BotConfig] | None = None) -> int:
        """Register a supervisor for every config not already present.

        Args:
            configs: Bot configs to load (defaults to every persisted bot)

        Returns:
            Number of supervisors added
        """
        if configs is None:
            configs = self.repository.list_bots()
        added = 0
        for config in configs:
            if config.id in self._supervisors:
                continue
            self._supervisors[config.id] = self._build(config)
            added += 1
        logger.info("fleet_initialized", added=added, total=len(self._supervisors))
        return added

    def create(self, data: BotCreate | Mapping[str, Any], owner: str | None = None) -> BotConfig:
        """Persist a new bot and register its supervisor.

        Raises:
            ValidationError: Required fields missing or invalid
            PersistenceError: Store write failed (nothing is registered)
        """
        config = self.repository.add_bot(data, owner=owner)
        supervisor = self._build(config)
        self._supervisors[config.id] = supervisor
        supervisor.emit_status()
        logger.info("bot_created", bot_id=config.id, name=config.name)
        return config

    def delete(self, bot_id: int) -> bool:
        """Stop, forget and un-persist a bot. Returns False if unknown."""
        if bot_id not in self._supervisors:
            return False
        # Un-persist first so a failed delete leaves the bot fully registered.
        try:
            self.repository.delete_bot(bot_id)
        except PersistenceError as e:
            logger.error("bot_delete_persist_failed", bot_id=bot_id, error=str(e))
            raise
        self._supervisors.pop(bot_id).teardown()
        logger.info("bot_deleted", bot_id=bot_id)
        return True

    def update_config(self, bot_id: int, updates: Mapping[str, Any]) -> BotConfig | None:
        """Merge ``updates`` into the stored config and hand it to the live supervisor.

        Nested ``server``/``account`` objects merge per field. A running session
        is not reconnected; the change applies on the next connect.
        """
        updated = self.repository.update_bot(bot_id, updates)
        if updated is not None:
            self._push_config(updated)
        return updated

    def _push_config(self, config: BotConfig) -> None:
        supervisor = self._supervisors.get(config.id)
        if supervisor is not None:
            supervisor.update_config(config)

    def assign_server_profile(
        self,
        bot_id: int,
        profile_id: str | None,
        apply_profile: bool = False,
    ) -> BotConfig | None:
        updated = self.repository.assign_bot_to_server(bot_id, profile_id, apply_profile=apply_profile)
        if updated is not None:
            self._push_config(updated)
        return updated

    def delete_server_profile(self, profile_id: str) -> bool:
        """Delete a server profile and refresh the bots that referenced it."""
        affected = [s.id for s in self._supervisors.values() if s.config.server_profile == profile_id]
        if not self.repository.delete_server(profile_id):
            return False
        for bot_id in affected:
            config = self.repository.get_bot(bot_id)
            if config is not None:
                self._push_config(config)
        return True

    def assign_owner(self, bot_id: int, owner: str | None) -> BotConfig | None:
        return self.update_config(bot_id, {"assigned_to": owner})

    def unassign_owner(self, bot_id: int) -> BotConfig | None:
        return self.assign_owner(bot_id, None)

    def shutdown(self) -> None:
        """Stop every supervisor (process exit)."""
        for supervisor in list(self._supervisors.values()):
            supervisor.stop()
        logger.info("fleet_shutdown", total=len(self._supervisors))

    # ── Control verbs ──

    def start(self, bot_id: int) -> ControlResult:
        supervisor = self.get(bot_id)
        if supervisor is None:
            return ControlResult.not_found(bot_id)
        if supervisor.start():
            return ControlResult.ok("Bot starting...")
        if supervisor.session is not None:
            return ControlResult(success=False, message="Bot is already running.")
        return ControlResult(success=False, message="Bot could not start; see the console log.")

    def stop(self, bot_id: int) -> ControlResult:
        supervisor = self.get(bot_id)
        if supervisor is None:
            return ControlResult.not_found(bot_id)
        supervisor.stop()
        return ControlResult.ok("Bot stopping...")

    def restart(self, bot_id: int) -> ControlResult:
        supervisor = self.get(bot_id)
        if supervisor is None:
            return ControlResult.not_found(bot_id)
        supervisor.restart()
        return ControlResult.ok("Bot restarting...")

    def start_idle(self, bot_id: int) -> ControlResult:
        supervisor = self.get(bot_id)
        if supervisor is None:
            return ControlResult.not_found(bot_id)
        if supervisor.start_idle():
            return ControlResult.ok("AFK mode started.")
        return ControlResult(success=False, message="Bot is not in the world.")

    def stop_idle(self, bot_id: int) -> ControlResult:
        supervisor = self.get(bot_id)
        if supervisor is None:
            return ControlResult.not_found(bot_id)
        if supervisor.stop_idle():
            return ControlResult.ok("AFK mode stopped.")
        return ControlResult.ok("AFK mode was not running.")

    def set_idle(self, bot_id: int, enabled: bool) -> ControlResult:
        return self.start_idle(bot_id) if enabled else self.stop_idle(bot_id)

    def chat(self, bot_id: int, message: str) -> ControlResult:
        supervisor = self.get(bot_id)
        if supervisor is None:
            return ControlResult.not_found(bot_id)
        if not message.strip():
            return ControlResult(success=False, message="Message is empty.")
        if supervisor.chat(message):
            return ControlResult.ok()
        return ControlResult(success=False, message="Bot is not connected.")

    # ── Queries ──

    def get_status(self, bot_id: int) -> StatusSnapshot | None:
        supervisor = self.get(bot_id)
        return supervisor.get_status() if supervisor else None

    def get_all_statuses(self, owner: str | None = None) -> list[StatusSnapshot]:
        """One snapshot per bot, ordered by id; optionally only ``owner``'s bots."""
        return [
            self._supervisors[bot_id].get_status()
            for bot_id in sorted(self._supervisors)
            if owner is None or self._supervisors[bot_id].config.assigned_to == owner
        ]

    def get_log_history(self, bot_id: int, count: int = DEFAULT_HISTORY_READ) -> list[LogEntry]:
        supervisor = self.get(bot_id)
        return supervisor.history.read(count) if supervisor else []

    def clear_history(self, bot_id: int) -> bool:
        supervisor = self.get(bot_id)
        if supervisor is None:
            return False
        supervisor.history.clear()
        return True
