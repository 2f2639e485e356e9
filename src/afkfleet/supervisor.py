# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Lifecycle supervisor for one bot session.

The supervisor folds the protocol session's event stream into a small state
machine::

    offline -> connecting -> (auth_pending) -> online -> reconnecting -> connecting ...
                                                    \\-> offline

All public methods are synchronous and must run on the event loop thread.
Events are consumed by a single pump task per session, so transitions for one
bot happen strictly in arrival order. Events from a session that has been
replaced or stopped are ignored.
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import TYPE_CHECKING, Any

from afkfleet.constants import NO_USERNAME, NO_VALUE
from afkfleet.errors import Kicked, ProtocolError
from afkfleet.idle import IdleLoop
from afkfleet.logging import get_logger
from afkfleet.models import AuthChallenge, Lifecycle, LogCategory, LogEntry, StatusSnapshot
from afkfleet.paths import profiles_dir
from afkfleet.protocol.base import ConnectOptions
from afkfleet.protocol.events import (
    AuthChallengeEvent,
    ChatEvent,
    EndEvent,
    ErrorEvent,
    GameEvent,
    HealthEvent,
    KickedEvent,
    LoginEvent,
    MessageEvent,
    MoveEvent,
    SpawnEvent,
)
from afkfleet.settings import SupervisorTimings
from afkfleet.timers import OneShotTimer, RepeatingTimer

if TYPE_CHECKING:
    import random
    from collections.abc import Callable
    from pathlib import Path

    from afkfleet.broadcast import StatusBroadcaster
    from afkfleet.history import LogHistory
    from afkfleet.models import BotConfig, GlobalSettings
    from afkfleet.protocol.base import ProtocolClient, ProtocolSession
    from afkfleet.protocol.events import SessionEvent

logger = get_logger(__name__)

_LOG_LEVELS = {"error": "error", "warning": "warning"}


def format_uptime(seconds: float) -> str:
    """Format a duration like ``1d 2h 3m``, ``2h 3m 4s``, ``3m 4s`` or ``4s``."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    hours, mins = divmod(minutes, 60)
    days, hrs = divmod(hours, 24)
    if days > 0:
        return f"{days}d {hrs}h {mins}m"
    if hours > 0:
        return f"{hours}h {mins}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class SessionSupervisor:
    """Owns one bot's connection, reconnect policy, AFK loop and console log."""

    def __init__(
        self,
        config: BotConfig,
        *,
        client: ProtocolClient,
        broadcaster: StatusBroadcaster,
        history: LogHistory,
        settings_provider: Callable[[], GlobalSettings],
        timings: SupervisorTimings | None = None,
        data_dir: Path | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.id = config.id
        self.config = config
        self.client = client
        self.broadcaster = broadcaster
        self.history = history
        self.timings = timings or SupervisorTimings()
        self.data_dir = data_dir
        self._settings_provider = settings_provider
        self._clock = clock

        self.lifecycle = Lifecycle.OFFLINE
        self.session: ProtocolSession | None = None
        self.started_at: float | None = None
        self.should_auto_reconnect = False
        self.auth_challenge: AuthChallenge | None = None

        self._pump_task: asyncio.Task[None] | None = None
        self._reconnect = OneShotTimer(f"bot{self.id}.reconnect")
        self._restart = OneShotTimer(f"bot{self.id}.restart")
        self._heartbeat = RepeatingTimer(f"bot{self.id}.uptime")
        self.idle = IdleLoop(
            lambda: self.session,
            on_change=self.emit_status,
            interval_s=self.timings.idle_interval_s,
            jump_probability=self.timings.idle_jump_probability,
            jump_pulse_s=self.timings.idle_jump_pulse_s,
            rng=rng,
            name=f"bot{self.id}.idle",
        )
        self._log = logger.bind(bot_id=self.id)

        self._handlers: dict[type, Callable[[ProtocolSession, Any], None]] = {
            AuthChallengeEvent: self._on_auth_challenge,
            LoginEvent: self._on_login,
            SpawnEvent: self._on_spawn,
            EndEvent: self._on_end,
            KickedEvent: self._on_kicked,
            ErrorEvent: self._on_error,
            MessageEvent: self._on_message,
            ChatEvent: self._on_chat,
            HealthEvent: self._on_telemetry,
            MoveEvent: self._on_telemetry,
            GameEvent: self._on_telemetry,
        }

    # ── Introspection ──

    @property
    def idle_active(self) -> bool:
        return self.idle.active

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect.pending

    @property
    def restart_pending(self) -> bool:
        return self._restart.pending

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat.running

    def get_status(self) -> StatusSnapshot:
        """Project current state for observers. Never mutates anything."""
        session = self.session
        entity = session.entity if session is not None else None

        health: float | str = NO_VALUE
        food: float | str = NO_VALUE
        position = NO_VALUE
        dimension = NO_VALUE
        if session is not None and entity is not None:
            health = session.health if session.health is not None else 20
            food = session.food if session.food is not None else 20
            pos = entity.position
            position = f"{_round_half_up(pos.x)}, {_round_half_up(pos.y)}, {_round_half_up(pos.z)}"
            dimension = session.dimension or "overworld"

        uptime = "0s"
        if session is not None and self.started_at is not None:
            uptime = format_uptime(self._clock() - self.started_at)

        return StatusSnapshot(
            id=self.id,
            name=self.config.name,
            lifecycle=self.lifecycle,
            online=self.lifecycle is Lifecycle.ONLINE and entity is not None,
            username=session.username if session is not None else NO_USERNAME,
            server=self.config.server,
            is_running=session is not None,
            uptime=uptime,
            idle_active=self.idle.active,
            auth_challenge=self.auth_challenge,
            health=health,
            food=food,
            position=position,
            dimension=dimension,
        )

    # ── Observability ──

    def log(self, message: str, category: LogCategory = "info") -> LogEntry:
        """Append to console history and broadcast the line."""
        entry = self.history.append(message, category)
        level = _LOG_LEVELS.get(category, "info")
        getattr(self._log, level)("bot_log", message=message, category=category)
        try:
            self.broadcaster.publish_log(self.id, entry)
        except Exception as e:
            self._log.warning("publish_log_failed", error=str(e))
        return entry

    def emit_status(self) -> None:
        try:
            self.broadcaster.publish_status(self.id, self.get_status())
        except Exception as e:
            self._log.warning("publish_status_failed", error=str(e))

    def _set_lifecycle(self, lifecycle: Lifecycle) -> None:
        if lifecycle is not self.lifecycle:
            self._log.info("lifecycle_changed", old=str(self.lifecycle), new=str(lifecycle))
        self.lifecycle = lifecycle
        self.emit_status()

    # ── Control ──

    def update_config(self, config: BotConfig) -> None:
        """Swap in a new config. Takes effect on the next connect."""
        self.config = config
        self.emit_status()

    def start(self) -> bool:
        """Open a session. Returns True if a connect call was issued."""
        if self.session is not None:
            self.log("Bot is already running.", "warning")
            return False

        self.should_auto_reconnect = True
        self._reconnect.cancel()
        self._restart.cancel()

        if not self.config.account.email:
            self.should_auto_reconnect = False
            self.log("No account email set; cannot connect.", "error")
            self._set_lifecycle(Lifecycle.OFFLINE)
            return False

        options = self._connect_options()
        self.log(f"Connecting to {options.host}:{options.port} as {options.username}...")
        try:
            session = self.client.connect(options)
        except Exception as e:
            self.should_auto_reconnect = False
            self.log(f"Failed to connect: {e}", "error")
            self._set_lifecycle(Lifecycle.OFFLINE)
            return False

        self.session = session
        self.auth_challenge = None
        self._pump_task = asyncio.get_running_loop().create_task(self._pump(session))
        self._set_lifecycle(Lifecycle.CONNECTING)
        return True

    def stop(self) -> None:
        """Disconnect and cancel everything. State is cleared before returning."""
        session = self.session
        busy = session is not None or self._reconnect.pending or self._restart.pending
        if busy:
            self.log("Stopping bot...")

        self.should_auto_reconnect = False
        self._reconnect.cancel()
        self._restart.cancel()
        self._stop_idle()

        self.session = None
        pump, self._pump_task = self._pump_task, None
        if pump is not None and not pump.done() and pump is not asyncio.current_task():
            pump.cancel()
        if session is not None:
            try:
                session.quit()
            except Exception as e:
                self._log.debug("session_quit_failed", error=str(e))

        self.started_at = None
        self._heartbeat.cancel()
        self.auth_challenge = None
        self._set_lifecycle(Lifecycle.OFFLINE)
        if busy:
            self.log("Bot stopped.")

    def restart(self) -> None:
        self.stop()
        self._restart.schedule(self.timings.restart_delay_s, self.start)

    def teardown(self) -> None:
        """Stop for good and drop the console history (bot deletion)."""
        self.stop()
        self.history.clear()

    def start_idle(self) -> bool:
        if not self.idle.start():
            self.log("Cannot start AFK mode: bot is not in the world.", "warning")
            return False
        self.log("Starting AFK mode...")
        return True

    def stop_idle(self) -> bool:
        return self._stop_idle()

    def _stop_idle(self) -> bool:
        if self.idle.stop():
            self.log("AFK mode stopped.")
            return True
        return False

    def chat(self, message: str) -> bool:
        session = self.session
        if session is None:
            return False
        try:
            session.chat(message)
        except Exception as e:
            self.log(f"Failed to send chat: {e}", "error")
            return False
        self.log(f"> {message}", "output")
        return True

    # ── Event pump ──

    def _connect_options(self) -> ConnectOptions:
        server = self.config.server
        account = self.config.account
        return ConnectOptions(
            host=server.host,
            port=server.port,
            version=server.protocol_version,
            username=account.email,
            auth=account.auth,
            profiles_folder=str(profiles_dir(self.data_dir, self.id)) if self.data_dir else None,
        )

    async def _pump(self, session: ProtocolSession) -> None:
        try:
            async for event in session.events():
                if session is not self.session:
                    return
                self._dispatch(session, event)
        except asyncio.CancelledError:
            raise
        except Kicked as e:
            if session is self.session:
                self.log(f"Bot kicked: {e}", "error")
        except ProtocolError as e:
            if session is self.session:
                self.log(f"Bot error: {e}", "error")
        except Exception as e:
            # ConnectError and transport failures; the end below arms the reconnect
            if session is self.session:
                self.log(f"Connection error: {e}", "error")
        if session is self.session:
            self._on_end(session, EndEvent(reason="connection closed"))

    def _dispatch(self, session: ProtocolSession, event: SessionEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            self._log.debug("event_ignored", event=type(event).__name__)
            return
        try:
            handler(session, event)
        except Exception as e:
            self._log.exception("event_handler_failed", event=type(event).__name__)
            self.log(f"Internal error handling {type(event).__name__}: {e}", "error")

    def _on_auth_challenge(self, session: ProtocolSession, event: AuthChallengeEvent) -> None:
        challenge = AuthChallenge(
            user_code=event.user_code,
            verification_uri=event.verification_uri,
            message=event.message,
        )
        self.auth_challenge = challenge
        self.log(f"Auth code: {challenge.user_code}", "action")
        self.log(f"Please visit {challenge.verification_uri}", "action")
        if self.lifecycle is Lifecycle.CONNECTING:
            self._set_lifecycle(Lifecycle.AUTH_PENDING)
        else:
            self.emit_status()
        try:
            self.broadcaster.publish_auth_challenge(self.id, challenge)
        except Exception as e:
            self._log.warning("publish_auth_challenge_failed", error=str(e))

    def _on_login(self, session: ProtocolSession, event: LoginEvent) -> None:
        self.log(f"Logged in as {session.username}")
        self.started_at = self._clock()
        self.auth_challenge = None
        self._set_lifecycle(Lifecycle.ONLINE)
        self._heartbeat.start(self.timings.uptime_log_interval_s, self._log_uptime)

    def _log_uptime(self) -> None:
        if self.lifecycle is Lifecycle.ONLINE and self.started_at is not None:
            self.log(f"Uptime: {format_uptime(self._clock() - self.started_at)}")

    def _on_spawn(self, session: ProtocolSession, event: SpawnEvent) -> None:
        self.log("Bot spawned.")
        self.emit_status()

    def _on_end(self, session: ProtocolSession, event: EndEvent) -> None:
        self.log(f"Bot disconnected: {event.reason or 'unknown reason'}", "warning")
        self._stop_idle()
        self.session = None
        self._pump_task = None
        self.started_at = None
        self._heartbeat.cancel()
        self.auth_challenge = None

        if self.should_auto_reconnect and self._auto_reconnect_enabled():
            delay = self.timings.reconnect_delay_s
            self.log(f"Auto-reconnecting in {delay:g} seconds...")
            self._reconnect.schedule(delay, self.start)
            self._set_lifecycle(Lifecycle.RECONNECTING)
        else:
            self._set_lifecycle(Lifecycle.OFFLINE)

    def _auto_reconnect_enabled(self) -> bool:
        try:
            return self._settings_provider().auto_reconnect
        except Exception as e:
            self.log(f"Could not read settings, not reconnecting: {e}", "error")
            return False

    def _on_kicked(self, session: ProtocolSession, event: KickedEvent) -> None:
        self.log(f"Bot kicked: {event.reason}", "error")

    def _on_error(self, session: ProtocolSession, event: ErrorEvent) -> None:
        self.log(f"Bot error: {event.message}", "error")

    def _on_message(self, session: ProtocolSession, event: MessageEvent) -> None:
        self.log(f"[MSG] {event.text}", "chat")

    def _on_chat(self, session: ProtocolSession, event: ChatEvent) -> None:
        self.log(f"[{event.username}] {event.message}", "chat")

    def _on_telemetry(self, session: ProtocolSession, event: SessionEvent) -> None:
        self.emit_status()
