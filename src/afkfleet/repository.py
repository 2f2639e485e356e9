# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed access to persisted bot records, global settings and server profiles."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from afkfleet.constants import GLOBAL_SETTINGS_KEY, KIND_BOTS, KIND_SERVERS, KIND_SETTINGS
from afkfleet.errors import PersistenceError, ValidationError
from afkfleet.logging import get_logger
from afkfleet.models import (
    AccountRef,
    BotConfig,
    BotCreate,
    GlobalSettings,
    ServerEndpoint,
    ServerProfile,
    ServerProfileCreate,
)
from afkfleet.store.base import DocumentStore

logger = get_logger(__name__)

# Sub-objects merged field-by-field on update instead of replaced.
_NESTED_FIELDS = ("server", "account")


def merge_config(current: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a partial update into a serialized bot config.

    ``server`` and ``account`` merge per field; everything else replaces.
    The ``id`` key is never changed.
    """
    merged = dict(current)
    for key, value in updates.items():
        if key == "id":
            continue
        if key in _NESTED_FIELDS and isinstance(value, Mapping):
            merged[key] = {**(current.get(key) or {}), **value}
        else:
            merged[key] = value
    return merged


def _validation_message(err: PydanticValidationError) -> str:
    parts = []
    for item in err.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "input"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


class ConfigRepository:
    """Bot configs, settings and server profiles on top of a DocumentStore."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    # ── Bots ──

    def list_bots(self) -> list[BotConfig]:
        """All readable bot configs ordered by id. Unreadable records are skipped."""
        bots: list[BotConfig] = []
        for key in self.store.keys(KIND_BOTS):
            try:
                data = self.store.load(KIND_BOTS, key)
                if data is None:
                    continue
                bots.append(BotConfig.model_validate(data))
            except (PersistenceError, PydanticValidationError) as e:
                logger.warning("bot_config_skipped", key=key, error=str(e))
        return sorted(bots, key=lambda b: b.id)

    def get_bot(self, bot_id: int) -> BotConfig | None:
        data = self.store.load(KIND_BOTS, str(bot_id))
        if data is None:
            return None
        try:
            return BotConfig.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(f"Stored config for bot {bot_id} is invalid: {e}") from e

    def _next_bot_id(self) -> int:
        ids = [int(key) for key in self.store.keys(KIND_BOTS) if key.isdigit()]
        return max(ids, default=0) + 1

    def add_bot(self, data: BotCreate | Mapping[str, Any], owner: str | None = None) -> BotConfig:
        """Validate input, allocate the next id and persist a new bot.

        Raises:
            ValidationError: Missing host, unknown or full server profile
            PersistenceError: Store write failed
        """
        try:
            payload = data if isinstance(data, BotCreate) else BotCreate.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        profile: ServerProfile | None = None
        if payload.server_profile:
            profile = self.get_server(payload.server_profile)
            if profile is None:
                raise ValidationError(f"Server profile not found: {payload.server_profile}")
            self._check_capacity(profile)

        host = (payload.host or "").strip()
        if host:
            server = ServerEndpoint(host=host, port=payload.port, version=payload.version)
        elif profile is not None:
            server = profile.endpoint()
        else:
            raise ValidationError("server.host: a server address is required")

        new_id = self._next_bot_id()
        config = BotConfig(
            id=new_id,
            name=(payload.name or "").strip() or f"Bot {new_id}",
            server=server,
            account=AccountRef(email=payload.email.strip()),
            assigned_to=owner,
            server_profile=profile.id if profile else None,
        )
        self.store.save(KIND_BOTS, str(new_id), config.model_dump(mode="json"))
        logger.info("bot_config_created", bot_id=new_id, host=server.host, port=server.port)
        return config

    def update_bot(self, bot_id: int, updates: Mapping[str, Any]) -> BotConfig | None:
        """Apply a partial update. Returns None if the bot does not exist."""
        current = self.get_bot(bot_id)
        if current is None:
            return None
        merged = merge_config(current.model_dump(mode="json"), updates)
        try:
            updated = BotConfig.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e
        self.store.save(KIND_BOTS, str(bot_id), updated.model_dump(mode="json"))
        return updated

    def delete_bot(self, bot_id: int) -> bool:
        return self.store.delete(KIND_BOTS, str(bot_id))

    def bots_for_owner(self, owner: str) -> list[BotConfig]:
        return [bot for bot in self.list_bots() if bot.assigned_to == owner]

    # ── Global settings ──

    def get_settings(self) -> GlobalSettings:
        data = self.store.load(KIND_SETTINGS, GLOBAL_SETTINGS_KEY)
        if data is None:
            return GlobalSettings()
        try:
            return GlobalSettings.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(f"Stored settings are invalid: {e}") from e

    def update_settings(self, updates: Mapping[str, Any]) -> GlobalSettings:
        merged = {**self.get_settings().model_dump(), **GlobalSettings.canonical_keys(updates)}
        try:
            settings = GlobalSettings.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e
        self.store.save(KIND_SETTINGS, GLOBAL_SETTINGS_KEY, settings.model_dump(mode="json"))
        logger.info("settings_updated", keys=sorted(updates))
        return settings

    # ── Server profiles ──

    def list_servers(self) -> list[ServerProfile]:
        servers: list[ServerProfile] = []
        for key in self.store.keys(KIND_SERVERS):
            try:
                data = self.store.load(KIND_SERVERS, key)
                if data is not None:
                    servers.append(ServerProfile.model_validate(data))
            except (PersistenceError, PydanticValidationError) as e:
                logger.warning("server_profile_skipped", key=key, error=str(e))
        return sorted(servers, key=lambda s: s.name)

    def get_server(self, profile_id: str) -> ServerProfile | None:
        data = self.store.load(KIND_SERVERS, profile_id)
        if data is None:
            return None
        try:
            return ServerProfile.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(f"Stored server profile {profile_id} is invalid: {e}") from e

    def create_server(self, data: ServerProfileCreate | Mapping[str, Any]) -> ServerProfile:
        try:
            payload = data if isinstance(data, ServerProfileCreate) else ServerProfileCreate.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e
        profile = ServerProfile(id=uuid.uuid4().hex[:12], **payload.model_dump())
        self.store.save(KIND_SERVERS, profile.id, profile.model_dump(mode="json"))
        return profile

    def update_server(self, profile_id: str, updates: Mapping[str, Any]) -> ServerProfile | None:
        current = self.get_server(profile_id)
        if current is None:
            return None
        merged = {**current.model_dump(), **{k: v for k, v in updates.items() if k != "id"}}
        try:
            profile = ServerProfile.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e
        self.store.save(KIND_SERVERS, profile_id, profile.model_dump(mode="json"))
        return profile

    def delete_server(self, profile_id: str) -> bool:
        """Delete a profile and unlink every bot that referenced it."""
        if self.get_server(profile_id) is None:
            return False
        for bot in self.list_bots():
            if bot.server_profile == profile_id:
                self.update_bot(bot.id, {"server_profile": None})
        return self.store.delete(KIND_SERVERS, profile_id)

    def count_bots_on_server(self, profile_id: str) -> int:
        return sum(1 for bot in self.list_bots() if bot.server_profile == profile_id)

    def _check_capacity(self, profile: ServerProfile) -> None:
        if profile.max_bots and self.count_bots_on_server(profile.id) >= profile.max_bots:
            raise ValidationError(f"Server profile {profile.name!r} is full ({profile.max_bots} bots)")

    def assign_bot_to_server(
        self,
        bot_id: int,
        profile_id: str | None,
        apply_profile: bool = False,
    ) -> BotConfig | None:
        """Link a bot to a server profile (or unlink with None).

        Returns None if the bot does not exist.

        Raises:
            ValidationError: Unknown profile, or profile at capacity
        """
        bot = self.get_bot(bot_id)
        if bot is None:
            return None
        if not profile_id:
            return self.update_bot(bot_id, {"server_profile": None})

        profile = self.get_server(profile_id)
        if profile is None:
            raise ValidationError(f"Server profile not found: {profile_id}")
        if bot.server_profile != profile.id:
            self._check_capacity(profile)

        updates: dict[str, Any] = {"server_profile": profile.id}
        if apply_profile:
            updates["server"] = profile.endpoint().model_dump()
        return self.update_bot(bot_id, updates)
