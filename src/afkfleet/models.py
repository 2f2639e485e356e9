# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Data models shared by the registry, supervisors and API layers."""

from __future__ import annotations

import time
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from afkfleet.constants import (
    AUTO_VERSION,
    DEFAULT_AUTH_MODE,
    DEFAULT_GAME_PORT,
    DEFAULT_GAME_VERSION,
    NO_USERNAME,
    NO_VALUE,
)

LogCategory = Literal["info", "warning", "error", "action", "chat", "output"]


class Lifecycle(StrEnum):
    """Supervisor lifecycle states."""

    OFFLINE = "offline"
    CONNECTING = "connecting"
    AUTH_PENDING = "auth_pending"
    ONLINE = "online"
    RECONNECTING = "reconnecting"


class ServerEndpoint(BaseModel):
    """Target game server."""

    host: str = "localhost"
    port: int = DEFAULT_GAME_PORT
    version: str = DEFAULT_GAME_VERSION

    @property
    def protocol_version(self) -> str | None:
        """Version to request, or None to let the client negotiate."""
        if not self.version or self.version == AUTO_VERSION:
            return None
        return self.version


class AccountRef(BaseModel):
    """Credential reference for a bot."""

    email: str = ""
    auth: str = DEFAULT_AUTH_MODE
    verified: bool = False


class BotConfig(BaseModel):
    """Persisted configuration of one supervised session."""

    id: int
    name: str
    server: ServerEndpoint = Field(default_factory=ServerEndpoint)
    account: AccountRef = Field(default_factory=AccountRef)
    assigned_to: str | None = None
    server_profile: str | None = None
    created: float = Field(default_factory=time.time)


class BotCreate(BaseModel):
    """Input for creating a bot. ``host`` may come from ``server_profile``."""

    name: str | None = None
    host: str | None = None
    port: int = DEFAULT_GAME_PORT
    version: str = DEFAULT_GAME_VERSION
    email: str = ""
    server_profile: str | None = None

    model_config = ConfigDict(extra="ignore")


class GlobalSettings(BaseModel):
    """Fleet-wide settings. Unknown keys are kept as-is.

    ``autoReconnect`` is accepted as an alias of ``auto_reconnect``.
    """

    auto_reconnect: bool = Field(
        default=True,
        validation_alias=AliasChoices("auto_reconnect", "autoReconnect"),
    )

    model_config = ConfigDict(extra="allow")

    @classmethod
    def canonical_keys(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        """Rename aliased keys to their field names."""
        names: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            if isinstance(field.validation_alias, AliasChoices):
                for choice in field.validation_alias.choices:
                    if isinstance(choice, str):
                        names[choice] = name
        return {names.get(key, key): value for key, value in data.items()}


class ServerProfile(BaseModel):
    """Reusable server endpoint with an optional bot capacity."""

    id: str
    name: str
    host: str
    port: int = DEFAULT_GAME_PORT
    version: str = DEFAULT_GAME_VERSION
    max_bots: int = Field(default=0, ge=0)  # 0 = unlimited
    region: str = ""
    whitelist: bool = False
    notes: str = ""

    def endpoint(self) -> ServerEndpoint:
        return ServerEndpoint(host=self.host, port=self.port, version=self.version)


class ServerProfileCreate(BaseModel):
    name: str = Field(min_length=1)
    host: str = Field(min_length=1)
    port: int = DEFAULT_GAME_PORT
    version: str = DEFAULT_GAME_VERSION
    max_bots: int = Field(default=0, ge=0)
    region: str = ""
    whitelist: bool = False
    notes: str = ""


class LogEntry(BaseModel):
    """One line of a bot's console history."""

    timestamp: float = Field(default_factory=time.time)
    message: str
    category: LogCategory = "info"

    def render(self) -> str:
        """Format as ``[HH:MM:SS] message`` in local time."""
        return f"[{time.strftime('%H:%M:%S', time.localtime(self.timestamp))}] {self.message}"


class AuthChallenge(BaseModel):
    """Device-code style login prompt surfaced to a human."""

    user_code: str
    verification_uri: str
    message: str | None = None


class StatusSnapshot(BaseModel):
    """Read-only projection of a supervisor for observers."""

    id: int
    name: str
    lifecycle: Lifecycle
    online: bool
    username: str = NO_USERNAME
    server: ServerEndpoint
    is_running: bool
    uptime: str = "0s"
    idle_active: bool = False
    auth_challenge: AuthChallenge | None = None
    health: float | str = NO_VALUE
    food: float | str = NO_VALUE
    position: str = NO_VALUE
    dimension: str = NO_VALUE


class ControlResult(BaseModel):
    """Outcome of a control verb routed through the registry."""

    success: bool
    message: str | None = None

    @classmethod
    def ok(cls, message: str | None = None) -> ControlResult:
        return cls(success=True, message=message)

    @classmethod
    def not_found(cls, bot_id: int) -> ControlResult:
        return cls(success=False, message=f"Bot {bot_id} not found")
