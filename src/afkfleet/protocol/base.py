# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Abstract base classes for the game protocol client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from afkfleet.protocol.events import SessionEvent


@dataclass(frozen=True)
class Vec3:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Entity:
    position: Vec3


class ConnectOptions(BaseModel):
    """Everything the protocol client needs to open one session."""

    host: str
    port: int
    version: str | None = None  # None = negotiate
    username: str
    auth: str = "microsoft"
    profiles_folder: str | None = None


class ProtocolSession(ABC):
    """One live connection. Actions are fire-and-forget."""

    @property
    @abstractmethod
    def username(self) -> str:
        """Logged-in username (may be the account id before login)."""

    @property
    @abstractmethod
    def entity(self) -> Entity | None:
        """The player's world entity, None until spawned."""

    @property
    @abstractmethod
    def health(self) -> float | None: ...

    @property
    @abstractmethod
    def food(self) -> float | None: ...

    @property
    @abstractmethod
    def dimension(self) -> str | None: ...

    @abstractmethod
    def events(self) -> AsyncIterator[SessionEvent]:
        """Iterate session events until the connection ends.

        A well-behaved session yields an EndEvent last.
        """

    @abstractmethod
    def look(self, yaw: float, pitch: float) -> None: ...

    @abstractmethod
    def set_control(self, control: str, state: bool) -> None: ...

    @abstractmethod
    def swing_arm(self) -> None: ...

    @abstractmethod
    def chat(self, message: str) -> None: ...

    @abstractmethod
    def quit(self, reason: str = "disconnect.quitting") -> None:
        """Request a graceful disconnect. Should be idempotent."""

    def has_entity(self) -> bool:
        return self.entity is not None


class ProtocolClient(ABC):
    @abstractmethod
    def connect(self, options: ConnectOptions) -> ProtocolSession:
        """Open a session. Must not block; login progress arrives as events.

        Raises:
            ConnectError: If the connection cannot be initiated
        """
