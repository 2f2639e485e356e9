# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed events emitted by a protocol session, in arrival order."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthChallengeEvent:
    """Device-code login: a human must visit ``verification_uri`` and enter ``user_code``."""

    user_code: str
    verification_uri: str
    message: str | None = None


@dataclass(frozen=True)
class LoginEvent:
    pass


@dataclass(frozen=True)
class SpawnEvent:
    pass


@dataclass(frozen=True)
class EndEvent:
    """The session is over (graceful quit or network failure)."""

    reason: str = ""


@dataclass(frozen=True)
class KickedEvent:
    reason: str = ""


@dataclass(frozen=True)
class ErrorEvent:
    message: str


@dataclass(frozen=True)
class MessageEvent:
    """Any server message (system, chat, etc.) rendered as text."""

    text: str


@dataclass(frozen=True)
class ChatEvent:
    username: str
    message: str


@dataclass(frozen=True)
class HealthEvent:
    pass


@dataclass(frozen=True)
class MoveEvent:
    """The session's own entity moved."""

    pass


@dataclass(frozen=True)
class GameEvent:
    """Game state (e.g. dimension) changed."""

    pass


SessionEvent = (
    AuthChallengeEvent
    | LoginEvent
    | SpawnEvent
    | EndEvent
    | KickedEvent
    | ErrorEvent
    | MessageEvent
    | ChatEvent
    | HealthEvent
    | MoveEvent
    | GameEvent
)
