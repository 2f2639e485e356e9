# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Interface to the external game protocol client."""

from __future__ import annotations

from afkfleet.protocol.base import ConnectOptions, Entity, ProtocolClient, ProtocolSession, Vec3
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
    SessionEvent,
    SpawnEvent,
)
from afkfleet.protocol.loader import load_protocol_client

__all__ = [
    "AuthChallengeEvent",
    "ChatEvent",
    "ConnectOptions",
    "EndEvent",
    "Entity",
    "ErrorEvent",
    "GameEvent",
    "HealthEvent",
    "KickedEvent",
    "LoginEvent",
    "MessageEvent",
    "MoveEvent",
    "ProtocolClient",
    "ProtocolSession",
    "SessionEvent",
    "SpawnEvent",
    "Vec3",
    "load_protocol_client",
]
