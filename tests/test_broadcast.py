# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for the WebSocket status broadcaster."""

from __future__ import annotations

import asyncio
import json

import pytest

from afkfleet.broadcast import EVENT_LOG, NullBroadcaster, WebSocketBroadcaster
from afkfleet.models import AuthChallenge, LogEntry


class FakeWebSocket:
    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.sent: list[dict] = []
        self.fail = fail
        self.delay = delay

    async def send_text(self, text: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionResetError("gone")
        self.sent.append(json.loads(text))


def test_encode_shape() -> None:
    raw = WebSocketBroadcaster.encode("status", 3, {"lifecycle": "online"})

    assert json.loads(raw) == {"event": "status", "bot_id": 3, "data": {"lifecycle": "online"}}


def test_publish_without_loop_is_a_noop() -> None:
    broadcaster = WebSocketBroadcaster()
    ws = FakeWebSocket()
    broadcaster.attach(ws)

    broadcaster.publish_log(1, LogEntry(message="x"))

    assert ws.sent == []


def test_null_broadcaster_accepts_everything() -> None:
    broadcaster = NullBroadcaster()
    broadcaster.publish_log(1, LogEntry(message="x"))
    broadcaster.publish_auth_challenge(1, AuthChallenge(user_code="A", verification_uri="u"))


@pytest.mark.asyncio
async def test_log_event_includes_rendered_text() -> None:
    broadcaster = WebSocketBroadcaster()
    ws = FakeWebSocket()
    broadcaster.attach(ws)

    broadcaster.publish_log(2, LogEntry(message="Bot spawned.", category="info"))
    await asyncio.sleep(0.01)

    assert len(ws.sent) == 1
    message = ws.sent[0]
    assert message["event"] == EVENT_LOG
    assert message["bot_id"] == 2
    assert message["data"]["message"] == "Bot spawned."
    assert message["data"]["text"].endswith("] Bot spawned.")


@pytest.mark.asyncio
async def test_auth_challenge_event() -> None:
    broadcaster = WebSocketBroadcaster()
    ws = FakeWebSocket()
    broadcaster.attach(ws)

    broadcaster.publish_auth_challenge(4, AuthChallenge(user_code="ABCD", verification_uri="https://x/link"))
    await asyncio.sleep(0.01)

    assert ws.sent[0]["event"] == "auth-challenge"
    assert ws.sent[0]["data"]["user_code"] == "ABCD"


@pytest.mark.asyncio
async def test_failing_and_slow_clients_are_dropped() -> None:
    broadcaster = WebSocketBroadcaster(send_timeout_s=0.02)
    good = FakeWebSocket()
    broken = FakeWebSocket(fail=True)
    slow = FakeWebSocket(delay=1.0)
    for ws in (good, broken, slow):
        broadcaster.attach(ws)

    broadcaster.publish_log(1, LogEntry(message="x"))
    await asyncio.sleep(0.1)

    assert len(good.sent) == 1
    assert broadcaster.clients == {good}


@pytest.mark.asyncio
async def test_detach_stops_delivery() -> None:
    broadcaster = WebSocketBroadcaster()
    ws = FakeWebSocket()
    broadcaster.attach(ws)
    broadcaster.detach(ws)

    broadcaster.publish_log(1, LogEntry(message="x"))
    await asyncio.sleep(0.01)

    assert ws.sent == []
