# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-process protocol client that simulates a server (deterministic).

Used for local runs of the dashboard and for resilience testing. Sessions log
in after a short delay, spawn at a fixed position and optionally drop after a
configured time so the reconnect path can be exercised without a network.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

from afkfleet.errors import ConnectError
from afkfleet.logging import get_logger
from afkfleet.protocol.base import ConnectOptions, Entity, ProtocolClient, ProtocolSession, Vec3
from afkfleet.protocol.events import (
    AuthChallengeEvent,
    EndEvent,
    HealthEvent,
    LoginEvent,
    MessageEvent,
    MoveEvent,
    SessionEvent,
    SpawnEvent,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)

_SPAWN = Vec3(0.5, 64.0, 0.5)


class LoopbackSession(ProtocolSession):
    def __init__(
        self,
        options: ConnectOptions,
        *,
        login_delay_s: float,
        drop_after_s: float | None,
        auth_challenge: bool,
    ) -> None:
        self._options = options
        self._username = options.username.split("@", 1)[0] or "player"
        self._entity: Entity | None = None
        self._health: float | None = None
        self._food: float | None = None
        self._queue: asyncio.Queue[SessionEvent | None] = asyncio.Queue()
        self._closed = False
        self.controls: dict[str, bool] = {}
        self.looks: list[tuple[float, float]] = []
        self.swings = 0
        self._script_task = asyncio.get_running_loop().create_task(
            self._script(login_delay_s, drop_after_s, auth_challenge)
        )

    @property
    def username(self) -> str:
        return self._username

    @property
    def entity(self) -> Entity | None:
        return self._entity

    @property
    def health(self) -> float | None:
        return self._health

    @property
    def food(self) -> float | None:
        return self._food

    @property
    def dimension(self) -> str | None:
        return "overworld" if self._entity else None

    async def _script(self, login_delay_s: float, drop_after_s: float | None, auth_challenge: bool) -> None:
        if auth_challenge:
            self._queue.put_nowait(AuthChallengeEvent(user_code="LOOP-BACK", verification_uri="https://example.invalid/link"))
        await asyncio.sleep(login_delay_s)
        self._queue.put_nowait(LoginEvent())
        self._entity = Entity(position=_SPAWN)
        self._health = 20.0
        self._food = 20.0
        self._queue.put_nowait(SpawnEvent())
        self._queue.put_nowait(HealthEvent())
        if drop_after_s is not None:
            await asyncio.sleep(drop_after_s)
            self._end("timeout")

    def _end(self, reason: str) -> None:
        if self._closed:
            return
        self._closed = True
        self._entity = None
        self._queue.put_nowait(EndEvent(reason=reason))
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[SessionEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def look(self, yaw: float, pitch: float) -> None:
        self.looks.append((yaw, pitch))

    def set_control(self, control: str, state: bool) -> None:
        self.controls[control] = state
        if self._entity and control == "jump" and state:
            self._queue.put_nowait(MoveEvent())

    def swing_arm(self) -> None:
        self.swings += 1

    def chat(self, message: str) -> None:
        if self._closed:
            return
        self._queue.put_nowait(MessageEvent(text=f"<{self._username}> {message}"))

    def quit(self, reason: str = "disconnect.quitting") -> None:
        if not self._script_task.done():
            self._script_task.cancel()
        with contextlib.suppress(asyncio.QueueFull):
            self._end(reason)


class LoopbackClient(ProtocolClient):
    def __init__(
        self,
        *,
        login_delay_s: float = 0.5,
        drop_after_s: float | None = None,
        auth_challenge: bool = False,
    ) -> None:
        self.login_delay_s = login_delay_s
        self.drop_after_s = drop_after_s
        self.auth_challenge = auth_challenge

    def connect(self, options: ConnectOptions) -> ProtocolSession:
        if not options.host:
            raise ConnectError("No host given")
        logger.debug("loopback_connect", host=options.host, port=options.port, username=options.username)
        return LoopbackSession(
            options,
            login_delay_s=self.login_delay_s,
            drop_after_s=self.drop_after_s,
            auth_challenge=self.auth_challenge,
        )
