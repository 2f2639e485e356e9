# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from afkfleet.broadcast import StatusBroadcaster
from afkfleet.errors import ConnectError
from afkfleet.fleet import FleetRegistry
from afkfleet.history import LogHistory
from afkfleet.models import AccountRef, BotConfig, ServerEndpoint
from afkfleet.protocol.base import ConnectOptions, Entity, ProtocolClient, ProtocolSession, Vec3
from afkfleet.protocol.events import EndEvent, LoginEvent, SessionEvent, SpawnEvent
from afkfleet.repository import ConfigRepository
from afkfleet.settings import SupervisorTimings
from afkfleet.store.memory import MemoryStore
from afkfleet.supervisor import SessionSupervisor

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from afkfleet.models import AuthChallenge, LogEntry, StatusSnapshot


class FakeSession(ProtocolSession):
    """Session driven by the test: events are pushed explicitly."""

    def __init__(self, options: ConnectOptions) -> None:
        self.options = options
        self._username = options.username
        self._entity: Entity | None = None
        self._health: float | None = None
        self._food: float | None = None
        self._queue: asyncio.Queue[SessionEvent | Exception | None] = asyncio.Queue()
        self.quit_calls = 0
        self.looks: list[tuple[float, float]] = []
        self.controls: list[tuple[str, bool]] = []
        self.swings = 0
        self.chats: list[str] = []

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
        return None

    def push(self, event: SessionEvent) -> None:
        self._queue.put_nowait(event)

    def fail(self, exc: Exception) -> None:
        """Make the event stream raise ``exc``."""
        self._queue.put_nowait(exc)

    def close_stream(self) -> None:
        self._queue.put_nowait(None)

    def spawn(self, x: float = 10.4, y: float = 64.5, z: float = -3.6) -> None:
        self._entity = Entity(position=Vec3(x, y, z))
        self._health = 18.0
        self._food = 17.0

    def login_and_spawn(self) -> None:
        self.push(LoginEvent())
        self.spawn()
        self.push(SpawnEvent())

    def drop(self, reason: str = "timeout") -> None:
        self._entity = None
        self.push(EndEvent(reason=reason))
        self.close_stream()

    async def events(self) -> AsyncIterator[SessionEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            if isinstance(event, Exception):
                raise event
            yield event

    def look(self, yaw: float, pitch: float) -> None:
        self.looks.append((yaw, pitch))

    def set_control(self, control: str, state: bool) -> None:
        self.controls.append((control, state))

    def swing_arm(self) -> None:
        self.swings += 1

    def chat(self, message: str) -> None:
        self.chats.append(message)

    def quit(self, reason: str = "disconnect.quitting") -> None:
        self.quit_calls += 1
        self.close_stream()


class FakeClient(ProtocolClient):
    """Records connect calls and hands out FakeSessions."""

    def __init__(self) -> None:
        self.sessions: list[FakeSession] = []
        self.fail_with: Exception | None = None

    @property
    def connect_count(self) -> int:
        return len(self.sessions)

    @property
    def last(self) -> FakeSession:
        return self.sessions[-1]

    def connect(self, options: ConnectOptions) -> ProtocolSession:
        if self.fail_with is not None:
            raise self.fail_with
        session = FakeSession(options)
        self.sessions.append(session)
        return session


class RecordingBroadcaster(StatusBroadcaster):
    def __init__(self) -> None:
        self.statuses: list[tuple[int, StatusSnapshot]] = []
        self.logs: list[tuple[int, LogEntry]] = []
        self.challenges: list[tuple[int, AuthChallenge]] = []

    def publish_status(self, bot_id: int, snapshot: StatusSnapshot) -> None:
        self.statuses.append((bot_id, snapshot))

    def publish_log(self, bot_id: int, entry: LogEntry) -> None:
        self.logs.append((bot_id, entry))

    def publish_auth_challenge(self, bot_id: int, challenge: AuthChallenge) -> None:
        self.challenges.append((bot_id, challenge))

    def messages(self, bot_id: int) -> list[str]:
        return [entry.message for bid, entry in self.logs if bid == bot_id]


async def _settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Awaitable that lets pump tasks drain queued events."""
    return _settle


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repository(store: MemoryStore) -> ConfigRepository:
    return ConfigRepository(store)


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def fast_timings() -> SupervisorTimings:
    """Timings short enough to let real timers fire inside a test."""
    return SupervisorTimings(
        reconnect_delay_s=0.05,
        restart_delay_s=0.05,
        uptime_log_interval_s=0.05,
        idle_interval_s=0.02,
        idle_jump_probability=1.0,
        idle_jump_pulse_s=0.01,
    )


@pytest.fixture
def bot_config() -> BotConfig:
    return BotConfig(
        id=1,
        name="Alpha",
        server=ServerEndpoint(host="play.example.net", port=25565, version="1.20.4"),
        account=AccountRef(email="alpha@example.com"),
    )


@pytest.fixture
def make_supervisor(store, repository, client, broadcaster, fast_timings):
    """Build a SessionSupervisor against the shared fakes."""

    def _make(config: BotConfig, **kwargs) -> SessionSupervisor:
        history = LogHistory(config.id, store)
        kwargs.setdefault("timings", fast_timings)
        return SessionSupervisor(
            config,
            client=client,
            broadcaster=broadcaster,
            history=history,
            settings_provider=repository.get_settings,
            **kwargs,
        )

    return _make


@pytest.fixture
def fleet(repository, client, broadcaster, fast_timings) -> FleetRegistry:
    return FleetRegistry(repository, client, broadcaster, timings=fast_timings)


@pytest.fixture
def failing_client(client: FakeClient) -> FakeClient:
    client.fail_with = ConnectError("connection refused")
    return client
