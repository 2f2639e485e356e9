# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Outward publish point for status, log and auth-challenge events."""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from afkfleet.constants import BROADCAST_SEND_TIMEOUT_S
from afkfleet.logging import get_logger

if TYPE_CHECKING:
    from fastapi import WebSocket

    from afkfleet.models import AuthChallenge, LogEntry, StatusSnapshot

logger = get_logger(__name__)

EVENT_STATUS = "status"
EVENT_LOG = "log"
EVENT_AUTH_CHALLENGE = "auth-challenge"


class StatusBroadcaster(ABC):
    """Publishing must never block or raise into the caller."""

    @abstractmethod
    def publish_status(self, bot_id: int, snapshot: StatusSnapshot) -> None: ...

    @abstractmethod
    def publish_log(self, bot_id: int, entry: LogEntry) -> None: ...

    @abstractmethod
    def publish_auth_challenge(self, bot_id: int, challenge: AuthChallenge) -> None: ...


class NullBroadcaster(StatusBroadcaster):
    def publish_status(self, bot_id: int, snapshot: StatusSnapshot) -> None:
        pass

    def publish_log(self, bot_id: int, entry: LogEntry) -> None:
        pass

    def publish_auth_challenge(self, bot_id: int, challenge: AuthChallenge) -> None:
        pass


class WebSocketBroadcaster(StatusBroadcaster):
    """Fan out JSON events to attached WebSocket clients.

    Messages look like ``{"event": "status", "bot_id": 1, "data": {...}}``.
    Sends run as background tasks; a client that errors or exceeds
    ``send_timeout_s`` is dropped.
    """

    def __init__(self, send_timeout_s: float = BROADCAST_SEND_TIMEOUT_S) -> None:
        self.send_timeout_s = send_timeout_s
        self.clients: set[WebSocket] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    def attach(self, websocket: WebSocket) -> None:
        self.clients.add(websocket)

    def detach(self, websocket: WebSocket) -> None:
        self.clients.discard(websocket)

    def publish_status(self, bot_id: int, snapshot: StatusSnapshot) -> None:
        self._emit(EVENT_STATUS, bot_id, snapshot.model_dump(mode="json"))

    def publish_log(self, bot_id: int, entry: LogEntry) -> None:
        payload = entry.model_dump(mode="json")
        payload["text"] = entry.render()
        self._emit(EVENT_LOG, bot_id, payload)

    def publish_auth_challenge(self, bot_id: int, challenge: AuthChallenge) -> None:
        self._emit(EVENT_AUTH_CHALLENGE, bot_id, challenge.model_dump(mode="json"))

    @staticmethod
    def encode(event: str, bot_id: int, payload: dict[str, Any]) -> str:
        return json.dumps({"event": event, "bot_id": bot_id, "data": payload})

    def _emit(self, event: str, bot_id: int, payload: dict[str, Any]) -> None:
        if not self.clients:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self._send_all(self.encode(event, bot_id, payload)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send_all(self, message: str) -> None:
        clients = list(self.clients)
        results = await asyncio.gather(
            *(asyncio.wait_for(client.send_text(message), timeout=self.send_timeout_s) for client in clients),
            return_exceptions=True,
        )
        for client, result in zip(clients, results, strict=True):
            if isinstance(result, BaseException):
                logger.debug("broadcast_client_dropped", error=repr(result))
                self.clients.discard(client)
