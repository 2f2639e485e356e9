# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Cancelable timer handles owned by a supervisor.

Every handle is cancel-then-replace: scheduling or starting a timer always
cancels the previous one first, so a supervisor never holds two pending
reconnects or two running heartbeats.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from afkfleet.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class OneShotTimer:
    """Run a callback once after a delay."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def when(self) -> float | None:
        """Event-loop time at which the callback fires, if pending."""
        return self._handle.when() if self._handle else None

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay_s, self._fire, callback)

    def cancel(self) -> bool:
        handle = self._handle
        self._handle = None
        if handle is None:
            return False
        handle.cancel()
        return True

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        try:
            callback()
        except Exception as e:
            logger.exception("timer_callback_failed", timer=self.name, error=str(e))


class RepeatingTimer:
    """Run a callback every ``interval_s`` seconds until canceled."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._loop(interval_s, callback))

    def cancel(self) -> bool:
        task = self._task
        self._task = None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def _loop(self, interval_s: float, callback: Callable[[], None]) -> None:
        try:
            while True:
                await asyncio.sleep(interval_s)
                try:
                    callback()
                except Exception as e:
                    logger.exception("timer_callback_failed", timer=self.name, error=str(e))
        except asyncio.CancelledError:
            return
