# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""AFK emulation: small periodic actions so a session looks occupied."""

from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING

from afkfleet.constants import IDLE_INTERVAL_S, IDLE_JUMP_PROBABILITY, IDLE_JUMP_PULSE_S
from afkfleet.logging import get_logger
from afkfleet.timers import OneShotTimer, RepeatingTimer

if TYPE_CHECKING:
    from collections.abc import Callable

    from afkfleet.protocol.base import ProtocolSession

logger = get_logger(__name__)


class IdleLoop:
    """Periodic look/jump/swing against whatever session is current.

    The loop does not own the session; ``session_getter`` is asked on every
    tick and a missing or entity-less session simply skips the tick.
    """

    def __init__(
        self,
        session_getter: Callable[[], ProtocolSession | None],
        *,
        on_change: Callable[[], None],
        interval_s: float = IDLE_INTERVAL_S,
        jump_probability: float = IDLE_JUMP_PROBABILITY,
        jump_pulse_s: float = IDLE_JUMP_PULSE_S,
        rng: random.Random | None = None,
        name: str = "idle",
    ) -> None:
        self._session_getter = session_getter
        self._on_change = on_change
        self.interval_s = interval_s
        self.jump_probability = jump_probability
        self.jump_pulse_s = jump_pulse_s
        self._rng = rng or random.Random()
        self._active = False
        self._timer = RepeatingTimer(f"{name}.tick")
        self._jump_release = OneShotTimer(f"{name}.jump")
        self._jumping: ProtocolSession | None = None

    @property
    def active(self) -> bool:
        return self._active

    def _live_session(self) -> ProtocolSession | None:
        session = self._session_getter()
        if session is None or not session.has_entity():
            return None
        return session

    def start(self) -> bool:
        """Arm the loop. Returns False (and does nothing) without a live session."""
        if self._live_session() is None:
            return False
        self._timer.start(self.interval_s, self._tick)
        self._active = True
        self._on_change()
        return True

    def stop(self) -> bool:
        """Disarm the loop. Returns True if it was active."""
        self._timer.cancel()
        if self._jump_release.cancel():
            self._release_jump()
        if not self._active:
            return False
        self._active = False
        self._on_change()
        return True

    def _tick(self) -> None:
        session = self._live_session()
        if session is None:
            return
        try:
            yaw = self._rng.uniform(-math.pi / 2, math.pi / 2)
            pitch = self._rng.uniform(-math.pi / 2, math.pi / 2)
            session.look(yaw, pitch)

            if self._rng.random() < self.jump_probability:
                session.set_control("jump", True)
                self._jumping = session
                self._jump_release.schedule(self.jump_pulse_s, self._release_jump)

            session.swing_arm()
        except Exception as e:
            logger.warning("idle_tick_failed", error=str(e))

    def _release_jump(self) -> None:
        session, self._jumping = self._jumping, None
        if session is None:
            return
        try:
            session.set_control("jump", False)
        except Exception as e:
            logger.debug("idle_jump_release_failed", error=str(e))
