"""
BuffKeeper — Humanized Pointer Motion

Moves the pointer along a jittered straight-line path instead of jumping:

    steps  = clamp(distance / 15, 8, 20)
    each   = lerp(start, target, i / steps) ± 1.25 px, then 4-7 ms pause
    finish = exact target, 25 ms settle

The mover is a shared, exclusive resource. Controllers look it up in the
capability registry under HUMANIZER_CAPABILITY and hold it for one aim+cast
attempt:

    with mouse.acquire():
        mouse.move_to(x, y)

acquire() does not wait: if another controller is mid-move it raises
CapabilityBusy at once.
"""

from __future__ import annotations

import math
import random
import threading
from contextlib import contextmanager
from typing import Iterator

from buffkeeper.bot.effector import InputEffector
from buffkeeper.rotation.timing import Clock, SystemClock

HUMANIZER_CAPABILITY = "InputHumanizer"

MIN_STEPS = 8
MAX_STEPS = 20
PIXELS_PER_STEP = 15.0
JITTER = 1.25
STEP_DELAY_MS = (4, 7)
SETTLE_DELAY = 0.025


class CapabilityBusy(Exception):
    """Raised when the mover is already held by someone else."""


def step_count(distance: float) -> int:
    return max(MIN_STEPS, min(MAX_STEPS, int(distance / PIXELS_PER_STEP)))


class HumanizedMouse:
    """Interpolated, jittered pointer mover over an input effector."""

    def __init__(
        self,
        effector: InputEffector,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        self.effector = effector
        self.clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self.moves = 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def acquire(self) -> Iterator[HumanizedMouse]:
        """Hold the mover for one attempt; always released on exit."""
        if not self._lock.acquire(blocking=False):
            raise CapabilityBusy("humanized mouse is in use")
        try:
            yield self
        finally:
            self._lock.release()

    def path(self, start: tuple[float, float], target: tuple[float, float]) -> list[tuple[int, int]]:
        """Intermediate points from start towards target (jittered)."""
        sx, sy = start
        tx, ty = target
        steps = step_count(math.hypot(tx - sx, ty - sy))
        points = []
        for i in range(steps):
            t = (i + 1) / steps
            jx = self._rng.uniform(-JITTER, JITTER)
            jy = self._rng.uniform(-JITTER, JITTER)
            points.append((round(sx + (tx - sx) * t + jx), round(sy + (ty - sy) * t + jy)))
        return points

    def move_to(self, x: float, y: float) -> None:
        """Walk the pointer to (x, y), ending exactly on it."""
        start = self.effector.get_pointer()
        for px, py in self.path(start, (x, y)):
            self.effector.set_pointer(px, py)
            self.clock.sleep(self._rng.randint(*STEP_DELAY_MS) / 1000.0)
        self.effector.set_pointer(round(x), round(y))
        self.clock.sleep(SETTLE_DELAY)
        self.moves += 1
