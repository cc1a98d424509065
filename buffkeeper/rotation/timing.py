"""
BuffKeeper — Clock + Stopwatch

All waits go through a Clock so a tick can be driven against real time or,
in tests, against a clock whose sleep() just advances the reading.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Monotonic wall clock; sleep() blocks the calling (tick) thread."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class Stopwatch:
    """Restartable elapsed-time counter."""

    def __init__(self, clock: Clock):
        self._clock = clock
        self.started_at: float = clock.now()

    def restart(self) -> float:
        self.started_at = self._clock.now()
        return self.started_at

    def elapsed(self) -> float:
        return self._clock.now() - self.started_at
