"""
Timing utilities for sample-driven loops.
Clocks are injectable so callers (and tests) control the notion of "now".
"""

from __future__ import annotations

import time
from typing import Callable, Optional


def monotonic_time() -> float:
    """Return monotonic time in seconds."""
    return time.monotonic()


class IntervalGate:
    """
    Let an event through at most once per interval, measured from the last
    time it was let through. There is no background timer: the gate is polled
    whenever a new sample arrives and the interval may change between polls.
    """

    def __init__(self, clock: Callable[[], float] = monotonic_time):
        self.clock = clock
        self._last: Optional[float] = None

    @property
    def last_fired(self) -> Optional[float]:
        return self._last

    def try_fire(self, interval_s: float) -> bool:
        """Return True (and restart the interval) if ``interval_s`` has elapsed."""
        if interval_s < 0.0:
            raise ValueError("interval_s must be non-negative")
        now = self.clock()
        if self._last is not None and now - self._last < interval_s:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None
