"""Minimum-interval pacing shared by every outbound eBay call."""

from __future__ import annotations

import threading
import time
from typing import Callable


class MinIntervalRateLimiter:
    """Blocks until at least ``min_interval_seconds`` passed since the previous call.

    Not a queue: waiters are serialized by the lock, so at most one call is let
    through per interval even if several threads share the limiter.
    """

    def __init__(
        self,
        min_interval_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._interval = float(min_interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: float | None = None

    @property
    def min_interval_seconds(self) -> float:
        return self._interval

    def wait(self) -> float:
        """Sleep for the remainder of the interval if needed; return the time slept."""
        with self._lock:
            slept = 0.0
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self._interval:
                    slept = self._interval - elapsed
                    self._sleep(slept)
            self._last_call = self._clock()
            return slept
