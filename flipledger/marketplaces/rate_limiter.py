"""Request pacing shared by the eBay and StockX clients.

Calls are spaced at least 60/rpm seconds apart. When a marketplace answers
429 with a Retry-After, `defer()` pushes the next allowed slot out so every
client sharing the limiter backs off together.
"""

from __future__ import annotations

import threading
import time
from typing import Callable


class RateLimiter:
    """Thread-safe pacing of outbound marketplace requests.

    Args:
        requests_per_minute: Maximum requests allowed per minute.
        clock: Monotonic time source, injectable for tests.
        sleep: Blocking sleep, injectable for tests.
    """

    def __init__(
        self,
        requests_per_minute: int = 120,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._interval = 60.0 / max(requests_per_minute, 1)
        self._clock = clock
        self._sleep = sleep
        self._next_slot: float | None = None
        self._lock = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    def wait(self) -> float:
        """Block until the next slot opens and claim it. Returns seconds slept."""
        with self._lock:
            now = self._clock()
            slept = 0.0
            if self._next_slot is not None and now < self._next_slot:
                slept = self._next_slot - now
                self._sleep(slept)
                now = self._next_slot
            self._next_slot = now + self._interval
            return slept

    def defer(self, seconds: float) -> None:
        """Hold every caller off for `seconds` from now (server-requested pause)."""
        if seconds <= 0:
            return
        with self._lock:
            until = self._clock() + seconds
            if self._next_slot is None or until > self._next_slot:
                self._next_slot = until
