"""
In-memory rate limiter - fixed time windows.
Good for a single worker and for tests; counters are not shared between processes.
"""

import time
from typing import Callable

from studio_booking.services.interfaces.rate_limit import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """
    Counts requests per (key, window index).

    Expired windows are swept on each call instead of by a background timer,
    so the limiter holds no task and needs no shutdown hook.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._counters: dict[tuple[str, int], int] = {}

    def _sweep(self, current_window: int) -> None:
        stale = [slot for slot in self._counters if slot[1] < current_window]
        for slot in stale:
            del self._counters[slot]

    async def allow(self, key: str) -> bool:
        window = int(self._clock() // self.window_seconds)
        self._sweep(window)
        slot = (key, window)
        count = self._counters.get(slot, 0) + 1
        self._counters[slot] = count
        return count <= self.max_requests

    def now(self) -> float:
        return self._clock()
