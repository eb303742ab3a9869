"""
Rate limiter interface.
Throttles booking submissions per client key (the caller's IP).
"""

from abc import ABC, abstractmethod


class RateLimiter(ABC):
    """
    Interface for request-rate limiters.

    Implementations:
    - InMemoryRateLimiter: fixed window counters in process memory
    - RedisRateLimiter: fixed window counters shared through Redis

    Limiting is advisory. It sits in front of admission, never inside the
    admission critical section, and may be approximate under concurrency.
    """

    max_requests: int
    window_seconds: int

    @abstractmethod
    async def allow(self, key: str) -> bool:
        """
        Count one request for `key` and decide whether it may proceed.

        Returns:
            True if the request is within the window's budget
            False if the caller should be rejected with 429
        """
        pass

    def retry_after(self, now: float) -> int:
        """Seconds until the current window rolls over."""
        elapsed = int(now) % self.window_seconds
        return max(self.window_seconds - elapsed, 1)
