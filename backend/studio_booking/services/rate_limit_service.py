"""
Redis-backed rate limiter. Implements RateLimiter with fixed windows
shared by every worker.

Fail-open policy:
  On Redis failure the request is allowed. Rate limiting protects capacity,
  it does not protect correctness (admission does), so a Redis outage should
  degrade throttling rather than block bookings. Failures are counted in
  redis_connection_errors_total and logged.
"""

import time
from typing import Callable, Optional

import redis.asyncio as redis

from studio_booking.core.logging import get_logger
from studio_booking.core.metrics import redis_connection_errors
from studio_booking.services.interfaces.rate_limit import RateLimiter

logger = get_logger(__name__)


class RedisRateLimiter(RateLimiter):
    """
    One counter per key and window: ratelimit:{key}:{window_index}.
    INCR and EXPIRE go in one MULTI so a counter never outlives its window.
    """

    def __init__(
        self,
        client: Optional[redis.Redis],
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock

    def _key(self, key: str, window: int) -> str:
        return f"ratelimit:{key}:{window}"

    async def allow(self, key: str) -> bool:
        if self.client is None:
            return True

        window = int(self._clock() // self.window_seconds)
        redis_key = self._key(key, window)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.incr(redis_key)
                pipe.expire(redis_key, self.window_seconds)
                count, _ = await pipe.execute()
        except redis.RedisError as e:
            redis_connection_errors.inc()
            logger.warning("rate_limit_redis_error", key=key, error=str(e))
            return True

        return int(count) <= self.max_requests

    def now(self) -> float:
        return self._clock()
