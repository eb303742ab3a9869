"""
Rate limiter factory.
Configures which rate limiting backend to use.
"""

from typing import Optional

from studio_booking.core.config import get_settings
from studio_booking.core.logging import get_logger
from studio_booking.infrastructure.redis_client import get_redis
from studio_booking.services.interfaces.memory_rate_limit import InMemoryRateLimiter
from studio_booking.services.interfaces.rate_limit import RateLimiter
from studio_booking.services.rate_limit_service import RedisRateLimiter

logger = get_logger(__name__)
settings = get_settings()


async def build_rate_limiter() -> RateLimiter:
    """
    Build the configured rate limiter.

    Backend selection via RATE_LIMIT_BACKEND:
    - memory: per-worker counters (default, single worker / development)
    - redis: counters shared across workers

    Falls back to memory when Redis is selected but unavailable.
    """
    if settings.RATE_LIMIT_BACKEND == "redis":
        client = await get_redis()
        if client is not None:
            return RedisRateLimiter(
                client, settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS
            )
        logger.warning("rate_limit_backend_fallback", requested="redis", using="memory")

    return InMemoryRateLimiter(settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS)


# Singleton instance
_limiter: Optional[RateLimiter] = None


async def get_rate_limiter() -> RateLimiter:
    """Get rate limiter singleton."""
    global _limiter
    if _limiter is None:
        _limiter = await build_rate_limiter()
    return _limiter


def reset_rate_limiter() -> None:
    global _limiter
    _limiter = None
