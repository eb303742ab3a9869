"""
Redis caching for availability responses.

CACHING STRATEGY
================

What we cache:
  - GET /bookings/availability responses, JSON-serialized
  - Key: "availability:{type}:{date}"

Why:
  - The booking wizard asks for availability on every date the visitor clicks
  - It is advisory data; admission re-checks everything authoritatively

Invalidation strategy:
  - On admission: delete the key for the booking's type and date
  - On status change: same (a cancellation frees slots)
  - Short TTL as safety net (AVAILABILITY_CACHE_TTL, 30s default)

  Keys are exact, so invalidation is a single DEL, no SCAN.

  A GET that read the database before an admission committed can still
  SETEX its result after that admission's DEL. The entry then stays stale
  until the TTL expires, which is why the TTL is kept short.

Cache failures are logged and ignored: the request falls through to the database.
"""

import json
from datetime import date
from typing import Optional

import redis.asyncio as redis

from studio_booking.core.config import get_settings
from studio_booking.core.logging import get_logger
from studio_booking.core.metrics import record_cache_operation
from studio_booking.infrastructure.redis_client import get_redis
from studio_booking.models.enums import ResourceType

logger = get_logger(__name__)
settings = get_settings()


def _make_availability_key(resource_type: ResourceType, day: date) -> str:
    return f"availability:{resource_type.value}:{day.isoformat()}"


async def get_cached_availability(resource_type: ResourceType, day: date) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_availability_key(resource_type, day)
    try:
        data = await client.get(key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data:
        logger.debug("cache_hit", key=key)
        return json.loads(data)
    logger.debug("cache_miss", key=key)
    return None


async def set_cached_availability(resource_type: ResourceType, day: date, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_availability_key(resource_type, day)
    try:
        await client.setex(key, settings.AVAILABILITY_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.AVAILABILITY_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_availability(resource_type: ResourceType, day: date) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_availability_key(resource_type, day)
    try:
        deleted = await client.delete(key)
        logger.info("cache_invalidated", key=key, keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
