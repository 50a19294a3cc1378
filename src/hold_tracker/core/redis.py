"""
Redis Configuration

Async Redis client, used as the shared rate-limit store. Redis is optional:
without it the rate limiter falls back to per-process memory.
"""

import logging

from redis.asyncio import Redis, from_url

from hold_tracker.core.config import settings

logger = logging.getLogger(__name__)

# Redis client instance
redis_client: Redis | None = None


async def init_redis() -> Redis | None:
    """
    Initialize Redis connection.

    Call this on application startup. Returns None (and logs) when Redis is
    unreachable instead of failing startup.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.warning(f"Redis unavailable, continuing without it: {e}")
        await client.aclose()
        redis_client = None
        return None

    redis_client = client
    return redis_client


def get_redis() -> Redis | None:
    """Get the Redis client, or None if Redis is not available."""
    return redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
