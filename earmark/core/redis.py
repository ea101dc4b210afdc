"""Redis client shared by the rate limiters."""

import redis.asyncio as redis

from earmark.core.config import settings

redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """
    Get Redis client, creating if needed.

    Returns a singleton Redis client instance. The connection is opened
    lazily on the first command.
    """
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return redis_client


async def close_redis() -> None:
    """
    Close Redis connection.

    Should be called during application shutdown.
    """
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
