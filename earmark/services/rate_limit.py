"""
Redis-based rate limiting keyed by client IP.

Uses Redis sorted sets for accurate sliding window rate limiting that works
across multiple workers. Every key expires shortly after its window, so idle
clients leave nothing behind.
"""

import logging
import time
import uuid

from redis.exceptions import RedisError

from earmark.core.config import settings
from earmark.core.errors import too_many_requests
from earmark.core.redis import get_redis

logger = logging.getLogger(__name__)

# Key prefix
RATE_LIMIT_KEY_PREFIX = "earmark:ratelimit:"

# Keys outlive their window by this many seconds
EXPIRY_BUFFER_SECONDS = 10


class RedisRateLimiter:
    """Allow at most ``max_requests`` hits per key in ``window_seconds``.

    Redis failures are logged and the request is allowed (fail-open).
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def redis_key(self, key: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{self.name}:{key}"

    async def count(self, key: str) -> int:
        """Hits recorded for ``key`` inside the current window."""
        redis = await get_redis()
        window_start = time.time() - self.window_seconds
        rate_limit_key = self.redis_key(key)

        # Use pipeline for atomic operations
        pipe = redis.pipeline()
        # Remove old entries outside the window
        pipe.zremrangebyscore(rate_limit_key, 0, window_start)
        pipe.zcard(rate_limit_key)
        results = await pipe.execute()
        return results[1]

    async def hit(self, key: str) -> None:
        """Record one request for ``key``."""
        if not settings.RATE_LIMIT_ENABLED:
            return

        now = time.time()
        rate_limit_key = self.redis_key(key)

        try:
            redis = await get_redis()
            pipe = redis.pipeline()
            # Unique member so simultaneous hits are all counted
            pipe.zadd(rate_limit_key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.expire(rate_limit_key, self.window_seconds + EXPIRY_BUFFER_SECONDS)
            await pipe.execute()
        except (RedisError, OSError) as e:
            logger.warning(f"{self.name} rate limit hit not recorded for {key}: {e}")

    async def check(self, key: str) -> None:
        """
        Enforce the limit for ``key`` without recording a hit.

        Raises:
            HTTPError: 429 if the limit is already reached
        """
        if not settings.RATE_LIMIT_ENABLED:
            return

        try:
            request_count = await self.count(key)
        except (RedisError, OSError) as e:
            # Fall back to allowing the request (fail-open)
            logger.warning(f"{self.name} rate limit check failed, allowing request: {e}")
            return

        if request_count >= self.max_requests:
            logger.warning(
                f"{self.name} rate limit exceeded for {key}: "
                f"{request_count}/{self.max_requests} requests"
            )
            raise too_many_requests(
                f"Too many requests, please try again later ({self.max_requests} per "
                f"{self.window_seconds} seconds)",
                retry_after=self.window_seconds,
            )

    async def hit_and_check(self, key: str) -> None:
        """Enforce the limit, then count this request."""
        await self.check(key)
        await self.hit(key)


# Only unsuccessful login requests are counted
login_rate_limiter = RedisRateLimiter(
    "login",
    max_requests=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
)

api_rate_limiter = RedisRateLimiter(
    "api",
    max_requests=settings.API_RATE_LIMIT_REQUESTS,
    window_seconds=settings.API_RATE_LIMIT_WINDOW_SECONDS,
)
