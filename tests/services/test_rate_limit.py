"""Tests for the Redis sliding-window rate limiter."""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from earmark.core.config import settings
from earmark.core.errors import ErrorCode, HTTPError
from earmark.services.rate_limit import EXPIRY_BUFFER_SECONDS, RedisRateLimiter


@pytest.mark.asyncio
async def test_allows_up_to_limit():
    limiter = RedisRateLimiter("test", max_requests=3, window_seconds=60)

    for _ in range(3):
        await limiter.hit_and_check("10.0.0.1")

    with pytest.raises(HTTPError) as exc_info:
        await limiter.hit_and_check("10.0.0.1")

    assert exc_info.value.status_code == 429
    assert exc_info.value.code == ErrorCode.RATE_LIMIT_EXCEEDED
    assert exc_info.value.headers["Retry-After"] == "60"


@pytest.mark.asyncio
async def test_keys_are_independent():
    limiter = RedisRateLimiter("test", max_requests=1, window_seconds=60)

    await limiter.hit_and_check("10.0.0.1")
    await limiter.hit_and_check("10.0.0.2")

    assert await limiter.count("10.0.0.1") == 1
    assert await limiter.count("10.0.0.3") == 0


@pytest.mark.asyncio
async def test_limiters_do_not_share_keys():
    login = RedisRateLimiter("login", max_requests=1, window_seconds=60)
    api = RedisRateLimiter("api", max_requests=1, window_seconds=60)

    await login.hit("10.0.0.1")

    assert login.redis_key("10.0.0.1") != api.redis_key("10.0.0.1")
    assert await api.count("10.0.0.1") == 0


@pytest.mark.asyncio
async def test_check_does_not_record():
    limiter = RedisRateLimiter("test", max_requests=1, window_seconds=60)

    await limiter.check("10.0.0.1")
    await limiter.check("10.0.0.1")

    assert await limiter.count("10.0.0.1") == 0


@pytest.mark.asyncio
async def test_hits_outside_window_are_trimmed(fake_redis):
    limiter = RedisRateLimiter("test", max_requests=2, window_seconds=10)
    key = limiter.redis_key("10.0.0.1")
    stale = time.time() - 30
    await fake_redis.zadd(key, {"old-1": stale, "old-2": stale})

    # Both old hits fall outside the window, so the limit is not reached
    await limiter.check("10.0.0.1")

    assert await limiter.count("10.0.0.1") == 0
    assert await fake_redis.zcard(key) == 0


@pytest.mark.asyncio
async def test_every_client_key_expires(fake_redis):
    """Idle clients must not leave keys behind."""
    limiter = RedisRateLimiter("test", max_requests=5, window_seconds=30)

    for i in range(200):
        await limiter.hit(f"10.0.{i // 256}.{i % 256}")

    keys = await fake_redis.keys(f"{limiter.redis_key('')}*")
    assert len(keys) == 200
    for key in keys:
        ttl = await fake_redis.ttl(key)
        assert 0 < ttl <= 30 + EXPIRY_BUFFER_SECONDS


@pytest.mark.asyncio
async def test_disabled_limiter_never_raises(monkeypatch, fake_redis):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    limiter = RedisRateLimiter("test", max_requests=1, window_seconds=60)

    for _ in range(5):
        await limiter.hit_and_check("10.0.0.1")

    assert await fake_redis.exists(limiter.redis_key("10.0.0.1")) == 0


def _failing_redis() -> AsyncMock:
    mock_pipe = MagicMock()
    mock_pipe.execute = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    mock_redis = AsyncMock()
    mock_redis.pipeline = MagicMock(return_value=mock_pipe)
    return mock_redis


@pytest.mark.asyncio
async def test_fails_open_when_redis_is_down():
    limiter = RedisRateLimiter("test", max_requests=1, window_seconds=60)

    with patch(
        "earmark.services.rate_limit.get_redis",
        new=AsyncMock(return_value=_failing_redis()),
    ):
        for _ in range(3):
            await limiter.hit_and_check("10.0.0.1")


@pytest.mark.asyncio
async def test_fails_open_when_redis_is_unreachable():
    limiter = RedisRateLimiter("test", max_requests=1, window_seconds=60)

    with patch(
        "earmark.services.rate_limit.get_redis",
        new=AsyncMock(side_effect=OSError("network unreachable")),
    ):
        await limiter.hit_and_check("10.0.0.1")
