"""
Unit tests for the rate limiter (in-memory path and Redis path).
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hold_tracker.core.rate_limit import check_rate_limit


class TestMemoryRateLimit:
    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_blocks(self):
        results = [await check_rate_limit("test:key", 3, 60) for _ in range(4)]
        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        for _ in range(2):
            await check_rate_limit("test:a", 2, 60)

        assert await check_rate_limit("test:a", 2, 60) is False
        assert await check_rate_limit("test:b", 2, 60) is True


class TestRedisRateLimit:
    @pytest.mark.asyncio
    async def test_uses_redis_when_available(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[0, 5, 1, True])
        client = MagicMock()
        client.pipeline.return_value = pipe

        with patch("hold_tracker.core.rate_limit.get_redis", return_value=client):
            allowed = await check_rate_limit("test:redis", 5, 60)

        assert allowed is False
        pipe.zadd.assert_called_once()

    @pytest.mark.asyncio
    async def test_falls_back_to_memory_on_redis_error(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock(side_effect=ConnectionError("down"))
        client = MagicMock()
        client.pipeline.return_value = pipe

        with patch("hold_tracker.core.rate_limit.get_redis", return_value=client):
            allowed = await check_rate_limit("test:fallback", 5, 60)

        assert allowed is True
