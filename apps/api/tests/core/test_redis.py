"""
Unit tests for the Redis client used by the rate limiter.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from coop_portal.core import redis as portal_redis
from coop_portal.core.rate_limit import enforce_user_rate_limit


@pytest.fixture(autouse=True)
def reset_client():
    portal_redis.redis_client = None
    yield
    portal_redis.redis_client = None


def test_rate_limit_key_is_namespaced():
    user_id = UUID("00000000-0000-0000-0000-000000000001")
    assert (
        portal_redis.rate_limit_key("decision", user_id)
        == "coop_portal:rate:decision:00000000-0000-0000-0000-000000000001"
    )


# ============================================================================
# init_redis
# ============================================================================


@pytest.mark.asyncio
async def test_init_publishes_client_after_ping():
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)

    with patch("coop_portal.core.redis.from_url", return_value=client):
        assert await portal_redis.init_redis() is client

    assert portal_redis.get_redis() is client


@pytest.mark.asyncio
async def test_unreachable_redis_leaves_memory_counters():
    client = MagicMock()
    client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
    client.aclose = AsyncMock()

    with patch("coop_portal.core.redis.from_url", return_value=client):
        with pytest.raises(RedisConnectionError):
            await portal_redis.init_redis()

    assert portal_redis.get_redis() is None
    client.aclose.assert_awaited_once()


# ============================================================================
# redis_status
# ============================================================================


class TestRedisStatus:
    @pytest.mark.asyncio
    async def test_disabled_without_client(self):
        assert await portal_redis.redis_status() == "disabled"

    @pytest.mark.asyncio
    async def test_up(self):
        portal_redis.redis_client = MagicMock()
        portal_redis.redis_client.ping = AsyncMock(return_value=True)
        assert await portal_redis.redis_status() == "up"

    @pytest.mark.asyncio
    async def test_down_when_ping_fails(self):
        portal_redis.redis_client = MagicMock()
        portal_redis.redis_client.ping = AsyncMock(side_effect=RedisConnectionError("gone"))
        assert await portal_redis.redis_status() == "down"


@pytest.mark.asyncio
async def test_close_clears_client():
    client = MagicMock()
    client.aclose = AsyncMock()
    portal_redis.redis_client = client

    await portal_redis.close_redis()

    client.aclose.assert_awaited_once()
    assert portal_redis.get_redis() is None


@pytest.mark.asyncio
async def test_user_limit_counts_under_namespaced_key(county_admin):
    with patch(
        "coop_portal.core.rate_limit.check_rate_limit",
        new_callable=AsyncMock,
        return_value=True,
    ) as mock_check:
        await enforce_user_rate_limit(county_admin, "upload", (20, 60))

    mock_check.assert_awaited_once_with(
        f"coop_portal:rate:upload:{county_admin.id}", 20, 60
    )
