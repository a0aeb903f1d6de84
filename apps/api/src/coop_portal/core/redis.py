"""
Redis Client

Redis backs the per-user sliding-window counters that throttle review
decisions, investigator assignment, document uploads and agency
verifications. It is optional: when it cannot be reached at startup the
portal runs with in-memory counters and ``/ready`` reports it as
``disabled``.

Every key the portal writes lives under ``coop_portal:`` so a shared Redis
instance can be inspected or flushed per application.
"""

import logging
from uuid import UUID

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from coop_portal.core.config import settings

logger = logging.getLogger(__name__)

KEY_NAMESPACE = "coop_portal"

redis_client: Redis | None = None


def rate_limit_key(action: str, user_id: UUID | str) -> str:
    """``coop_portal:rate:{action}:{user_id}``"""
    return f"{KEY_NAMESPACE}:rate:{action}:{user_id}"


async def init_redis() -> Redis:
    """
    Connect to Redis and publish the client for the rate limiter.

    The client is only published once it answers a PING, so a failed
    startup leaves the portal on in-memory counters.

    Raises:
        RedisError: If Redis cannot be reached
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise

    redis_client = client
    logger.info("Redis connected; rate limits are shared across workers")
    return redis_client


def get_redis() -> Redis | None:
    """The connected client, or None when rate limits are counted in memory."""
    return redis_client


async def redis_status() -> str:
    """
    Redis state for the readiness report.

    Returns:
        ``up``, ``down`` (connected at startup but not answering) or
        ``disabled`` (never connected)
    """
    if redis_client is None:
        return "disabled"
    try:
        await redis_client.ping()
        return "up"
    except RedisError as e:
        logger.warning(f"Health: redis check failed: {e}")
        return "down"


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
