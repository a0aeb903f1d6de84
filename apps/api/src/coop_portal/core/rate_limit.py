"""
Rate Limiting Module

Sliding-window rate limiting for reviewer actions and document uploads.
Uses the shared Redis client when it is connected and falls back to
in-memory storage otherwise.

Protected operations:
- Review decisions (approve / reject / request info)
- Investigator assignment
- Document uploads
- Mock agency verifications
"""

import logging
import time

from fastapi import HTTPException, status
from redis.asyncio import Redis

from coop_portal.core.auth import CurrentUser
from coop_portal.core.redis import get_redis, rate_limit_key

logger = logging.getLogger(__name__)

# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}

# (limit, window_seconds) per action
RATE_LIMIT_DECISION = (10, 60)
RATE_LIMIT_ASSIGN = (30, 60)
RATE_LIMIT_UPLOAD = (20, 60)
RATE_LIMIT_VERIFICATION = (15, 60)


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using a Redis sorted set (sliding window).

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using in-memory storage.

    Only accurate for a single server instance.
    """
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]
    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Args:
        key: Counter key, see ``rate_limit_key``
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_user_rate_limit(
    user: CurrentUser,
    action: str,
    limit_window: tuple[int, int],
) -> None:
    """
    Enforce a per-user rate limit for an action.

    Raises:
        RateLimitExceeded: If the user exceeded the limit for this action
    """
    limit, window_seconds = limit_window
    key = rate_limit_key(action, user.id)

    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(
            f"Rate limit exceeded for user {user.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


__all__ = [
    "check_rate_limit",
    "enforce_user_rate_limit",
    "RateLimitExceeded",
    "RATE_LIMIT_DECISION",
    "RATE_LIMIT_ASSIGN",
    "RATE_LIMIT_UPLOAD",
    "RATE_LIMIT_VERIFICATION",
]
