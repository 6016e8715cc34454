"""Redis caching for the current-user payload.

GET /users/me is called on every page load of both frontends, so the
serialized account is cached per auth subject and dropped on every
account write. Redis being down never fails a request: errors are logged
and the caller falls through to the database.
"""

import json
import logging
from typing import Optional

import redis.asyncio as redis

from candidate_onboarding.config import settings

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create Redis client connection."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
    return _redis_client


async def close_redis():
    """Close Redis connection (call on app shutdown)."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def user_cache_key(auth_user_id: str) -> str:
    return f"users:me:{auth_user_id}"


async def get_cached_user(auth_user_id: str) -> dict | None:
    if not settings.cache_enabled:
        return None
    key = user_cache_key(auth_user_id)
    try:
        client = await get_redis()
        cached_value = await client.get(key)
    except redis.RedisError as e:
        logger.warning(f"Redis error (falling back to uncached): {e}")
        return None

    if cached_value:
        logger.debug(f"Cache HIT: {key}")
        return json.loads(cached_value)
    logger.debug(f"Cache MISS: {key}")
    return None


async def set_cached_user(auth_user_id: str, payload: dict) -> None:
    """Store a JSON-mode dump of UserOut."""
    if not settings.cache_enabled:
        return
    try:
        client = await get_redis()
        await client.setex(
            user_cache_key(auth_user_id),
            settings.user_cache_ttl_seconds,
            json.dumps(payload),
        )
    except redis.RedisError as e:
        logger.warning(f"Failed to cache user: {e}")


async def invalidate_user(auth_user_id: str) -> None:
    if not settings.cache_enabled:
        return
    try:
        client = await get_redis()
        await client.delete(user_cache_key(auth_user_id))
    except redis.RedisError as e:
        logger.warning(f"Failed to invalidate cached user: {e}")
