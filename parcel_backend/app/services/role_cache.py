"""
Role cache backed by Redis.

Role checks run on every admin/rider request, so the role resolved from the
users table is cached per email and invalidated whenever it changes.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from parcel_backend.app.core.config import settings

logger = logging.getLogger("parcel_backend.role_cache")

ROLE_KEY_PREFIX = "role:email:"

# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


def _key(email: str) -> str:
    return f"{ROLE_KEY_PREFIX}{email.lower()}"


async def get_cached_role(email: str) -> Optional[str]:
    """Return the cached role for `email`, or None on a miss or Redis outage."""
    try:
        return await redis_client.get(_key(email))
    except Exception as e:
        # Cache is advisory; fall back to the database
        logger.warning("Role cache read failed for %s: %s", email, e)
        return None


async def cache_role(email: str, role: str) -> None:
    try:
        await redis_client.set(_key(email), role, ex=settings.role_cache_ttl_seconds)
    except Exception as e:
        logger.warning("Role cache write failed for %s: %s", email, e)


async def invalidate_role(email: str) -> None:
    try:
        await redis_client.delete(_key(email))
    except Exception as e:
        logger.warning("Role cache invalidation failed for %s: %s", email, e)


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except Exception:
        return False
