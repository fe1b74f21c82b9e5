"""
Factory for creating cache instances.
"""

import logging
from enum import Enum

import redis.asyncio as redis
from redis.exceptions import RedisError

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from snaplink_app.config import Settings

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Simple factory for creating cache instances.

    Called once at startup; the application container owns the result.
    """

    @classmethod
    async def create(cls, backend: CacheBackend, settings: Settings) -> CacheStrategy:
        """
        Create a cache instance.

        A Redis backend that does not answer PING falls back to the
        in-memory cache instead of failing startup.
        """
        if backend == CacheBackend.REDIS:
            client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                logger.warning("Redis connection failed (%s); falling back to in-memory cache", e)
                await client.aclose()
                return InMemoryCache()

            logger.info("Redis cache initialized")
            return RedisCache(client)

        if backend == CacheBackend.MEMORY:
            logger.info("In-memory cache initialized")
            return InMemoryCache()

        if backend == CacheBackend.NULL:
            logger.info("Null cache initialized")
            return NullCache()

        raise ValueError(f"Unknown cache backend: {backend}")
