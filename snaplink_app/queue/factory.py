"""
Factory for creating queue instances.
"""

import logging
from enum import Enum

import redis.asyncio as redis
from redis.exceptions import RedisError

from .strategies import QueueStrategy, RedisStreamQueue, InMemoryQueue
from snaplink_app.config import Settings

logger = logging.getLogger(__name__)


class QueueBackend(Enum):
    """Available queue backends"""
    REDIS_STREAMS = "redis_streams"
    MEMORY = "memory"


class QueueFactory:
    """
    Simple factory for creating queue instances.

    Called once at startup (API lifespan or standalone worker); the caller
    owns the result and closes it on shutdown.
    """

    @classmethod
    async def create(cls, backend: QueueBackend, settings: Settings) -> QueueStrategy:
        """
        Create a queue instance.

        An unreachable Redis falls back to the in-memory queue. The in-memory
        queue is process-local, so clicks are then only processed by a worker
        running inside the API process.
        """
        if backend == QueueBackend.REDIS_STREAMS:
            client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
            )
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                logger.warning("Redis connection failed (%s); falling back to in-memory queue", e)
                await client.aclose()
                return InMemoryQueue()

            logger.info("Redis queue initialized")
            return RedisStreamQueue(client, settings.queue_consumer_group)

        if backend == QueueBackend.MEMORY:
            logger.info("In-memory queue initialized")
            return InMemoryQueue()

        raise ValueError(f"Unknown queue backend: {backend}")
