"""
Queue strategies using Strategy Pattern.
Allows switching between different queue backends (Redis Streams, In-Memory).
"""

import asyncio
import itertools
import logging
import os
import socket
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, List

from pydantic import ValidationError
from redis.exceptions import RedisError, ResponseError

from .models import HitEvent

logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for queue strategies.

    This is the Strategy Pattern interface - allows multiple queue implementations
    without changing the redirect endpoint or the worker code.

    Backend errors are logged and reported through return values; publishing
    a click must never fail a redirect.
    """

    @abstractmethod
    async def publish(self, queue_name: str, message: HitEvent) -> bool:
        """
        Publish a message to the queue.

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[HitEvent]:
        """
        Consume messages from the queue.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of messages to retrieve
            block_time: Time to wait for messages (milliseconds)

        Returns:
            List of HitEvent messages, each with message_id set
        """
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """
        Acknowledge messages (mark as processed).

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        """Number of messages waiting in the queue"""
        pass

    async def close(self) -> None:
        """Release backend connections"""
        return None


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams implementation for message queue.

    How it works:
    1. Producer publishes messages using XADD
    2. Consumer reads messages using XREADGROUP
    3. Consumer acknowledges messages using XACK

    Messages survive restarts and several workers can share one consumer group.
    """

    def __init__(self, redis_client, consumer_group: str = "click_workers"):
        """
        Args:
            redis_client: redis.asyncio.Redis instance (decode_responses=True)
            consumer_group: Name of consumer group for workers
        """
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = f"worker-{socket.gethostname()}-{os.getpid()}"
        self._initialized_streams = set()

    async def _ensure_stream_exists(self, queue_name: str) -> None:
        """Create the stream and consumer group on first use"""
        if queue_name in self._initialized_streams:
            return

        try:
            await self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id="0",
                mkstream=True,
            )
            logger.info("Created Redis stream %s (group %s)", queue_name, self.consumer_group)
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, message: HitEvent) -> bool:
        try:
            await self._ensure_stream_exists(queue_name)
            await self.redis.xadd(queue_name, {"data": message.model_dump_json()})
            return True
        except RedisError as e:
            logger.error("Redis publish error: %s", e)
            return False

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[HitEvent]:
        try:
            await self._ensure_stream_exists(queue_name)

            # '>' means "messages never delivered to other consumers"
            response = await self.redis.xreadgroup(
                groupname=self.consumer_group,
                consumername=self.consumer_name,
                streams={queue_name: ">"},
                count=batch_size,
                block=block_time,
            )
        except RedisError as e:
            logger.error("Redis consume error: %s", e)
            return []

        events = []
        unreadable = []
        for _stream, stream_messages in response or []:
            for message_id, fields in stream_messages:
                try:
                    event = HitEvent.model_validate_json(fields["data"])
                except (KeyError, ValidationError) as e:
                    logger.warning("Dropping unreadable message %s: %s", message_id, e)
                    unreadable.append(message_id)
                    continue
                event.message_id = message_id
                events.append(event)

        if unreadable:
            await self.ack(queue_name, unreadable)
        return events

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        if not message_ids:
            return True
        try:
            await self.redis.xack(queue_name, self.consumer_group, *message_ids)
            return True
        except RedisError as e:
            logger.error("Redis ack error: %s", e)
            return False

    async def get_queue_length(self, queue_name: str) -> int:
        try:
            return await self.redis.xlen(queue_name)
        except RedisError:
            return 0

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryQueue(QueueStrategy):
    """
    In-memory queue implementation using Python deque.

    Pros:
    - Simple (no external dependencies)
    - Good for development and testing

    Cons:
    - Not persistent (lost on restart)
    - Not distributed (the worker must run in the API process)

    consume() waits up to block_time for a publish instead of spinning.
    Messages are removed on consume, so ack() has nothing to do.
    """

    def __init__(self):
        self._queues: Dict[str, deque] = {}
        self._events: Dict[str, asyncio.Event] = {}
        self._ids = itertools.count(1)

    def _get_queue(self, queue_name: str) -> deque:
        if queue_name not in self._queues:
            self._queues[queue_name] = deque()
            self._events[queue_name] = asyncio.Event()
        return self._queues[queue_name]

    async def publish(self, queue_name: str, message: HitEvent) -> bool:
        queue = self._get_queue(queue_name)
        message.message_id = f"mem-{next(self._ids)}"
        queue.append(message)
        self._events[queue_name].set()
        return True

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[HitEvent]:
        queue = self._get_queue(queue_name)

        if not queue and block_time > 0:
            wake_up = self._events[queue_name]
            wake_up.clear()
            try:
                await asyncio.wait_for(wake_up.wait(), timeout=block_time / 1000)
            except asyncio.TimeoutError:
                return []

        messages = []
        while queue and len(messages) < batch_size:
            messages.append(queue.popleft())
        return messages

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        return True

    async def get_queue_length(self, queue_name: str) -> int:
        return len(self._get_queue(queue_name))
