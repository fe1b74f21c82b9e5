"""
Click Worker

This worker consumes click messages from the queue and records them through
the ClickRecorder (event row + atomic counter increment).

Architecture:
- Consumes messages from the queue in batches
- Records each message in a worker thread, at most ``concurrency`` at a time,
  so blocking database writes never run on the event loop
- Acknowledges every consumed message; a failed recording is logged, not retried

Runs inside the API process (started by the lifespan) or standalone:

    python -m snaplink_app.hit_processor.hit_worker
"""

import asyncio
import logging
import signal
import sys
from typing import List

from snaplink_app.config import settings
from snaplink_app.queue.models import HitEvent
from snaplink_app.queue.strategies import QueueStrategy
from snaplink_app.services.click_recorder import ClickRecorder

logger = logging.getLogger(__name__)


class ClickWorker:
    """
    Queue consumer with bounded concurrency.

    Features:
    - Batch consumption (``batch_size`` messages per read)
    - asyncio.Semaphore around asyncio.to_thread calls
    - Per-message error isolation
    """

    def __init__(
        self,
        queue: QueueStrategy,
        recorder: ClickRecorder,
        queue_name: str = "link_clicks",
        batch_size: int = 100,
        concurrency: int = 8,
        block_time: int = 1000
    ):
        """
        Args:
            queue: Queue strategy for consuming messages
            recorder: Records a single click
            queue_name: Queue (stream) to consume
            batch_size: Maximum messages per read
            concurrency: Maximum recordings in flight
            block_time: How long one read waits for messages (milliseconds)
        """
        self.queue = queue
        self.recorder = recorder
        self.queue_name = queue_name
        self.batch_size = batch_size
        self.block_time = block_time
        self.concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self.running = False
        self.processed_count = 0
        self.failed_count = 0

    async def start(self):
        """Consume until stop() is called"""
        self.running = True
        logger.info(
            "Click worker started (queue=%s, batch_size=%d, concurrency=%d)",
            self.queue_name, self.batch_size, self.concurrency,
        )

        while self.running:
            try:
                messages = await self.queue.consume(
                    self.queue_name,
                    batch_size=self.batch_size,
                    block_time=self.block_time,
                )
                if messages:
                    await self.process_batch(messages)
            except asyncio.CancelledError:
                logger.info("Click worker task cancelled")
                raise
            except Exception:
                logger.exception("Error consuming click batch")
                await asyncio.sleep(1)

        logger.info(
            "Click worker stopped (processed=%d, failed=%d)",
            self.processed_count, self.failed_count,
        )

    async def process_batch(self, messages: List[HitEvent]):
        """Record a batch, then acknowledge all of it"""
        await asyncio.gather(*(self._record(message) for message in messages))

        message_ids = [m.message_id for m in messages if m.message_id is not None]
        await self.queue.ack(self.queue_name, message_ids)
        self.processed_count += len(messages)
        logger.debug("Processed %d clicks. Total: %d", len(messages), self.processed_count)

    async def _record(self, message: HitEvent):
        async with self._semaphore:
            try:
                await asyncio.to_thread(
                    self.recorder.record,
                    link_id=message.link_id,
                    ip=message.ip_address,
                    user_agent=message.user_agent,
                    referrer=message.referer,
                    country=message.country,
                    city=message.city,
                    clicked_at=message.timestamp,
                )
            except Exception:
                self.failed_count += 1
                logger.exception(
                    "Failed to record click for %s (message %s)",
                    message.short_code, message.message_id,
                )

    def stop(self):
        """Ask the loop to exit after the current read"""
        self.running = False


async def main():
    """
    Main entry point for the standalone click worker.

    Usage:
        python -m snaplink_app.hit_processor.hit_worker
    """
    from snaplink_app.database.connection import Database
    from snaplink_app.logging_config import setup_logging
    from snaplink_app.queue.factory import QueueFactory, QueueBackend
    from snaplink_app.storage.factory import ClickStorageFactory, ClickStorageBackend
    from snaplink_app.storage.link_store import LinkStore

    setup_logging(settings)

    print("=" * 60)
    print(f"{settings.app_name} - Click Worker")
    print("=" * 60)
    print(f"Environment: {settings.environment}")
    print(f"Queue backend: {settings.queue_backend}")
    print(f"Click storage backend: {settings.click_storage_backend}")
    print(f"Concurrency: {settings.click_worker_concurrency}")
    print("=" * 60)

    database = Database(settings.database_url)
    database.create_all()

    queue = await QueueFactory.create(QueueBackend(settings.queue_backend), settings)
    storage = ClickStorageFactory.create(
        ClickStorageBackend(settings.click_storage_backend), database
    )
    recorder = ClickRecorder(LinkStore(database), storage)

    worker = ClickWorker(
        queue=queue,
        recorder=recorder,
        queue_name=settings.queue_name,
        batch_size=settings.queue_batch_size,
        concurrency=settings.click_worker_concurrency,
        block_time=settings.queue_block_ms,
    )

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, worker.stop)

    try:
        await worker.start()
    except Exception:
        logger.exception("Fatal error in click worker")
        sys.exit(1)
    finally:
        await queue.close()
        database.close()


if __name__ == "__main__":
    asyncio.run(main())
