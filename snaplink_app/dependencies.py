"""
FastAPI dependencies for dependency injection.

The application container is built once in the lifespan and stored on
``app.state``; the getters below hand its pieces to routes.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (build a container with in-memory backends)
- Flexible (swap implementations via config)
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from snaplink_app.cache.factory import CacheFactory, CacheBackend
from snaplink_app.cache.strategies import CacheStrategy
from snaplink_app.config import Settings
from snaplink_app.database.connection import Database
from snaplink_app.queue.factory import QueueFactory, QueueBackend
from snaplink_app.queue.strategies import QueueStrategy
from snaplink_app.services.analytics_service import AnalyticsAggregator
from snaplink_app.services.click_recorder import ClickRecorder
from snaplink_app.services.code_allocator import CodeAllocator
from snaplink_app.services.link_service import LinkService
from snaplink_app.services.redirect_resolver import RedirectResolver
from snaplink_app.services.short_code_strategies import RandomShortCodeStrategy
from snaplink_app.storage.factory import ClickStorageFactory, ClickStorageBackend
from snaplink_app.storage.link_store import LinkStore
from snaplink_app.storage.strategies import ClickStorageStrategy

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Everything a request or the click worker needs, built once per app"""
    settings: Settings
    database: Database
    cache: CacheStrategy
    queue: QueueStrategy
    link_store: LinkStore
    click_storage: ClickStorageStrategy
    link_service: LinkService
    resolver: RedirectResolver
    recorder: ClickRecorder
    analytics: AnalyticsAggregator

    async def close(self):
        await self.cache.close()
        await self.queue.close()
        self.database.close()


async def create_container(settings: Settings) -> AppContainer:
    """
    Wire stores, backends and services from settings.

    Creates the database tables if they do not exist.
    """
    database = Database(settings.database_url, echo=settings.debug)
    database.create_all()

    cache = await CacheFactory.create(CacheBackend(settings.cache_backend), settings)
    queue = await QueueFactory.create(QueueBackend(settings.queue_backend), settings)
    click_storage = ClickStorageFactory.create(
        ClickStorageBackend(settings.click_storage_backend), database
    )

    link_store = LinkStore(database)
    allocator = CodeAllocator(
        link_store,
        RandomShortCodeStrategy(length=settings.short_code_length),
        max_attempts=settings.max_retries,
    )

    return AppContainer(
        settings=settings,
        database=database,
        cache=cache,
        queue=queue,
        link_store=link_store,
        click_storage=click_storage,
        link_service=LinkService(link_store, allocator, cache, settings.cache_ttl),
        resolver=RedirectResolver(link_store, cache, settings.cache_ttl),
        recorder=ClickRecorder(link_store, click_storage),
        analytics=AnalyticsAggregator(link_store, click_storage),
    )


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_link_service(request: Request) -> LinkService:
    return get_container(request).link_service


def get_redirect_resolver(request: Request) -> RedirectResolver:
    return get_container(request).resolver


def get_analytics(request: Request) -> AnalyticsAggregator:
    return get_container(request).analytics


def get_queue(request: Request) -> QueueStrategy:
    return get_container(request).queue


def get_settings(request: Request) -> Settings:
    return get_container(request).settings


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For entry, then X-Real-IP, then the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "0.0.0.0"
