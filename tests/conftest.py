"""
Test configuration and fixtures for the SnapLink API and services.
This centralizes all test setup, making individual tests clean.
"""

import os

# Backends must be chosen before snaplink_app.config is imported
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("QUEUE_BACKEND", "memory")
os.environ.setdefault("CLICK_STORAGE_BACKEND", "sql")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("QUEUE_BLOCK_MS", "50")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("BASE_URL", "http://short.test")

import pytest
from fastapi.testclient import TestClient

from main import app
from snaplink_app.cache.strategies import InMemoryCache
from snaplink_app.config import settings
from snaplink_app.database.connection import Database
from snaplink_app.services.analytics_service import AnalyticsAggregator
from snaplink_app.services.click_recorder import ClickRecorder
from snaplink_app.services.code_allocator import CodeAllocator
from snaplink_app.services.link_service import LinkService
from snaplink_app.services.redirect_resolver import RedirectResolver
from snaplink_app.services.short_code_strategies import RandomShortCodeStrategy, ShortCodeStrategy
from snaplink_app.storage.link_store import LinkStore
from snaplink_app.storage.strategies import SQLClickStorage


class ScriptedStrategy(ShortCodeStrategy):
    """Hands out a fixed sequence of candidates, for collision tests"""

    def __init__(self, codes):
        self.codes = list(codes)
        self.calls = 0

    def generate(self) -> str:
        code = self.codes[self.calls]
        self.calls += 1
        return code


@pytest.fixture(scope="function")
def database(tmp_path):
    """
    Fresh SQLite database file for each test.
    This ensures tests are isolated and don't affect each other.
    """
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_all()
    try:
        yield db
    finally:
        db.drop_all()
        db.close()


@pytest.fixture
def link_store(database):
    return LinkStore(database)


@pytest.fixture
def click_storage(database):
    return SQLClickStorage(database)


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def allocator(link_store):
    return CodeAllocator(link_store, RandomShortCodeStrategy(), max_attempts=5)


@pytest.fixture
def link_service(link_store, allocator, cache):
    return LinkService(link_store, allocator, cache)


@pytest.fixture
def resolver(link_store, cache):
    return RedirectResolver(link_store, cache)


@pytest.fixture
def recorder(link_store, click_storage):
    return ClickRecorder(link_store, click_storage)


@pytest.fixture
def analytics(link_store, click_storage):
    return AnalyticsAggregator(link_store, click_storage)


@pytest.fixture(scope="function")
def client(tmp_path, monkeypatch):
    """
    Test client running the full lifespan (container + click worker)
    against a temporary database.
    """
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'api.db'}")

    with TestClient(app) as test_client:
        yield test_client
