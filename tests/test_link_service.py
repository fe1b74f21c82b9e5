"""
Tests for link creation, lookup and deactivation.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import ScriptedStrategy
from snaplink_app.models.common import utcnow
from snaplink_app.services.code_allocator import CodeAllocator
from snaplink_app.services.exceptions import (
    CodeGenerationExhausted,
    CodeTaken,
    InvalidExpiry,
    InvalidUrl,
    LinkNotFound,
)
from snaplink_app.services.link_service import LinkService, cache_key
from snaplink_app.storage.link_store import LinkStore


class RacingLinkStore(LinkStore):
    """Availability checks always pass, so only the unique index can reject a code"""

    def code_exists(self, short_code: str) -> bool:
        return False


class TestLinkService:
    """Test link service business logic directly"""

    def test_create_short_link(self, link_service):
        link = asyncio.run(link_service.create_short_link("https://example.com/very/long/path"))

        assert len(link.id) == 32
        assert len(link.short_code) == 7
        assert link.short_code == link.short_code.lower()
        assert link.click_count == 0
        assert link.is_active is True
        assert link.expires_at is None

    def test_url_without_scheme_gets_https(self, link_service):
        link = asyncio.run(link_service.create_short_link("example.com/page"))
        assert link.original_url == "https://example.com/page"

    def test_same_url_returns_existing_link(self, link_service):
        first = asyncio.run(link_service.create_short_link("https://example.com/a"))
        second = asyncio.run(link_service.create_short_link("https://example.com/a"))

        assert second.id == first.id
        assert second.short_code == first.short_code

    def test_custom_code_skips_deduplication(self, link_service):
        first = asyncio.run(link_service.create_short_link("https://example.com/a"))
        custom = asyncio.run(link_service.create_short_link("https://example.com/a", custom_code="Campaign"))

        assert custom.id != first.id
        assert custom.short_code == "campaign"

    def test_deactivated_link_is_not_reused(self, link_service):
        first = asyncio.run(link_service.create_short_link("https://example.com/a"))
        asyncio.run(link_service.deactivate(first.id))

        second = asyncio.run(link_service.create_short_link("https://example.com/a"))
        assert second.id != first.id

    def test_duplicate_custom_code(self, link_service):
        asyncio.run(link_service.create_short_link("https://example.com/a", custom_code="mycode"))

        with pytest.raises(CodeTaken):
            asyncio.run(link_service.create_short_link("https://example.com/b", custom_code="MYCODE"))

    def test_invalid_url(self, link_service):
        with pytest.raises(InvalidUrl):
            asyncio.run(link_service.create_short_link("ftp://example.com/file"))

    def test_expiry_is_stored_in_utc(self, link_service):
        expires = datetime(2030, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        link = asyncio.run(link_service.create_short_link("https://example.com/e", expires_at=expires))

        stored = link_service.get_link(link.id)
        assert stored.expires_at.replace(tzinfo=timezone.utc) == datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_expiry_in_the_past_is_rejected(self, link_service):
        with pytest.raises(InvalidExpiry):
            asyncio.run(link_service.create_short_link(
                "https://example.com/promo", expires_at=utcnow() - timedelta(seconds=1)
            ))

    def test_expired_link_is_not_reused(self, link_service, link_store, resolver):
        expired = link_store.create_link(
            "https://example.com/promo", "oldpromo", expires_at=utcnow() - timedelta(seconds=1)
        )

        fresh = asyncio.run(link_service.create_short_link("https://example.com/promo"))

        assert fresh.id != expired.id
        assert asyncio.run(resolver.resolve(fresh.short_code)).id == fresh.id

    def test_unexpired_link_is_reused(self, link_service, link_store):
        live = link_store.create_link(
            "https://example.com/promo", "livepromo", expires_at=utcnow() + timedelta(hours=1)
        )

        again = asyncio.run(link_service.create_short_link("https://example.com/promo"))

        assert again.id == live.id

    def test_create_warms_cache(self, link_service, cache):
        link = asyncio.run(link_service.create_short_link("https://example.com/c"))
        assert asyncio.run(cache.get(cache_key(link.short_code))) is not None

    def test_get_unknown_link(self, link_service):
        with pytest.raises(LinkNotFound):
            link_service.get_link("0" * 32)

    def test_deactivate_invalidates_cache(self, link_service, link_store, cache):
        link = asyncio.run(link_service.create_short_link("https://example.com/d"))

        asyncio.run(link_service.deactivate(link.id))

        assert asyncio.run(cache.get(cache_key(link.short_code))) is None
        assert link_store.get_by_id(link.id).is_active is False

    def test_deactivate_unknown_link(self, link_service):
        with pytest.raises(LinkNotFound):
            asyncio.run(link_service.deactivate("0" * 32))


class TestInsertRace:
    """A candidate that passes the availability check can still lose the insert"""

    def test_duplicate_insert_is_retried_with_new_candidate(self, database, cache):
        store = RacingLinkStore(database)
        store.create_link("https://example.com/winner", "race001")

        strategy = ScriptedStrategy(["race001", "race002"])
        service = LinkService(store, CodeAllocator(store, strategy, max_attempts=5), cache)

        link = asyncio.run(service.create_short_link("https://example.com/loser"))

        assert link.short_code == "race002"
        assert strategy.calls == 2

    def test_races_share_the_attempt_budget(self, database, cache):
        store = RacingLinkStore(database)
        taken = [f"race00{i}" for i in range(1, 6)]
        for code in taken:
            store.create_link("https://example.com/winner", code)

        strategy = ScriptedStrategy(taken + ["race006"])
        service = LinkService(store, CodeAllocator(store, strategy, max_attempts=5), cache)

        with pytest.raises(CodeGenerationExhausted):
            asyncio.run(service.create_short_link("https://example.com/loser"))
        assert strategy.calls == 5

    def test_custom_code_race_reports_taken(self, database, cache):
        store = RacingLinkStore(database)
        store.create_link("https://example.com/winner", "promo")
        service = LinkService(store, CodeAllocator(store, ScriptedStrategy([])), cache)

        with pytest.raises(CodeTaken):
            asyncio.run(service.create_short_link("https://example.com/loser", custom_code="promo"))
