"""
Tests for resolving short codes (cache-aside, activity and expiry rules).
"""

import asyncio
from datetime import timedelta

import pytest

from snaplink_app.cache.strategies import NullCache
from snaplink_app.models.link import ShortLink
from snaplink_app.models.common import utcnow
from snaplink_app.schemas.link import LinkSnapshot
from snaplink_app.services.exceptions import LinkExpired, LinkInactive, LinkNotFound
from snaplink_app.services.link_service import cache_key
from snaplink_app.services.redirect_resolver import RedirectResolver


class TestRedirectResolver:

    def test_resolves_active_link(self, link_store, resolver):
        link = link_store.create_link("https://example.com/target", "go4it")

        snapshot = asyncio.run(resolver.resolve("go4it"))

        assert snapshot.id == link.id
        assert snapshot.original_url == "https://example.com/target"

    def test_lookup_is_case_insensitive(self, link_store, resolver):
        link_store.create_link("https://example.com/target", "mixed")
        assert asyncio.run(resolver.resolve("MiXeD")).short_code == "mixed"

    def test_unknown_code(self, resolver):
        with pytest.raises(LinkNotFound):
            asyncio.run(resolver.resolve("nothere"))

    def test_inactive_link_is_not_found(self, link_store, resolver):
        link = link_store.create_link("https://example.com/old", "retired")
        link_store.deactivate(link.id)

        with pytest.raises(LinkInactive) as exc_info:
            asyncio.run(resolver.resolve("retired"))
        assert isinstance(exc_info.value, LinkNotFound)
        assert exc_info.value.detail == "Short URL is inactive"

    def test_expired_one_second_ago(self, link_store, resolver):
        link_store.create_link("https://example.com/sale", "sale1", expires_at=utcnow() - timedelta(seconds=1))

        with pytest.raises(LinkExpired):
            asyncio.run(resolver.resolve("sale1"))

    def test_expires_one_second_from_now(self, link_store, resolver):
        link_store.create_link("https://example.com/sale", "sale2", expires_at=utcnow() + timedelta(seconds=1))

        assert asyncio.run(resolver.resolve("sale2")).original_url == "https://example.com/sale"

    def test_miss_populates_cache(self, link_store, resolver, cache):
        link_store.create_link("https://example.com/c", "cached")

        asyncio.run(resolver.resolve("cached"))

        assert asyncio.run(cache.get(cache_key("cached"))) is not None

    def test_cache_hit_skips_database(self, link_store, resolver):
        link = link_store.create_link("https://example.com/c", "hit42")
        asyncio.run(resolver.resolve("hit42"))

        # Remove the row behind the cache's back
        with link_store.database.session() as db:
            db.delete(db.get(ShortLink, link.id))
            db.commit()

        assert asyncio.run(resolver.resolve("hit42")).id == link.id

    def test_expiry_checked_on_cache_hit(self, link_store, cache):
        resolver = RedirectResolver(link_store, cache)
        link = link_store.create_link("https://example.com/x", "soon", expires_at=utcnow() + timedelta(seconds=30))

        expired = LinkSnapshot.model_validate(link).model_copy(
            update={"expires_at": utcnow() - timedelta(seconds=1)}
        )
        asyncio.run(cache.set(cache_key("soon"), expired.model_dump_json()))

        with pytest.raises(LinkExpired):
            asyncio.run(resolver.resolve("soon"))

    def test_unreadable_cache_entry_falls_back_to_database(self, link_store, cache):
        resolver = RedirectResolver(link_store, cache)
        link_store.create_link("https://example.com/y", "broken")
        asyncio.run(cache.set(cache_key("broken"), "not json"))

        assert asyncio.run(resolver.resolve("broken")).short_code == "broken"

    def test_works_without_cache(self, link_store):
        resolver = RedirectResolver(link_store, NullCache())
        link_store.create_link("https://example.com/z", "nocache")

        assert asyncio.run(resolver.resolve("nocache")).short_code == "nocache"
