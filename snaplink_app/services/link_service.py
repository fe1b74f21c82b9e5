import logging
from datetime import datetime
from typing import Optional

from snaplink_app.cache.strategies import CacheStrategy
from snaplink_app.models.common import ensure_utc, utcnow
from snaplink_app.models.link import ShortLink
from snaplink_app.schemas.link import LinkSnapshot
from snaplink_app.services.code_allocator import CodeAllocator
from snaplink_app.services.exceptions import (
    CodeGenerationExhausted,
    CodeTaken,
    DuplicateCode,
    InvalidExpiry,
    LinkNotFound,
)
from snaplink_app.services.validators import normalize_url
from snaplink_app.storage.link_store import LinkStore

logger = logging.getLogger(__name__)


def cache_key(short_code: str) -> str:
    return f"link:{short_code.lower()}"


class LinkService:
    """
    Link service with dependency injection for storage, allocation and cache.

    - LinkStore and CodeAllocator are injected (not created internally)
    - The cache is optional; without one every lookup goes to the database

    Database operations are sync, cache operations are async. Mixing is fine:
    the store calls are short point queries.
    """

    def __init__(
        self,
        link_store: LinkStore,
        allocator: CodeAllocator,
        cache: Optional[CacheStrategy] = None,
        cache_ttl: int = 3600
    ):
        self.link_store = link_store
        self.allocator = allocator
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def create_short_link(
        self,
        url: str,
        custom_code: Optional[str] = None,
        expires_at: Optional[datetime] = None
    ) -> ShortLink:
        """
        Create a short link, or return the existing one for the same URL.

        Process:
        1. Normalize and validate the URL
        2. Without a custom code, reuse an active link that has not
           expired for the same URL
        3. Allocate a code and insert; a generated code that loses an insert
           race is replaced, sharing one attempt budget with the collision checks
        4. Warm the cache with the new link

        Raises:
            InvalidUrl, InvalidExpiry, InvalidCustomCode, ReservedCode, CodeTaken,
            CodeGenerationExhausted, StoreUnavailable
        """
        original_url = normalize_url(url)
        expires_at = ensure_utc(expires_at)
        if expires_at is not None and expires_at <= utcnow():
            raise InvalidExpiry()

        if custom_code is not None:
            link = self._create_with_custom_code(original_url, custom_code, expires_at)
        else:
            existing = self.link_store.find_existing(original_url)
            if existing is not None:
                logger.debug("Reusing link %s for %s", existing.short_code, original_url)
                return existing
            link = self._create_with_generated_code(original_url, expires_at)

        logger.info("Created short link %s -> %s", link.short_code, link.original_url)
        await self._cache_snapshot(link)
        return link

    def _create_with_custom_code(
        self,
        original_url: str,
        custom_code: str,
        expires_at: Optional[datetime]
    ) -> ShortLink:
        code = self.allocator.allocate_custom(custom_code)
        try:
            return self.link_store.create_link(original_url, code, expires_at)
        except DuplicateCode as e:
            raise CodeTaken() from e

    def _create_with_generated_code(
        self,
        original_url: str,
        expires_at: Optional[datetime]
    ) -> ShortLink:
        attempts = self.allocator.max_attempts
        for attempt in range(1, attempts + 1):
            code = self.allocator.try_generate()
            if code is None:
                logger.info("Short code collision on attempt %d/%d", attempt, attempts)
                continue
            try:
                return self.link_store.create_link(original_url, code, expires_at)
            except DuplicateCode:
                logger.info("Short code %s lost an insert race on attempt %d/%d", code, attempt, attempts)

        raise CodeGenerationExhausted()

    def get_link(self, link_id: str) -> ShortLink:
        link = self.link_store.get_by_id(link_id)
        if link is None:
            raise LinkNotFound()
        return link

    async def deactivate(self, link_id: str) -> ShortLink:
        """
        Soft delete a link and invalidate its cache entry.

        The short code stays taken.
        """
        link = self.get_link(link_id)
        self.link_store.deactivate(link.id)
        link.is_active = False

        if self.cache:
            await self.cache.delete(cache_key(link.short_code))

        logger.info("Deactivated short link %s", link.short_code)
        return link

    async def _cache_snapshot(self, link: ShortLink) -> None:
        if self.cache:
            snapshot = LinkSnapshot.model_validate(link)
            await self.cache.set(cache_key(link.short_code), snapshot.model_dump_json(), ttl=self.cache_ttl)
