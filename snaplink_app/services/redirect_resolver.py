"""
Resolve short codes to redirect targets using the Cache-Aside pattern.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from snaplink_app.cache.strategies import CacheStrategy
from snaplink_app.models.common import utcnow
from snaplink_app.schemas.link import LinkSnapshot
from snaplink_app.services.exceptions import LinkExpired, LinkInactive, LinkNotFound
from snaplink_app.services.link_service import cache_key
from snaplink_app.storage.link_store import LinkStore

logger = logging.getLogger(__name__)


class RedirectResolver:
    """
    Resolves a code to a live link.

    Flow:
    1. Check cache first
    2. If cache miss, query database and populate cache
    3. Check active flag and expiry on every resolve, cached or not

    Hit tracking is not done here; the redirect endpoint publishes a click
    message after a successful resolve.
    """

    def __init__(
        self,
        link_store: LinkStore,
        cache: Optional[CacheStrategy] = None,
        cache_ttl: int = 3600
    ):
        self.link_store = link_store
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def resolve(self, short_code: str) -> LinkSnapshot:
        """
        Raises:
            LinkNotFound: no link owns the code
            LinkInactive: the link was deactivated
            LinkExpired: expires_at is not in the future
        """
        snapshot = await self._lookup(short_code)
        if snapshot is None:
            raise LinkNotFound()
        if not snapshot.is_active:
            raise LinkInactive()
        if snapshot.expires_at is not None and snapshot.expires_at <= utcnow():
            raise LinkExpired()
        return snapshot

    async def _lookup(self, short_code: str) -> Optional[LinkSnapshot]:
        key = cache_key(short_code)

        if self.cache:
            cached = await self.cache.get(key)
            if cached:
                try:
                    return LinkSnapshot.model_validate_json(cached)
                except ValidationError:
                    logger.warning("Discarding unreadable cache entry %s", key)
                    await self.cache.delete(key)

        link = self.link_store.get_by_code(short_code)
        if link is None:
            return None

        snapshot = LinkSnapshot.model_validate(link)
        if self.cache:
            await self.cache.set(key, snapshot.model_dump_json(), ttl=self.cache_ttl)
        return snapshot
