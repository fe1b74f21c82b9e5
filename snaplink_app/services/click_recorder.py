"""
Click recording: one event row plus one atomic counter increment.
"""

import logging
from datetime import datetime
from typing import Optional

from snaplink_app.models.click import ClickEvent
from snaplink_app.models.common import ensure_utc, utcnow
from snaplink_app.services.user_agent import parse_user_agent
from snaplink_app.storage.link_store import LinkStore
from snaplink_app.storage.strategies import ClickStorageStrategy

logger = logging.getLogger(__name__)

MAX_HEADER_LENGTH = 500


def _clip(value: Optional[str]) -> Optional[str]:
    """Trim and cap free-text request headers; empty becomes None"""
    if value is None:
        return None
    value = value.strip()[:MAX_HEADER_LENGTH]
    return value or None


class ClickRecorder:
    """
    Writes a click to the event log and bumps the link's counter.

    The two writes are independent. If the process dies between them the
    event exists but the counter lags; the counter is never derived from a
    read of its old value, so concurrent clicks cannot overwrite each other.

    Blocking: callers on the event loop must run ``record`` in a thread.
    """

    def __init__(self, link_store: LinkStore, click_storage: ClickStorageStrategy):
        self.link_store = link_store
        self.click_storage = click_storage

    def record(
        self,
        link_id: str,
        ip: str,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        country: Optional[str] = None,
        city: Optional[str] = None,
        clicked_at: Optional[datetime] = None
    ) -> ClickEvent:
        """
        Record a single redirect.

        Args:
            link_id: Owning link
            ip: Visitor IP address
            user_agent: Raw User-Agent header
            referrer: Raw Referer header
            country: Optional geo enrichment, passed through
            city: Optional geo enrichment, passed through
            clicked_at: When the redirect happened (defaults to now)

        Returns:
            The stored ClickEvent
        """
        agent = parse_user_agent(user_agent)

        event = ClickEvent(
            link_id=link_id,
            ip=ip,
            user_agent=_clip(user_agent),
            device=agent.device,
            browser=agent.browser,
            os=agent.os,
            referrer=_clip(referrer),
            country=country,
            city=city,
            created_at=ensure_utc(clicked_at) or utcnow(),
        )

        # Step 1: append the event
        stored = self.click_storage.store_click(event)

        # Step 2: atomic counter increment
        if not self.link_store.increment_clicks(link_id):
            logger.warning("Click recorded for unknown link %s; counter not updated", link_id)

        return stored
