"""
Analytics aggregation over the click event log.
"""

from datetime import timedelta
from typing import List

from snaplink_app.models.click import ClickEvent
from snaplink_app.models.common import utcnow
from snaplink_app.schemas.analytics import AnalyticsSummary
from snaplink_app.services.exceptions import LinkNotFound
from snaplink_app.storage.link_store import LinkStore
from snaplink_app.storage.strategies import ClickStorageStrategy

TOP_N = 10


class AnalyticsAggregator:
    """
    Read-only summaries for a link.

    Headline numbers (total clicks, unique visitors) and the device, browser
    and referrer breakdowns cover the link's whole life; only the daily time
    series is restricted to the trailing window.
    """

    def __init__(self, link_store: LinkStore, click_storage: ClickStorageStrategy):
        self.link_store = link_store
        self.click_storage = click_storage

    def summarize(self, link_id: str, window_days: int) -> AnalyticsSummary:
        """
        Build the analytics summary for ``link_id``.

        Args:
            link_id: Link to report on
            window_days: Trailing window for clicks_by_date, in days

        Raises:
            LinkNotFound: unknown link id
            ValueError: window_days is not positive
        """
        if window_days < 1:
            raise ValueError("window_days must be at least 1")

        link = self.link_store.get_by_id(link_id)
        if link is None:
            raise LinkNotFound()

        since = utcnow() - timedelta(days=window_days)
        storage = self.click_storage

        return AnalyticsSummary(
            link_id=link.id,
            short_code=link.short_code,
            window_days=window_days,
            total_clicks=storage.count_clicks(link.id),
            unique_visitors=storage.count_unique_visitors(link.id),
            clicks_by_date=storage.get_clicks_by_date(link.id, since),
            device_stats=storage.get_device_stats(link.id),
            browser_stats=storage.get_browser_stats(link.id, limit=TOP_N),
            top_referrers=storage.get_top_referrers(link.id, limit=TOP_N),
        )

    def click_history(self, link_id: str, limit: int = 100) -> List[ClickEvent]:
        """Most recent clicks for a link, newest first"""
        if self.link_store.get_by_id(link_id) is None:
            raise LinkNotFound()
        return self.click_storage.get_recent_clicks(link_id, limit=limit)
