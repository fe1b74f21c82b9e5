"""
Tests for analytics aggregation over both click storage backends.
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy.dialects.postgresql.base import PGDialect
from sqlalchemy.dialects.sqlite.base import SQLiteDialect

from snaplink_app.models.click import ClickEvent
from snaplink_app.models.common import utcnow
from snaplink_app.services.analytics_service import AnalyticsAggregator
from snaplink_app.services.click_recorder import ClickRecorder
from snaplink_app.services.exceptions import LinkNotFound
from snaplink_app.storage.strategies import InMemoryClickStorage, SQLClickStorage, utc_day

from test_click_recorder import IPHONE_SAFARI, WINDOWS_CHROME, LINUX_FIREFOX


@pytest.fixture(params=["sql", "memory"])
def storage(request, database):
    if request.param == "sql":
        return SQLClickStorage(database)
    return InMemoryClickStorage()


@pytest.fixture
def wired(link_store, storage):
    return ClickRecorder(link_store, storage), AnalyticsAggregator(link_store, storage)


class TestAnalyticsAggregator:

    def test_three_visit_scenario(self, link_service, wired):
        recorder, analytics = wired
        link = asyncio.run(link_service.create_short_link("https://example.com/very/long/path"))
        assert len(link.short_code) == 7
        assert link.click_count == 0

        recorder.record(link.id, "1.1.1.1", IPHONE_SAFARI)
        recorder.record(link.id, "2.2.2.2", WINDOWS_CHROME)
        recorder.record(link.id, "1.1.1.1", IPHONE_SAFARI)

        summary = analytics.summarize(link.id, 30)

        assert summary.total_clicks == 3
        assert summary.unique_visitors == 2
        assert [(d.device, d.count) for d in summary.device_stats] == [("mobile", 2), ("desktop", 1)]
        browsers = {b.browser: b.count for b in summary.browser_stats}
        assert browsers == {"Safari": 2, "Chrome": 1}

    def test_only_clicks_by_date_is_windowed(self, link_store, wired):
        recorder, analytics = wired
        link = link_store.create_link("https://example.com/", "window")
        now = utcnow()

        old = recorder.record(link.id, "1.1.1.1", LINUX_FIREFOX, referrer="https://old.example", clicked_at=now - timedelta(days=10))
        recent = recorder.record(link.id, "2.2.2.2", WINDOWS_CHROME, clicked_at=now)

        summary = analytics.summarize(link.id, 7)

        assert summary.window_days == 7
        assert summary.total_clicks == 2
        assert summary.unique_visitors == 2
        assert [d.date for d in summary.clicks_by_date] == [recent.created_at.date().isoformat()]
        assert old.created_at.date().isoformat() not in [d.date for d in summary.clicks_by_date]
        assert {b.browser for b in summary.browser_stats} == {"Firefox", "Chrome"}
        assert [r.referrer for r in summary.top_referrers] == ["https://old.example"]

    def test_clicks_by_date_ascending_without_backfill(self, link_store, wired):
        recorder, analytics = wired
        link = link_store.create_link("https://example.com/", "series")
        now = utcnow()

        for days_ago in (5, 5, 1, 3):
            recorder.record(link.id, "1.1.1.1", clicked_at=now - timedelta(days=days_ago))

        series = analytics.summarize(link.id, 30).clicks_by_date

        assert [d.clicks for d in series] == [2, 1, 1]
        assert [d.date for d in series] == sorted(d.date for d in series)

    def test_breakdowns_skip_missing_values(self, link_store, wired):
        recorder, analytics = wired
        link = link_store.create_link("https://example.com/", "nulls")

        recorder.record(link.id, "1.1.1.1")

        summary = analytics.summarize(link.id, 30)
        assert summary.browser_stats == []
        assert summary.top_referrers == []
        assert [(d.device, d.count) for d in summary.device_stats] == [("unknown", 1)]

    def test_top_referrers_limited_to_ten(self, link_store, wired):
        recorder, analytics = wired
        link = link_store.create_link("https://example.com/", "refs")

        for i in range(12):
            for _ in range(i + 1):
                recorder.record(link.id, "1.1.1.1", referrer=f"https://ref{i:02d}.example")

        referrers = analytics.summarize(link.id, 30).top_referrers

        assert len(referrers) == 10
        assert referrers[0].referrer == "https://ref11.example"
        assert referrers[0].count == 12
        assert [r.count for r in referrers] == sorted((r.count for r in referrers), reverse=True)

    def test_empty_link(self, link_store, wired):
        _, analytics = wired
        link = link_store.create_link("https://example.com/", "quiet")

        summary = analytics.summarize(link.id, 30)

        assert summary.total_clicks == 0
        assert summary.unique_visitors == 0
        assert summary.clicks_by_date == []
        assert summary.device_stats == []

    def test_unknown_link(self, wired):
        _, analytics = wired
        with pytest.raises(LinkNotFound):
            analytics.summarize("0" * 32, 30)

    def test_window_must_be_positive(self, link_store, wired):
        _, analytics = wired
        link = link_store.create_link("https://example.com/", "zero")
        with pytest.raises(ValueError):
            analytics.summarize(link.id, 0)

    def test_click_history_newest_first(self, link_store, wired):
        recorder, analytics = wired
        link = link_store.create_link("https://example.com/", "hist")
        now = utcnow()

        for minutes_ago in (30, 10, 20):
            recorder.record(link.id, f"9.9.9.{minutes_ago}", clicked_at=now - timedelta(minutes=minutes_ago))

        history = analytics.click_history(link.id, limit=2)

        assert [c.ip for c in history] == ["9.9.9.10", "9.9.9.20"]


class TestDayBucketing:
    """Dates are grouped by UTC day on every database"""

    def test_postgresql_shifts_to_utc_before_truncating(self):
        sql = str(utc_day(ClickEvent.created_at, "postgresql").compile(dialect=PGDialect()))
        assert sql.replace(" ", "").startswith("date(timezone(")
        assert "click_events.created_at" in sql

    def test_sqlite_uses_stored_utc_value(self):
        sql = str(utc_day(ClickEvent.created_at, "sqlite").compile(dialect=SQLiteDialect()))
        assert sql == "date(click_events.created_at)"
