"""
Click storage strategies using Strategy Pattern.

Allows switching the click event log between:
- SQL: the main database through SQLAlchemy (default, durable)
- Memory: a process-local list (development/testing)

Both strategies answer the same grouped queries, so the analytics layer never
knows which one it is talking to.
"""

import threading
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from typing import Dict, List

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import OperationalError

from snaplink_app.database.connection import Database
from snaplink_app.models.click import ClickEvent
from snaplink_app.models.common import ensure_utc, new_id, utcnow
from snaplink_app.services.exceptions import StoreUnavailable


def utc_day(column, dialect_name: str):
    """
    Calendar day (UTC) of a timestamp column.

    PostgreSQL casts timestamptz to a date in the session time zone, so the
    value is shifted to UTC first. SQLite stores the UTC wall time already.
    """
    if dialect_name == "postgresql":
        return func.date(func.timezone("UTC", column))
    return func.date(column)


class ClickStorageStrategy(ABC):
    """
    Abstract base class for click storage strategies.

    This interface defines how click events are appended and how the event log
    is grouped and counted for analytics. Methods are synchronous; callers on
    the event loop push them to a thread.
    """

    @abstractmethod
    def store_click(self, event: ClickEvent) -> ClickEvent:
        """
        Append a single click event.

        Args:
            event: Unsaved ClickEvent with parsed metadata

        Returns:
            The stored event (id and created_at filled in)
        """
        pass

    @abstractmethod
    def count_clicks(self, link_id: str) -> int:
        """Lifetime click count for a link"""
        pass

    @abstractmethod
    def count_unique_visitors(self, link_id: str) -> int:
        """Number of distinct IPs that clicked a link"""
        pass

    @abstractmethod
    def get_clicks_by_date(self, link_id: str, since: datetime) -> List[Dict]:
        """Clicks at or after ``since`` per UTC day, ascending: [{date, clicks}]"""
        pass

    @abstractmethod
    def get_device_stats(self, link_id: str) -> List[Dict]:
        """Clicks grouped by device: [{device, count}]"""
        pass

    @abstractmethod
    def get_browser_stats(self, link_id: str, limit: int = 10) -> List[Dict]:
        """Most common non-null browsers: [{browser, count}]"""
        pass

    @abstractmethod
    def get_top_referrers(self, link_id: str, limit: int = 10) -> List[Dict]:
        """Most common non-null referrers: [{referrer, count}]"""
        pass

    @abstractmethod
    def get_recent_clicks(self, link_id: str, limit: int = 100) -> List[ClickEvent]:
        """Latest click events, newest first"""
        pass


class SQLClickStorage(ClickStorageStrategy):
    """
    Click storage in the main SQL database.

    Each summary is a separate grouped query over ``click_events``; the
    (link_id, created_at) index serves the windowed date query.
    """

    def __init__(self, database: Database):
        self.database = database

    def store_click(self, event: ClickEvent) -> ClickEvent:
        with self.database.session() as db:
            try:
                db.add(event)
                db.commit()
            except OperationalError as e:
                db.rollback()
                raise StoreUnavailable() from e
            db.refresh(event)
        return event

    def count_clicks(self, link_id: str) -> int:
        stmt = select(func.count(ClickEvent.id)).where(ClickEvent.link_id == link_id)
        return self._scalar(stmt) or 0

    def count_unique_visitors(self, link_id: str) -> int:
        stmt = select(func.count(distinct(ClickEvent.ip))).where(ClickEvent.link_id == link_id)
        return self._scalar(stmt) or 0

    def get_clicks_by_date(self, link_id: str, since: datetime) -> List[Dict]:
        day = utc_day(ClickEvent.created_at, self.database.engine.dialect.name)
        stmt = (
            select(day.label("date"), func.count(ClickEvent.id).label("clicks"))
            .where(ClickEvent.link_id == link_id, ClickEvent.created_at >= since)
            .group_by(day)
            .order_by(day)
        )
        return [
            {
                # SQLite returns the day as text, PostgreSQL as a date
                "date": row.date if isinstance(row.date, str) else row.date.isoformat(),
                "clicks": row.clicks,
            }
            for row in self._rows(stmt)
        ]

    def get_device_stats(self, link_id: str) -> List[Dict]:
        count = func.count(ClickEvent.id)
        stmt = (
            select(ClickEvent.device, count.label("total"))
            .where(ClickEvent.link_id == link_id)
            .group_by(ClickEvent.device)
            .order_by(count.desc(), ClickEvent.device)
        )
        return [{"device": row.device, "count": row.total} for row in self._rows(stmt)]

    def get_browser_stats(self, link_id: str, limit: int = 10) -> List[Dict]:
        count = func.count(ClickEvent.id)
        stmt = (
            select(ClickEvent.browser, count.label("total"))
            .where(ClickEvent.link_id == link_id, ClickEvent.browser.isnot(None))
            .group_by(ClickEvent.browser)
            .order_by(count.desc(), ClickEvent.browser)
            .limit(limit)
        )
        return [{"browser": row.browser, "count": row.total} for row in self._rows(stmt)]

    def get_top_referrers(self, link_id: str, limit: int = 10) -> List[Dict]:
        count = func.count(ClickEvent.id)
        stmt = (
            select(ClickEvent.referrer, count.label("total"))
            .where(ClickEvent.link_id == link_id, ClickEvent.referrer.isnot(None))
            .group_by(ClickEvent.referrer)
            .order_by(count.desc(), ClickEvent.referrer)
            .limit(limit)
        )
        return [{"referrer": row.referrer, "count": row.total} for row in self._rows(stmt)]

    def get_recent_clicks(self, link_id: str, limit: int = 100) -> List[ClickEvent]:
        stmt = (
            select(ClickEvent)
            .where(ClickEvent.link_id == link_id)
            .order_by(ClickEvent.created_at.desc())
            .limit(limit)
        )
        with self.database.session() as db:
            try:
                return list(db.execute(stmt).scalars().all())
            except OperationalError as e:
                raise StoreUnavailable() from e

    def _scalar(self, stmt):
        with self.database.session() as db:
            try:
                return db.execute(stmt).scalar()
            except OperationalError as e:
                raise StoreUnavailable() from e

    def _rows(self, stmt) -> list:
        with self.database.session() as db:
            try:
                return db.execute(stmt).all()
            except OperationalError as e:
                raise StoreUnavailable() from e


class InMemoryClickStorage(ClickStorageStrategy):
    """
    In-memory click storage using a Python list.

    Pros:
    - No database needed
    - Good for development and unit tests

    Cons:
    - Lost on restart
    - Not shared between processes (the worker must run in the API process)

    Grouping mirrors SQLClickStorage, including tie-breaking by name.
    """

    def __init__(self):
        self._events: List[ClickEvent] = []
        self._lock = threading.Lock()

    def store_click(self, event: ClickEvent) -> ClickEvent:
        if event.id is None:
            event.id = new_id()
        event.created_at = ensure_utc(event.created_at) or utcnow()
        with self._lock:
            self._events.append(event)
        return event

    def _for_link(self, link_id: str) -> List[ClickEvent]:
        with self._lock:
            return [event for event in self._events if event.link_id == link_id]

    def count_clicks(self, link_id: str) -> int:
        return len(self._for_link(link_id))

    def count_unique_visitors(self, link_id: str) -> int:
        return len({event.ip for event in self._for_link(link_id)})

    def get_clicks_by_date(self, link_id: str, since: datetime) -> List[Dict]:
        since = ensure_utc(since)
        days = Counter(
            event.created_at.date().isoformat()
            for event in self._for_link(link_id)
            if event.created_at >= since
        )
        return [{"date": day, "clicks": days[day]} for day in sorted(days)]

    def get_device_stats(self, link_id: str) -> List[Dict]:
        devices = Counter(event.device for event in self._for_link(link_id))
        return [
            {"device": device, "count": count}
            for device, count in self._ranked(devices)
        ]

    def get_browser_stats(self, link_id: str, limit: int = 10) -> List[Dict]:
        browsers = Counter(
            event.browser for event in self._for_link(link_id) if event.browser is not None
        )
        return [
            {"browser": browser, "count": count}
            for browser, count in self._ranked(browsers)[:limit]
        ]

    def get_top_referrers(self, link_id: str, limit: int = 10) -> List[Dict]:
        referrers = Counter(
            event.referrer for event in self._for_link(link_id) if event.referrer is not None
        )
        return [
            {"referrer": referrer, "count": count}
            for referrer, count in self._ranked(referrers)[:limit]
        ]

    def get_recent_clicks(self, link_id: str, limit: int = 100) -> List[ClickEvent]:
        events = sorted(self._for_link(link_id), key=lambda e: e.created_at, reverse=True)
        return events[:limit]

    @staticmethod
    def _ranked(counter: Counter) -> list:
        return sorted(counter.items(), key=lambda item: (-item[1], item[0]))
