"""
Durable short code -> link mapping.

Every method opens its own short session on the shared Database handle, so
the store can be used from request handlers and from click worker threads.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, OperationalError

from snaplink_app.database.connection import Database
from snaplink_app.models.common import utcnow
from snaplink_app.models.link import ShortLink
from snaplink_app.services.exceptions import DuplicateCode, StoreUnavailable


class LinkStore:
    """SQLAlchemy-backed storage for ShortLink rows"""

    def __init__(self, database: Database):
        self.database = database

    def create_link(
        self,
        original_url: str,
        short_code: str,
        expires_at: Optional[datetime] = None
    ) -> ShortLink:
        """
        Insert a new link.

        Raises:
            DuplicateCode: the unique index on short_code rejected the row
        """
        link = ShortLink(
            original_url=original_url,
            short_code=short_code.lower(),
            expires_at=expires_at,
        )
        with self.database.session() as db:
            try:
                db.add(link)
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise DuplicateCode() from e
            except OperationalError as e:
                db.rollback()
                raise StoreUnavailable() from e
            db.refresh(link)
        return link

    def get_by_code(self, short_code: str) -> Optional[ShortLink]:
        """Case-insensitive lookup, active or not"""
        stmt = select(ShortLink).where(ShortLink.short_code == short_code.lower())
        return self._first(stmt)

    def get_by_id(self, link_id: str) -> Optional[ShortLink]:
        return self._first(select(ShortLink).where(ShortLink.id == link_id))

    def find_existing(self, original_url: str) -> Optional[ShortLink]:
        """Oldest active, unexpired link for an already-normalized URL"""
        stmt = (
            select(ShortLink)
            .where(
                ShortLink.original_url == original_url,
                ShortLink.is_active.is_(True),
                or_(ShortLink.expires_at.is_(None), ShortLink.expires_at > utcnow()),
            )
            .order_by(ShortLink.created_at)
            .limit(1)
        )
        return self._first(stmt)

    def code_exists(self, short_code: str) -> bool:
        stmt = select(func.count()).select_from(ShortLink).where(
            ShortLink.short_code == short_code.lower()
        )
        with self.database.session() as db:
            try:
                return db.execute(stmt).scalar_one() > 0
            except OperationalError as e:
                raise StoreUnavailable() from e

    def increment_clicks(self, link_id: str, amount: int = 1) -> bool:
        """
        Atomically add ``amount`` to click_count.

        Runs a single UPDATE ... SET click_count = click_count + :amount so
        concurrent clicks never overwrite each other. Returns False when no
        row matched.
        """
        stmt = (
            update(ShortLink)
            .where(ShortLink.id == link_id)
            .values(click_count=ShortLink.click_count + amount)
        )
        return self._execute_update(stmt) > 0

    def deactivate(self, link_id: str) -> bool:
        """Soft delete; the code stays taken"""
        stmt = update(ShortLink).where(ShortLink.id == link_id).values(is_active=False)
        return self._execute_update(stmt) > 0

    def _execute_update(self, stmt) -> int:
        with self.database.session() as db:
            try:
                result = db.execute(stmt)
                db.commit()
            except OperationalError as e:
                db.rollback()
                raise StoreUnavailable() from e
            return result.rowcount

    def _first(self, stmt) -> Optional[ShortLink]:
        with self.database.session() as db:
            try:
                return db.execute(stmt).scalars().first()
            except OperationalError as e:
                raise StoreUnavailable() from e
