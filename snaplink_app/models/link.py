from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String

from snaplink_app.database.connection import Base
from snaplink_app.models.common import new_id, utcnow


class ShortLink(Base):
    """
    A short code -> original URL mapping.

    ``short_code`` is stored lowercase and carries a unique index, so the
    database (not the allocator) is the final word on uniqueness.
    ``click_count`` is only ever changed with an atomic SQL increment.
    """
    __tablename__ = "short_links"

    id = Column(String(32), primary_key=True, default=new_id)
    original_url = Column(String(2048), nullable=False, index=True)
    # unique=True + index=True creates a unique index
    short_code = Column(String(12), unique=True, nullable=False, index=True)
    click_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("click_count >= 0", name="ck_short_links_click_count"),
    )

    def __repr__(self):
        return f"<ShortLink {self.short_code} -> {self.original_url}>"
