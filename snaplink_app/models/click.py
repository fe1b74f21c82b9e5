from sqlalchemy import Column, DateTime, ForeignKey, Index, String

from snaplink_app.database.connection import Base
from snaplink_app.models.common import DeviceType, new_id, utcnow


class ClickEvent(Base):
    """
    One recorded redirect. Rows are insert-only.

    ShortLink has no relationship to its events; they are reached through
    queries on ``link_id``.
    """
    __tablename__ = "click_events"

    id = Column(String(32), primary_key=True, default=new_id)
    link_id = Column(
        String(32),
        ForeignKey("short_links.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ip = Column(String(45), nullable=False)  # IPv4 or IPv6
    user_agent = Column(String(500), nullable=True)
    device = Column(String(10), nullable=False, default=DeviceType.UNKNOWN.value)
    browser = Column(String(50), nullable=True)
    os = Column(String(50), nullable=True)
    referrer = Column(String(500), nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    __table_args__ = (
        Index("ix_click_events_link_created", "link_id", "created_at"),
    )

    def __repr__(self):
        return f"<ClickEvent {self.id} for link {self.link_id}>"
