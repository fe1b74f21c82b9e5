"""
Helpers shared by the models: identifiers, UTC timestamps and enums.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class DeviceType(str, Enum):
    """Device classes a click can be attributed to"""
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"
    UNKNOWN = "unknown"


def new_id() -> str:
    """Opaque 32-character identifier"""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite hands back naive values even for ``DateTime(timezone=True)``
    columns; everything is written in UTC so the naive value is UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
