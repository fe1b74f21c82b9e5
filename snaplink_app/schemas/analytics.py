from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator
from snaplink_app.models.common import ensure_utc


class DailyClicks(BaseModel):
    """Clicks on one UTC calendar day"""
    date: str  # YYYY-MM-DD
    clicks: int


class DeviceStat(BaseModel):
    device: str
    count: int


class BrowserStat(BaseModel):
    browser: str
    count: int


class ReferrerStat(BaseModel):
    referrer: str
    count: int


class AnalyticsSummary(BaseModel):
    """Analytics for one link.

    total_clicks and unique_visitors are lifetime numbers; clicks_by_date
    only covers the requested window. Device, browser and referrer
    breakdowns are lifetime as well.
    """
    link_id: str
    short_code: str
    window_days: int
    total_clicks: int
    unique_visitors: int
    clicks_by_date: List[DailyClicks]
    device_stats: List[DeviceStat]
    browser_stats: List[BrowserStat]
    top_referrers: List[ReferrerStat]


class ClickView(BaseModel):
    """One entry of a link's click history"""
    ip: str
    device: str
    browser: Optional[str] = None
    os: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    referrer: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    model_config = ConfigDict(from_attributes=True)
