from pydantic import BaseModel, Field, computed_field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from snaplink_app.config import settings
from snaplink_app.models.common import ensure_utc


class LinkCreate(BaseModel):
    """Request body for creating a short link.

    ``url`` is a plain string: normalization (default https scheme) and
    validation happen in the service layer so they can be tested on their own.
    """
    url: str = Field(..., max_length=4096, description="The original URL to be shortened")
    custom_code: Optional[str] = Field(None, description="Optional custom short code (4-12 chars)")
    expires_at: Optional[datetime] = Field(None, description="Optional expiry timestamp")


class LinkResponse(BaseModel):
    """Response schema that serializes a ShortLink model

    - from_attributes=True reads straight from the SQLAlchemy object
    - short_url is computed from the configured base URL, never stored
    """
    id: str
    original_url: str
    short_code: str
    click_count: int
    is_active: bool
    expires_at: Optional[datetime] = None
    created_at: datetime

    @computed_field
    @property
    def short_url(self) -> str:
        return f"{settings.base_url.rstrip('/')}/{self.short_code}"

    @field_validator("expires_at", "created_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    model_config = ConfigDict(from_attributes=True)


class LinkSnapshot(BaseModel):
    """What the redirect path needs to know about a link.

    This is the shape kept in the link cache; expiry is re-checked on every
    resolve, so a cached snapshot never outlives its link's expiry.
    """
    id: str
    short_code: str
    original_url: str
    is_active: bool
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    model_config = ConfigDict(from_attributes=True)
