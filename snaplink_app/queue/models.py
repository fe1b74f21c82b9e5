"""
Data models for queue messages.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from snaplink_app.models.common import utcnow


class HitEvent(BaseModel):
    """
    Event model for link click tracking.

    This is published to the queue when a visitor is redirected.
    Contains all request metadata the click recorder needs; user-agent
    parsing happens in the worker, not on the redirect path.
    """

    link_id: str = Field(..., description="Id of the link that was resolved")
    short_code: str = Field(..., description="The short code that was accessed")
    timestamp: datetime = Field(default_factory=utcnow, description="When the redirect happened")

    # Request metadata
    ip_address: str = Field("0.0.0.0", description="Client IP address")
    user_agent: Optional[str] = Field(None, description="User agent string")
    referer: Optional[str] = Field(None, description="HTTP referer")

    # Optional enrichment, passed through untouched
    country: Optional[str] = Field(None, description="Country code (e.g., US, UK)")
    city: Optional[str] = Field(None, description="City name")

    # Assigned by the queue on consume, never serialized
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = {
        "json_schema_extra": {
            "example": {
                "link_id": "3f2b8c1e9a7d4e0fb6c5a4d3e2f1a0b9",
                "short_code": "k3xm9pq",
                "timestamp": "2025-10-29T10:30:00Z",
                "ip_address": "192.168.1.1",
                "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                "referer": "https://twitter.com",
                "country": "US",
                "city": None,
            }
        }
    }
