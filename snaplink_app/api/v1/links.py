from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from snaplink_app.api.rate_limit import CREATE_LINK_LIMIT, limiter
from snaplink_app.dependencies import get_analytics, get_link_service, get_settings
from snaplink_app.config import Settings
from snaplink_app.schemas.analytics import AnalyticsSummary, ClickView
from snaplink_app.schemas.link import LinkCreate, LinkResponse
from snaplink_app.services.analytics_service import AnalyticsAggregator
from snaplink_app.services.link_service import LinkService

router = APIRouter(prefix="/links", tags=["links"])


@router.post("/", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(CREATE_LINK_LIMIT)
async def create_short_link(
    request: Request,
    link_data: LinkCreate,
    link_service: LinkService = Depends(get_link_service)
):
    """Create a short link, or return the existing one for the same URL"""
    return await link_service.create_short_link(
        link_data.url,
        custom_code=link_data.custom_code,
        expires_at=link_data.expires_at,
    )


@router.get("/{link_id}", response_model=LinkResponse)
def get_link(
    link_id: str,
    link_service: LinkService = Depends(get_link_service)
):
    return link_service.get_link(link_id)


@router.get("/{link_id}/analytics", response_model=AnalyticsSummary)
def get_link_analytics(
    link_id: str,
    days: Optional[int] = Query(None, ge=1, le=365, description="Window for clicks_by_date"),
    analytics: AnalyticsAggregator = Depends(get_analytics),
    settings: Settings = Depends(get_settings)
):
    """
    Click analytics for a link.

    Runs in FastAPI's threadpool: the grouped queries are blocking.
    """
    return analytics.summarize(link_id, days or settings.analytics_default_days)


@router.get("/{link_id}/clicks", response_model=List[ClickView])
def get_link_clicks(
    link_id: str,
    limit: int = Query(100, ge=1, le=1000),
    analytics: AnalyticsAggregator = Depends(get_analytics)
):
    """Recent clicks, newest first"""
    return analytics.click_history(link_id, limit=limit)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    link_id: str,
    link_service: LinkService = Depends(get_link_service)
):
    """Deactivate a link (soft delete, async for cache invalidation)"""
    await link_service.deactivate(link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
