import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import RedirectResponse

from snaplink_app.config import settings
from snaplink_app.dependencies import get_client_ip, get_queue, get_redirect_resolver
from snaplink_app.queue.models import HitEvent
from snaplink_app.queue.strategies import QueueStrategy
from snaplink_app.services.redirect_resolver import RedirectResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirect"])


async def publish_click(queue: QueueStrategy, queue_name: str, hit_event: HitEvent) -> None:
    """Queue a click after the redirect has been sent; failures lose the click only"""
    try:
        published = await queue.publish(queue_name, hit_event)
    except Exception:
        logger.exception("Click for %s could not be queued", hit_event.short_code)
        return
    if not published:
        logger.warning("Click for %s was not queued", hit_event.short_code)


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    resolver: RedirectResolver = Depends(get_redirect_resolver),
    queue: QueueStrategy = Depends(get_queue)
):
    """
    Redirect to the original URL.

    Flow:
    1. Resolve the code (cache first, database on miss)
    2. Redirect immediately
    3. Publish a click message to the queue as a background task

    Click recording is done by the click worker, so neither the publish nor
    the database writes slow down the redirect.
    """
    link = await resolver.resolve(short_code)

    hit_event = HitEvent(
        link_id=link.id,
        short_code=link.short_code,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )
    background_tasks.add_task(publish_click, queue, settings.queue_name, hit_event)

    return RedirectResponse(url=link.original_url, status_code=status.HTTP_302_FOUND)
