"""
Browser conversion events relayed server-side.

The storefront fires ViewContent / AddToCart / InitiateCheckout through the
pixel and posts the same event here with the same event_id, so the platforms
deduplicate the two copies. Purchase is only ever sent by the order pipeline.
"""

import logging
from fastapi import APIRouter, Depends, status

from config import settings
from deps import client_context
from domain import constants
from domain.errors import ValidationError
from domain.responses import success_response
from domain.tracking import ClientContext, TrackingContent, TrackingEvent
from middleware.rate_limit import rate_limit
from models import TrackingEventRequest
from services import async_executor, tracking_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["tracking"])


@router.post("/tracking/events", status_code=status.HTTP_202_ACCEPTED)
async def track_event(
    body: TrackingEventRequest,
    context: ClientContext = Depends(client_context),
    _=Depends(rate_limit(settings.tracking_events_per_minute, 60)),
):
    """Accept a browser event and dispatch it in the background."""
    if body.event_name not in constants.BROWSER_EVENTS:
        raise ValidationError(constants.MSG_UNSUPPORTED_EVENT, field="event_name")

    event = TrackingEvent(
        event_name=body.event_name,
        event_id=body.event_id,
        phone=body.phone,
        value=body.value,
        currency=settings.currency,
        content_ids=list(body.content_ids),
        contents=[
            TrackingContent(
                content_id=c.content_id,
                quantity=c.quantity,
                price=c.price,
                content_name=c.content_name,
            )
            for c in body.contents
        ],
        content_name=body.content_name,
        fbc=body.user_data.fbc if body.user_data else None,
        fbp=body.user_data.fbp if body.user_data else None,
    )

    platforms = tracking_service.configured_platforms()
    if platforms:
        async_executor.submit(
            tracking_service.dispatch_event(None, event, context=context, platforms=platforms),
            name=f"tracking-{event.event_name}-{event.event_id}",
        )

    return success_response({
        "event_id": event.event_id,
        "platforms": [p.name for p in platforms],
    })
