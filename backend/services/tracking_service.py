"""
Tracking dispatcher — server-side conversion events for Meta and TikTok.

Purchase events are either sent right away or parked in the
pending_tracking_events queue until the parcel is delivered, depending on
the purchase_event setting. A separate scheduled sender drains that queue.

Everything here is best effort. Platform failures are logged and reported
in the per-platform result map; nothing is raised to the order caller.
"""
import asyncio
import hashlib
import logging
import time
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import database
from config import settings
from db_models import Order, PendingTrackingEvent
from domain import constants
from domain.enums import PurchaseEventTrigger
from domain.tracking import ClientContext, TrackingContent, TrackingEvent
from exceptions import PlatformRequestError
from services import async_executor, settings_service
from services.ad_platforms import AdPlatform, configured_platforms
from services.pricing_service import PricedLine
from utils.validators import mask_phone, to_international_phone

logger = logging.getLogger(__name__)

RESULT_SENT = "sent"
RESULT_FAILED = "failed"
RESULT_QUEUED = "queued"


def hash_phone(phone: Optional[str]) -> Optional[str]:
    """SHA-256 hex digest of the international phone form, or None if the phone is invalid."""
    international = to_international_phone(phone)
    if international is None:
        return None
    return hashlib.sha256(international.encode("utf-8")).hexdigest()


def build_purchase_event(order: Order, lines: list[PricedLine]) -> TrackingEvent:
    """Purchase event for a freshly created order. Falls back to the order id when the browser sent no event id."""
    return TrackingEvent(
        event_name=constants.EVENT_PURCHASE,
        event_id=order.event_id or order.id,
        phone=order.phone,
        value=order.total,
        currency=settings.currency,
        order_id=order.id,
        content_ids=[line.product_id for line in lines],
        contents=[
            TrackingContent(
                content_id=line.product_id,
                quantity=line.quantity,
                price=line.unit_price,
                content_name=line.product_name,
            )
            for line in lines
        ],
    )


def _is_deferrable(event: TrackingEvent) -> bool:
    return event.event_name == constants.EVENT_PURCHASE and bool(event.order_id)


async def _send_one(
    platform: AdPlatform,
    client: httpx.AsyncClient,
    event: TrackingEvent,
    *,
    hashed_phone: Optional[str],
    context: ClientContext,
    event_time: int,
) -> str:
    payload = platform.build_payload(event, hashed_phone=hashed_phone, context=context, event_time=event_time)
    try:
        await platform.send(client, payload)
    except (httpx.HTTPError, PlatformRequestError) as e:
        logger.warning(f"{platform.name} {event.event_name} {event.event_id} failed: {e}")
        return RESULT_FAILED
    logger.info(f"{platform.name} {event.event_name} {event.event_id} sent")
    return RESULT_SENT


async def dispatch_event(
    db: Optional[AsyncSession],
    event: TrackingEvent,
    *,
    context: ClientContext,
    purchase_event: PurchaseEventTrigger = PurchaseEventTrigger.CONFIRMED,
    force_send: bool = False,
    platforms: Optional[list[AdPlatform]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, str]:
    """
    Send one event to every configured platform, or queue it for later.

    A Purchase tied to an order is queued (one pending row, no outbound
    calls) when purchase_event is "delivered" and force_send is off.
    Otherwise each platform is called concurrently and independently.

    Returns:
        {platform_name: "sent" | "failed" | "queued"}. Empty when no
        platform is configured.
    """
    if platforms is None:
        platforms = configured_platforms()
    if not platforms:
        logger.debug(f"No ad platform configured, dropping {event.event_name} {event.event_id}")
        return {}

    hashed_phone = hash_phone(event.phone)

    if (
        _is_deferrable(event)
        and purchase_event == PurchaseEventTrigger.DELIVERED
        and not force_send
    ):
        if db is None:
            raise ValueError("A database session is required to queue a deferred event")
        db.add(PendingTrackingEvent(
            order_id=event.order_id,
            event_name=event.event_name,
            event_id=event.event_id,
            event_data=event.snapshot(hashed_phone=hashed_phone, context=context),
            trigger_status=PurchaseEventTrigger.DELIVERED.value,
        ))
        await db.flush()
        logger.info(f"Queued {event.event_name} for order {event.order_id} until delivery")
        return {platform.name: RESULT_QUEUED for platform in platforms}

    event_time = int(time.time())

    async def _fan_out(http: httpx.AsyncClient) -> list:
        return await asyncio.gather(
            *[
                _send_one(p, http, event, hashed_phone=hashed_phone, context=context, event_time=event_time)
                for p in platforms
            ],
            return_exceptions=True,
        )

    if client is None:
        async with httpx.AsyncClient(timeout=settings.tracking_timeout_seconds) as http:
            outcomes = await _fan_out(http)
    else:
        outcomes = await _fan_out(client)

    results: dict[str, str] = {}
    for platform, outcome in zip(platforms, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(
                f"{platform.name} {event.event_name} {event.event_id} crashed: {outcome}",
                exc_info=outcome,
            )
            results[platform.name] = RESULT_FAILED
        else:
            results[platform.name] = outcome
    return results


async def run_event_dispatch(
    event: TrackingEvent,
    context: ClientContext,
    *,
    force_send: bool = False,
    session_factory: Optional[async_sessionmaker] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, str]:
    """Background job: own session, read the purchase_event setting, dispatch, commit."""
    platforms = configured_platforms()
    if not platforms:
        return {}

    factory = session_factory or database.async_session
    async with factory() as db:
        trigger = PurchaseEventTrigger.CONFIRMED
        if _is_deferrable(event) and not force_send:
            trigger = await settings_service.get_purchase_event_trigger(db)
        results = await dispatch_event(
            db,
            event,
            context=context,
            purchase_event=trigger,
            force_send=force_send,
            platforms=platforms,
            client=client,
        )
        await db.commit()

    logger.info(
        f"Tracking {event.event_name} {event.event_id} for {mask_phone(event.phone)}: {results}"
    )
    return results


def schedule_order_tracking(event: TrackingEvent, context: ClientContext) -> asyncio.Task:
    """Fire-and-forget dispatch. The caller never awaits the returned task."""
    return async_executor.submit(
        run_event_dispatch(event, context),
        name=f"tracking-{event.event_name}-{event.event_id}",
    )
