"""
Order Service — checkout admission, public lookup and status changes.

create_order() runs the admission pipeline. Every stage is a hard gate and
nothing is written until all gates pass:

    validate → bot challenge → rate limits (read) → duplicate check
    → pricing → persist (one transaction)
    → rate limits (write) → cart draft cleanup → tracking (background)

Rate-limit usage is recorded only after the order has committed, so a
rejected checkout never consumes quota. Bookkeeping after the commit is
best effort: the order already exists and is reported as created.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import AuditLog, Order, OrderItem, OrderStatusHistory, PendingTrackingEvent
from domain import constants
from domain.enums import OrderStatus, can_transition
from domain.errors import (
    BotVerificationError,
    ConflictError,
    DuplicateOrderError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from domain.tracking import ClientContext, TrackingEvent
from exceptions import OrderPersistenceError
from models import CreateOrderRequest
from services import (
    bot_verification,
    cart_service,
    catalog_service,
    duplicate_detector,
    pricing_service,
    rate_limit_service,
    tracking_service,
)
from services.pricing_service import PricedLine, PricingQuote
from utils.timeutils import utcnow
from utils.validators import ValidatedCheckout, mask_phone, validate_checkout

logger = logging.getLogger(__name__)

Verifier = Callable[[str, Optional[str]], Awaitable[bool]]
Dispatcher = Callable[[TrackingEvent, ClientContext], Any]


# ── Persistence helpers ─────────────────────────────────────────────

async def _insert_items(db: AsyncSession, order_id: str, lines: list[PricedLine]) -> None:
    for line in lines:
        db.add(OrderItem(
            order_id=order_id,
            product_id=line.product_id,
            product_name=line.product_name,
            price=line.unit_price,
            quantity=line.quantity,
            selected_size=line.size,
            selected_color=line.color,
            options=line.options,
        ))
    await db.flush()


async def _persist_order(
    db: AsyncSession,
    checkout: ValidatedCheckout,
    quote: PricingQuote,
    context: ClientContext,
    event_id: Optional[str],
    order_id: str,
) -> Order:
    """Write order, lines and the initial history row, then commit. Raises OrderPersistenceError."""
    user_agent = (context.user_agent or "")[:constants.USER_AGENT_MAX_LENGTH] or None
    order = Order(
        id=order_id,
        public_token=str(uuid.uuid4()),
        full_name=checkout.full_name,
        phone=checkout.phone,
        region_code=checkout.region_code,
        commune=checkout.commune,
        address=checkout.address,
        delivery_type=checkout.delivery_type.value,
        note=checkout.note,
        subtotal=quote.subtotal,
        shipping=quote.shipping,
        total=quote.total,
        status=OrderStatus.NEW.value,
        ip_address=context.ip,
        user_agent=user_agent,
        event_id=event_id,
    )
    try:
        db.add(order)
        await db.flush()
        await _insert_items(db, order_id, quote.lines)
        db.add(OrderStatusHistory(order_id=order_id, status=OrderStatus.NEW.value))
        await db.commit()
    except SQLAlchemyError as e:
        raise OrderPersistenceError(f"order {order_id}: {e}") from e
    return order


async def _discard_order(db: AsyncSession, order_id: str) -> None:
    """
    Compensating delete for a failed insert. Idempotent: deleting rows that
    were never written is a no-op.
    """
    try:
        await db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
        await db.execute(delete(OrderStatusHistory).where(OrderStatusHistory.order_id == order_id))
        await db.execute(delete(PendingTrackingEvent).where(PendingTrackingEvent.order_id == order_id))
        await db.execute(delete(Order).where(Order.id == order_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            f"Cleanup of failed order {order_id} failed, manual reconciliation needed: {e}",
            exc_info=True,
        )


# ── Admission pipeline ──────────────────────────────────────────────

async def create_order(
    db: AsyncSession,
    request: CreateOrderRequest,
    context: ClientContext,
    *,
    now: Optional[datetime] = None,
    verifier: Optional[Verifier] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> dict:
    """
    Admit a checkout submission and create the order.

    Args:
        request: Untrusted checkout payload
        context: Caller IP, user agent and referer
        now: Reference time for rate limits and duplicate detection
        verifier: Bot challenge check (defaults to Turnstile)
        dispatcher: Tracking scheduler (defaults to the background executor)

    Returns:
        {"order_id", "public_token", "total"}

    Raises:
        ValidationError, BotVerificationError, DuplicateOrderError,
        ProductUnavailableError, ShippingUnavailableError (400)
        RateLimitError (429)
        ServiceError (500)
    """
    now = now or utcnow()

    # 1. Validate
    region_known = await catalog_service.region_exists(db, request.region_code)
    checkout = validate_checkout(request, region_exists=region_known)

    # 2. Bot challenge
    verify = verifier or bot_verification.verify_challenge
    if not await verify(request.bot_challenge_token, context.ip):
        raise BotVerificationError()

    # 3. Rate limits (read-only)
    await rate_limit_service.enforce_order_limits(db, context.ip, checkout.phone, now=now)

    # 4. Duplicate check
    duplicate_of = await duplicate_detector.find_duplicate_order(db, checkout.phone, checkout.cart_items, now=now)
    if duplicate_of:
        raise DuplicateOrderError()

    # 5. Authoritative pricing
    quote = await pricing_service.resolve_pricing(
        db, checkout.cart_items, checkout.region_code, checkout.delivery_type.value
    )

    # 6. Persist
    order_id = str(uuid.uuid4())
    try:
        order = await _persist_order(
            db, checkout, quote, context, request.client_event_id or None, order_id
        )
    except OrderPersistenceError as e:
        logger.error(f"Order insert failed, rolling back: {e}", exc_info=True)
        await db.rollback()
        await _discard_order(db, order_id)
        raise ServiceError(constants.MSG_ORDER_CREATE_FAILED)

    logger.info(
        f"Order {order.id} created for {mask_phone(order.phone)} "
        f"({len(quote.lines)} line(s), total {order.total} DZD)"
    )

    # Snapshot before bookkeeping: a rollback below expires the ORM instance
    result = {
        "order_id": order.id,
        "public_token": order.public_token,
        "total": quote.total,
    }
    purchase_event = tracking_service.build_purchase_event(order, quote.lines)

    # 7. Rate-limit usage
    try:
        await rate_limit_service.record_order(db, context.ip, checkout.phone, now=now)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record rate-limit usage for order {order_id}: {e}")

    # 8. Cart draft cleanup
    if request.cart_draft_id:
        try:
            await cart_service.delete_draft(db, request.cart_draft_id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to delete cart draft {request.cart_draft_id}: {e}")

    # 9. Tracking, never awaited
    schedule = dispatcher or tracking_service.schedule_order_tracking
    try:
        schedule(purchase_event, context)
    except Exception as e:
        logger.error(f"Failed to schedule tracking for order {order_id}: {e}", exc_info=True)

    return result


# ── Public lookup ───────────────────────────────────────────────────

async def get_public_order(db: AsyncSession, order_id: str, public_token: str) -> dict:
    """
    Order summary for the thank-you page. Requires the exact (id, token)
    pair; request metadata (IP, user agent) is never returned.
    """
    if not order_id or not public_token:
        raise NotFoundError()

    res = await db.execute(
        select(Order).where(Order.id == order_id, Order.public_token == public_token)
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError()

    items_res = await db.execute(
        select(OrderItem).where(OrderItem.order_id == order.id).order_by(OrderItem.created_at)
    )
    items = items_res.scalars().all()
    images = await catalog_service.first_images(db, [i.product_id for i in items if i.product_id])

    return {
        "order_id": order.id,
        "status": order.status,
        "full_name": order.full_name,
        "phone": order.phone,
        "region_code": order.region_code,
        "commune": order.commune,
        "address": order.address,
        "delivery_type": order.delivery_type,
        "subtotal": order.subtotal,
        "shipping": order.shipping,
        "total": order.total,
        "note": order.note,
        "event_id": order.event_id,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "items": [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "price": i.price,
                "quantity": i.quantity,
                "selected_size": i.selected_size,
                "selected_color": i.selected_color,
                "options": i.options,
                "image": images.get(i.product_id),
            }
            for i in items
        ],
    }


# ── Status lifecycle ────────────────────────────────────────────────

async def transition_status(
    db: AsyncSession,
    order_id: str,
    new_status: str,
    *,
    changed_by: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Order:
    """
    Move an order along its lifecycle. Appends a history row and an audit
    entry. Does not commit.

    Raises:
        NotFoundError(404), ValidationError(400) for an unknown status,
        ConflictError(409) for a transition the lifecycle does not allow
    """
    try:
        target = OrderStatus(new_status)
    except ValueError:
        raise ValidationError(constants.MSG_INVALID_STATUS, field="status")

    res = await db.execute(select(Order).where(Order.id == order_id))
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError()

    current = OrderStatus(order.status)
    if not can_transition(current, target):
        raise ConflictError(
            constants.MSG_INVALID_STATUS_TRANSITION,
            details={"from": current.value, "to": target.value},
        )

    order.status = target.value
    db.add(OrderStatusHistory(order_id=order.id, status=target.value, changed_by=changed_by))
    db.add(AuditLog(
        user_id=changed_by,
        action=constants.AUDIT_ORDER_STATUS_CHANGED,
        details={"order_id": order.id, "from": current.value, "to": target.value},
        ip_address=ip_address,
    ))
    await db.flush()

    logger.info(f"Order {order.id}: {current.value} → {target.value}")
    return order
