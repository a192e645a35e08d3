"""
Duplicate order detection.

Double-taps on the checkout button and impatient resubmits produce identical
orders seconds apart. Before admitting an order we look at the most recent
order from the same phone inside a short window and compare carts.

Only the single most recent order in the window is inspected: if the
customer placed a different order in between, an earlier identical one is
not detected.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order, OrderItem
from models import CartItemIn
from utils.timeutils import utcnow
from utils.validators import mask_phone

logger = logging.getLogger(__name__)


def is_same_cart(submitted: Iterable[tuple[str, int]], previous: Iterable[tuple[str, int]]) -> bool:
    """
    True if both carts hold the same (product_id, quantity) lines.

    Order-insensitive. Line counts must match and every submitted line must
    appear among the previous lines.
    """
    submitted = list(submitted)
    previous = list(previous)
    if len(submitted) != len(previous):
        return False
    remaining = Counter(previous)
    for line in submitted:
        if remaining[line] <= 0:
            return False
        remaining[line] -= 1
    return True


async def find_duplicate_order(
    db: AsyncSession,
    phone: str,
    cart_items: list[CartItemIn],
    *,
    now: datetime | None = None,
) -> str | None:
    """
    Return the id of a recent identical order for this phone, or None.

    Args:
        phone: Validated customer phone
        cart_items: Submitted cart lines
        now: Reference time (defaults to current UTC)
    """
    now = now or utcnow()
    since = now - timedelta(minutes=settings.duplicate_window_minutes)

    res = await db.execute(
        select(Order.id)
        .where(Order.phone == phone, Order.created_at >= since)
        .order_by(Order.created_at.desc())
        .limit(1)
    )
    recent_order_id = res.scalar_one_or_none()
    if recent_order_id is None:
        return None

    items_res = await db.execute(
        select(OrderItem.product_id, OrderItem.quantity).where(OrderItem.order_id == recent_order_id)
    )
    previous = [(pid, qty) for pid, qty in items_res.all()]
    submitted = [(item.product_id, item.quantity) for item in cart_items]

    if is_same_cart(submitted, previous):
        logger.info(f"Duplicate order from {mask_phone(phone)} (matches {recent_order_id})")
        return recent_order_id
    return None
