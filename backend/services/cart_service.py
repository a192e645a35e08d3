"""
Cart drafts — pre-order snapshots for abandoned-cart follow-up.

The storefront saves the cart as the customer fills in the checkout form.
Once an order is created from it, the draft is deleted.
"""
import logging
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Cart
from models import CartItemIn

logger = logging.getLogger(__name__)


async def save_draft(
    db: AsyncSession,
    *,
    cart_id: str | None,
    phone: str | None,
    items: list[CartItemIn],
    total_value: Decimal,
) -> Cart:
    """Create or update a draft. Unknown cart ids start a new draft."""
    cart = None
    if cart_id:
        res = await db.execute(select(Cart).where(Cart.id == cart_id))
        cart = res.scalar_one_or_none()

    snapshot = [item.model_dump(mode="json", exclude_none=True) for item in items]
    if cart is None:
        cart = Cart(phone=phone, items=snapshot, total_value=total_value)
        db.add(cart)
    else:
        cart.phone = phone
        cart.items = snapshot
        cart.total_value = total_value

    await db.flush()
    return cart


async def delete_draft(db: AsyncSession, cart_id: str | None) -> bool:
    """Delete a draft. Idempotent: an already-absent draft is not an error."""
    if not cart_id:
        return False
    res = await db.execute(delete(Cart).where(Cart.id == cart_id))
    return (res.rowcount or 0) > 0
