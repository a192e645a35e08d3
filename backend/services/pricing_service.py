"""
Pricing resolver — the only source of truth for order money.

Recomputes every amount from the database: product prices from the catalog,
shipping from the rate table. Prices sent by the browser are ignored.
All arithmetic is Decimal, quantized to two fractional digits (DZD).
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from domain import constants
from domain.errors import ProductUnavailableError, ServiceError, ShippingUnavailableError
from models import CartItemIn
from services import catalog_service

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a DB/number value to a 2-place Decimal."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    """A cart line priced from the catalog (the OrderItem snapshot)."""
    product_id: str
    product_name: str
    unit_price: Decimal
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    options: Optional[dict] = None

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class PricingQuote:
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    lines: list[PricedLine] = field(default_factory=list)

    @property
    def product_ids(self) -> list[str]:
        return [line.product_id for line in self.lines]


async def resolve_pricing(
    db: AsyncSession,
    cart_items: list[CartItemIn],
    region_code: str,
    delivery_type: str,
) -> PricingQuote:
    """
    Price a cart from authoritative data.

    Raises:
        ProductUnavailableError(400): any product missing or inactive
        ShippingUnavailableError(400): no enabled rate for region/delivery type
        ServiceError(500): catalog lookups failed
    """
    product_ids = [item.product_id for item in cart_items]
    try:
        products = await catalog_service.fetch_products(db, product_ids)
    except SQLAlchemyError as e:
        logger.error(f"Product lookup failed: {e}", exc_info=True)
        raise ServiceError(constants.MSG_PRODUCTS_LOAD_FAILED)

    unavailable = [
        pid for pid in product_ids
        if pid not in products or not products[pid].is_active
    ]
    if unavailable:
        logger.info(f"Checkout rejected, unavailable products: {unavailable}")
        raise ProductUnavailableError(details={"product_ids": unavailable})

    lines: list[PricedLine] = []
    subtotal = Decimal("0.00")
    for item in cart_items:
        product = products[item.product_id]
        opts = item.options.model_dump(exclude_none=True) if item.options else None
        line = PricedLine(
            product_id=product.id,
            product_name=product.name,
            unit_price=to_money(product.price),
            quantity=item.quantity,
            size=item.options.size if item.options else None,
            color=item.options.color if item.options else None,
            options=opts or None,
        )
        subtotal += line.line_total
        lines.append(line)

    try:
        rate = await catalog_service.get_shipping_rate(db, region_code, delivery_type)
    except SQLAlchemyError as e:
        logger.error(f"Shipping rate lookup failed: {e}", exc_info=True)
        raise ServiceError(constants.MSG_ORDER_CREATE_FAILED)

    if rate is None or not rate.is_enabled:
        raise ShippingUnavailableError(details={"region_code": region_code, "delivery_type": delivery_type})

    shipping = to_money(rate.price)
    subtotal = to_money(subtotal)

    return PricingQuote(
        subtotal=subtotal,
        shipping=shipping,
        total=to_money(subtotal + shipping),
        lines=lines,
    )
