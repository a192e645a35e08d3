"""
Catalog reads used by the order pipeline.

Products, regions and shipping rates are administered elsewhere; the
pipeline only reads them here, always from the database, never from the
client.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Product, Region, ShippingRate


async def region_exists(db: AsyncSession, code: str) -> bool:
    if not code:
        return False
    res = await db.execute(select(Region.code).where(Region.code == code))
    return res.scalar_one_or_none() is not None


async def fetch_products(db: AsyncSession, product_ids: list[str]) -> dict[str, Product]:
    """Batch lookup: one query for every referenced product, keyed by id."""
    if not product_ids:
        return {}
    res = await db.execute(select(Product).where(Product.id.in_(set(product_ids))))
    return {p.id: p for p in res.scalars().all()}


async def get_shipping_rate(db: AsyncSession, region_code: str, delivery_type: str) -> ShippingRate | None:
    res = await db.execute(
        select(ShippingRate).where(
            ShippingRate.region_code == region_code,
            ShippingRate.delivery_type == delivery_type,
        )
    )
    return res.scalar_one_or_none()


async def first_images(db: AsyncSession, product_ids: list[str]) -> dict[str, str | None]:
    """First image of each product, for order summaries."""
    products = await fetch_products(db, product_ids)
    return {pid: (p.images[0] if p.images else None) for pid, p in products.items()}
