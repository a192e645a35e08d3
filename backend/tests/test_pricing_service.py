"""
Tests for the pricing resolver.

Prices always come from the catalog; client-sent prices are ignored.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from domain.errors import ProductUnavailableError, ServiceError, ShippingUnavailableError
from models import CartItemIn
from services.pricing_service import resolve_pricing, to_money


class TestToMoney:

    @pytest.mark.unit
    def test_rounds_half_up(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(400) == Decimal("400.00")


class TestResolvePricing:

    @pytest.mark.asyncio
    async def test_client_price_ignored(self, db_session, seeded_catalog):
        """2 × 2500 + 300 (Alger office) = 5300, whatever the browser claims."""
        items = [CartItemIn(product_id=seeded_catalog["dress"], quantity=2, price=Decimal("1"))]
        quote = await resolve_pricing(db_session, items, "16", "office")
        assert quote.subtotal == Decimal("5000.00")
        assert quote.shipping == Decimal("300.00")
        assert quote.total == Decimal("5300.00")
        assert quote.lines[0].unit_price == Decimal("2500.00")
        assert quote.lines[0].product_name == "Robe kabyle"

    @pytest.mark.asyncio
    async def test_home_delivery_rate(self, db_session, seeded_catalog):
        items = [CartItemIn(product_id=seeded_catalog["dress"], quantity=2)]
        quote = await resolve_pricing(db_session, items, "16", "home")
        assert quote.total == Decimal("5400.00")

    @pytest.mark.asyncio
    async def test_multiple_lines(self, db_session, seeded_catalog):
        items = [
            CartItemIn(product_id=seeded_catalog["dress"], quantity=1),
            CartItemIn(product_id=seeded_catalog["scarf"], quantity=3, options={"color": "red"}),
        ]
        quote = await resolve_pricing(db_session, items, "31", "office")
        assert quote.subtotal == Decimal("6100.00")
        assert quote.total == Decimal("6450.00")
        assert quote.lines[1].color == "red"
        assert quote.product_ids == [seeded_catalog["dress"], seeded_catalog["scarf"]]

    @pytest.mark.asyncio
    async def test_inactive_product_rejected(self, db_session, seeded_catalog):
        items = [
            CartItemIn(product_id=seeded_catalog["dress"], quantity=1),
            CartItemIn(product_id=seeded_catalog["retired"], quantity=1),
        ]
        with pytest.raises(ProductUnavailableError) as exc:
            await resolve_pricing(db_session, items, "16", "office")
        assert exc.value.details["product_ids"] == [seeded_catalog["retired"]]

    @pytest.mark.asyncio
    async def test_missing_product_rejected(self, db_session, seeded_catalog):
        items = [CartItemIn(product_id="does-not-exist", quantity=1)]
        with pytest.raises(ProductUnavailableError):
            await resolve_pricing(db_session, items, "16", "office")

    @pytest.mark.asyncio
    async def test_disabled_shipping_rate(self, db_session, seeded_catalog):
        items = [CartItemIn(product_id=seeded_catalog["dress"], quantity=1)]
        with pytest.raises(ShippingUnavailableError):
            await resolve_pricing(db_session, items, "31", "home")

    @pytest.mark.asyncio
    async def test_lookup_failure_is_service_error(self, db_session, seeded_catalog):
        items = [CartItemIn(product_id=seeded_catalog["dress"], quantity=1)]
        failing = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("disk I/O error")))
        with patch("services.catalog_service.fetch_products", failing):
            with pytest.raises(ServiceError) as exc:
                await resolve_pricing(db_session, items, "16", "office")
        assert exc.value.status_code == 500
