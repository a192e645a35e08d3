"""
Tests for duplicate order detection.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from db_models import Order, OrderItem
from models import CartItemIn
from services.duplicate_detector import find_duplicate_order, is_same_cart

NOW = datetime(2026, 3, 1, 12, 0, 0)
PHONE = "0551234567"


async def _place(db, *, phone=PHONE, lines=(("prod-dress", 2),), created_at=NOW):
    order = Order(
        full_name="Amina", phone=phone, region_code="16", delivery_type="office",
        subtotal=Decimal("0"), shipping=Decimal("0"), total=Decimal("0"), created_at=created_at,
    )
    db.add(order)
    await db.flush()
    for pid, qty in lines:
        db.add(OrderItem(order_id=order.id, product_id=pid, product_name=pid, price=Decimal("1"), quantity=qty))
    await db.commit()
    return order


def _cart(*lines):
    return [CartItemIn(product_id=pid, quantity=qty) for pid, qty in lines]


class TestIsSameCart:

    @pytest.mark.unit
    def test_order_insensitive(self):
        assert is_same_cart([("a", 1), ("b", 2)], [("b", 2), ("a", 1)]) is True

    @pytest.mark.unit
    def test_quantity_difference(self):
        assert is_same_cart([("a", 1)], [("a", 2)]) is False

    @pytest.mark.unit
    def test_line_count_difference(self):
        assert is_same_cart([("a", 1)], [("a", 1), ("b", 1)]) is False

    @pytest.mark.unit
    def test_repeated_lines_counted(self):
        assert is_same_cart([("a", 1), ("a", 1)], [("a", 1), ("b", 1)]) is False


class TestFindDuplicateOrder:

    @pytest.mark.asyncio
    async def test_identical_cart_within_window(self, db_session):
        previous = await _place(db_session, created_at=NOW - timedelta(minutes=2))
        found = await find_duplicate_order(db_session, PHONE, _cart(("prod-dress", 2)), now=NOW)
        assert found == previous.id

    @pytest.mark.asyncio
    async def test_different_quantity_is_not_duplicate(self, db_session):
        await _place(db_session, created_at=NOW - timedelta(minutes=2))
        assert await find_duplicate_order(db_session, PHONE, _cart(("prod-dress", 3)), now=NOW) is None

    @pytest.mark.asyncio
    async def test_outside_window(self, db_session):
        await _place(db_session, created_at=NOW - timedelta(minutes=6))
        assert await find_duplicate_order(db_session, PHONE, _cart(("prod-dress", 2)), now=NOW) is None

    @pytest.mark.asyncio
    async def test_other_phone(self, db_session):
        await _place(db_session, phone="0661234567", created_at=NOW - timedelta(minutes=1))
        assert await find_duplicate_order(db_session, PHONE, _cart(("prod-dress", 2)), now=NOW) is None

    @pytest.mark.asyncio
    async def test_only_most_recent_order_compared(self, db_session):
        """An identical older order hidden behind a different newer one is not detected."""
        await _place(db_session, created_at=NOW - timedelta(minutes=4))
        await _place(db_session, lines=(("prod-scarf", 1),), created_at=NOW - timedelta(minutes=1))
        assert await find_duplicate_order(db_session, PHONE, _cart(("prod-dress", 2)), now=NOW) is None
