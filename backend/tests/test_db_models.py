"""
Tests for ORM database models.

Tests: defaults, unique constraints, JSON columns, money precision.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError


class TestOrderModel:

    @pytest.mark.asyncio
    async def test_defaults(self, db_session):
        from db_models import Order
        order = Order(
            full_name="Amina", phone="0551234567", region_code="16", delivery_type="office",
            subtotal=Decimal("2500"), shipping=Decimal("300"), total=Decimal("2800"),
        )
        db_session.add(order)
        await db_session.commit()

        fetched = (await db_session.execute(select(Order))).scalar_one()
        assert fetched.status == "new"
        assert len(fetched.id) == 36
        assert len(fetched.public_token) == 36
        assert fetched.id != fetched.public_token
        assert fetched.created_at is not None

    @pytest.mark.asyncio
    async def test_public_token_unique(self, db_session):
        from db_models import Order
        common = dict(full_name="A", phone="0551234567", region_code="16", delivery_type="office",
                      subtotal=Decimal("0"), shipping=Decimal("0"), total=Decimal("0"))
        db_session.add(Order(public_token="same-token", **common))
        db_session.add(Order(public_token="same-token", **common))
        with pytest.raises(IntegrityError):
            await db_session.commit()


class TestShippingRateModel:

    @pytest.mark.asyncio
    async def test_one_rate_per_region_and_type(self, db_session):
        from db_models import Region, ShippingRate
        db_session.add(Region(code="16", name="Alger", name_ar="الجزائر"))
        db_session.add(ShippingRate(region_code="16", delivery_type="office", price=Decimal("300")))
        db_session.add(ShippingRate(region_code="16", delivery_type="office", price=Decimal("350")))
        with pytest.raises(IntegrityError):
            await db_session.commit()


class TestJsonColumns:

    @pytest.mark.asyncio
    async def test_pending_event_snapshot_round_trips(self, db_session):
        from db_models import PendingTrackingEvent
        db_session.add(PendingTrackingEvent(
            order_id="order-1", event_name="Purchase", event_id="evt-1",
            event_data={"value": 5300.0, "content_ids": ["prod-dress"]},
        ))
        await db_session.commit()

        row = (await db_session.execute(select(PendingTrackingEvent))).scalar_one()
        assert row.event_data["content_ids"] == ["prod-dress"]
        assert row.trigger_status == "delivered"
        assert row.sent_at is None
