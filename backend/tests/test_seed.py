"""
Tests for the reference data seed script.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from db_models import Region, Setting, ShippingRate
from scripts.seed_reference_data import seed_reference_data
from services import catalog_service, settings_service
from domain.enums import PurchaseEventTrigger


class TestSeedReferenceData:

    @pytest.mark.asyncio
    async def test_seeds_regions_rates_and_settings(self, db_session):
        added = await seed_reference_data(db_session)
        assert added == {"regions": 58, "shipping_rates": 116, "settings": 6}

        assert await catalog_service.region_exists(db_session, "58")
        assert not await catalog_service.region_exists(db_session, "59")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("region,delivery,price", [
        ("01", "office", "400"),
        ("01", "home", "600"),
        ("16", "office", "300"),
        ("16", "home", "400"),
        ("31", "office", "350"),
        ("31", "home", "500"),
    ])
    async def test_default_rates(self, db_session, region, delivery, price):
        await seed_reference_data(db_session)
        rate = await catalog_service.get_shipping_rate(db_session, region, delivery)
        assert rate.price == Decimal(price)
        assert rate.is_enabled

    @pytest.mark.asyncio
    async def test_idempotent_and_preserves_edits(self, db_session):
        await seed_reference_data(db_session)
        await settings_service.set_setting(db_session, "purchase_event", "delivered")
        await db_session.commit()

        added = await seed_reference_data(db_session)
        assert added == {"regions": 0, "shipping_rates": 0, "settings": 0}
        assert (await db_session.execute(select(func.count()).select_from(Region))).scalar() == 58
        assert (await db_session.execute(select(func.count()).select_from(ShippingRate))).scalar() == 116
        assert await settings_service.get_purchase_event_trigger(db_session) is PurchaseEventTrigger.DELIVERED


class TestSettingsService:

    @pytest.mark.asyncio
    async def test_unknown_trigger_falls_back_to_confirmed(self, db_session):
        db_session.add(Setting(key="purchase_event", value="shipped"))
        await db_session.commit()
        assert await settings_service.get_purchase_event_trigger(db_session) is PurchaseEventTrigger.CONFIRMED

    @pytest.mark.asyncio
    async def test_missing_trigger_defaults_to_confirmed(self, db_session):
        assert await settings_service.get_purchase_event_trigger(db_session) is PurchaseEventTrigger.CONFIRMED
