"""
Pytest configuration and shared fixtures for the storefront backend tests.

Provides an in-memory SQLite database, an ASGI test client wired to it,
and a small seeded catalog (two regions, three products, shipping rates).
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from decimal import Decimal
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from config import settings

# ── Test Configuration ───────────────────────────────────────────────
# Never reach real ad platforms or Turnstile from tests
settings.meta_pixel_id = ""
settings.meta_access_token = ""
settings.tiktok_pixel_id = ""
settings.tiktok_access_token = ""
settings.turnstile_secret_key = "test-turnstile-secret"
settings.environment = "development"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def session_maker() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory bound to a fresh in-memory database.

    Uses StaticPool so every session sees the same in-memory SQLite DB.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(session_maker: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Create an in-memory SQLite database session for each test."""
    async with session_maker() as session:
        yield session


@pytest.fixture(scope="function")
async def test_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    ASGI test client with in-memory database.

    Overrides get_db dependency to use test DB session.
    """
    from middleware.rate_limit import _limiter

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    _limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    _limiter.reset()


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest.fixture
async def seeded_catalog(db_session: AsyncSession) -> dict:
    """Regions 16 and 31, three products (one inactive), office/home rates."""
    from db_models import Product, Region, Setting, ShippingRate

    db_session.add_all([
        Region(code="16", name="Alger", name_ar="الجزائر"),
        Region(code="31", name="Oran", name_ar="وهران"),
    ])
    db_session.add_all([
        Product(id="prod-dress", name="Robe kabyle", price=Decimal("2500.00"), is_active=True,
                images=["https://cdn.example.com/dress-1.jpg", "https://cdn.example.com/dress-2.jpg"]),
        Product(id="prod-scarf", name="Foulard", price=Decimal("1200.00"), is_active=True, images=[]),
        Product(id="prod-retired", name="Ancien modèle", price=Decimal("900.00"), is_active=False, images=[]),
    ])
    db_session.add_all([
        ShippingRate(region_code="16", delivery_type="office", price=Decimal("300"), is_enabled=True),
        ShippingRate(region_code="16", delivery_type="home", price=Decimal("400"), is_enabled=True),
        ShippingRate(region_code="31", delivery_type="office", price=Decimal("350"), is_enabled=True),
        ShippingRate(region_code="31", delivery_type="home", price=Decimal("500"), is_enabled=False),
    ])
    db_session.add(Setting(key="purchase_event", value="confirmed"))
    await db_session.commit()
    return {
        "region": "16",
        "dress": "prod-dress",
        "scarf": "prod-scarf",
        "retired": "prod-retired",
    }


@pytest.fixture
def checkout_payload(seeded_catalog: dict) -> dict:
    """A valid checkout body as the storefront sends it."""
    return {
        "full_name": "Amina Benali",
        "phone": "0551234567",
        "wilaya": "16",
        "commune": "Bab Ezzouar",
        "delivery_type": "office",
        "address": "",
        "note": "",
        "cart_items": [
            {"product_id": seeded_catalog["dress"], "quantity": 2, "price": 1, "options": {"size": "M"}},
        ],
        "turnstile_token": "tok-ok",
        "event_id": "evt-checkout-1",
    }
