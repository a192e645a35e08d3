"""
SQLAlchemy ORM models for the COD Storefront backend.

Tables:
    regions                  — administrative regions (wilayas), shipping destinations
    products                 — catalog (read-only for the order pipeline)
    shipping_rates           — per-region, per-delivery-type price table
    settings                 — key/value runtime settings (purchase_event, ...)
    orders                   — customer orders (COD)
    order_items              — line snapshots, cascade-deleted with the order
    order_status_history     — append-only status log
    rate_limits              — per-identifier order counters (ip / phone)
    pending_tracking_events  — deferred conversion events (e.g. on delivery)
    carts                    — draft carts for abandoned-cart tracking
    audit_logs               — sensitive admin-triggered actions

Identifiers are random UUID4 strings: the order id + public token pair is
handed to unauthenticated customers, so nothing may be guessable.
"""
import uuid

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, DateTime, Text, ForeignKey, JSON,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base
from utils.timeutils import utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


# Fixed-point money: DECIMAL(10,2), always handled as decimal.Decimal
Money = Numeric(10, 2, asdecimal=True)


# ════════════════════════════════════════════════════════════════════
# Catalog & reference data (owned by the admin collaborator)
# ════════════════════════════════════════════════════════════════════

class Region(Base):
    """Administrative region (wilaya) used for shipping and address validation."""
    __tablename__ = "regions"

    code = Column(String(8), primary_key=True)  # "01" .. "58"
    name = Column(String(100), nullable=False)
    name_ar = Column(String(100), nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    price = Column(Money, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    images = Column(JSON, nullable=False, default=list)  # list of image URLs / ids
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_products_active_created", "is_active", "created_at"),
    )


class ShippingRate(Base):
    __tablename__ = "shipping_rates"

    id = Column(String(36), primary_key=True, default=_uuid)
    region_code = Column(String(8), ForeignKey("regions.code"), nullable=False, index=True)
    delivery_type = Column(String(10), nullable=False)  # "office" | "home"
    price = Column(Money, nullable=False, default=0)
    is_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("region_code", "delivery_type", name="uq_shipping_region_delivery"),
    )


class Setting(Base):
    """Runtime key/value settings edited from the admin panel."""
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=_uuid)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ════════════════════════════════════════════════════════════════════
# Orders
# ════════════════════════════════════════════════════════════════════

class Order(Base):
    """
    A COD order. total = subtotal + shipping, all computed server-side.

    status is only changed through order_service.transition_status(),
    which also appends to order_status_history.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    public_token = Column(String(36), unique=True, nullable=False, default=_uuid, index=True)

    # Customer
    full_name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    region_code = Column(String(8), nullable=False, index=True)
    commune = Column(String(200), nullable=True)
    address = Column(Text, nullable=True)
    delivery_type = Column(String(10), nullable=False)  # "office" | "home"
    note = Column(Text, nullable=True)

    # Money (DZD)
    subtotal = Column(Money, nullable=False)
    shipping = Column(Money, nullable=False)
    total = Column(Money, nullable=False)

    status = Column(String(30), nullable=False, default="new", index=True)
    tracking_number = Column(String(100), nullable=True)

    # Request metadata
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    event_id = Column(String(128), nullable=True)  # pixel/CAPI dedup key

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="select",
    )
    status_history = relationship(
        "OrderStatusHistory",
        cascade="all, delete-orphan",
        lazy="select",
        order_by="OrderStatusHistory.created_at",
    )

    __table_args__ = (
        # Duplicate detection: same phone, most recent first
        Index("ix_orders_phone_created", "phone", "created_at"),
        Index("ix_orders_status_created", "status", "created_at"),
    )


class OrderItem(Base):
    """
    Line snapshot taken at order time.

    Product name and price are copied so historical orders stay accurate
    after catalog edits; product_id is kept for reference only.
    """
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), nullable=True, index=True)
    product_name = Column(String(200), nullable=False)
    price = Column(Money, nullable=False)  # unit price
    quantity = Column(Integer, nullable=False, default=1)
    selected_size = Column(String(50), nullable=True)
    selected_color = Column(String(50), nullable=True)
    options = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    order = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    """Append-only status log. Rows are never updated or deleted by the app."""
    __tablename__ = "order_status_history"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(30), nullable=False)
    changed_by = Column(String(36), nullable=True)  # admin user id, null for system
    created_at = Column(DateTime, default=utcnow)


# ════════════════════════════════════════════════════════════════════
# Abuse controls
# ════════════════════════════════════════════════════════════════════

class RateLimitCounter(Base):
    """
    Fixed-window counter per (identifier, identifier_type, action).

    A counter is active while window_start is within the window length.
    Expired counters are replaced, never incremented.
    """
    __tablename__ = "rate_limits"

    id = Column(String(36), primary_key=True, default=_uuid)
    identifier = Column(String(64), nullable=False)  # IP or phone
    identifier_type = Column(String(10), nullable=False)  # "ip" | "phone"
    action = Column(String(50), nullable=False)
    count = Column(Integer, nullable=False, default=1)
    window_start = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("ix_rate_limits_identifier", "identifier", "identifier_type", "action", "window_start"),
    )


# ════════════════════════════════════════════════════════════════════
# Tracking & carts
# ════════════════════════════════════════════════════════════════════

class PendingTrackingEvent(Base):
    """
    Conversion event held back until the order reaches trigger_status.

    Written by the tracking dispatcher; drained (sent_at set) by a
    separate scheduled sender.
    """
    __tablename__ = "pending_tracking_events"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    event_name = Column(String(50), nullable=False)
    event_id = Column(String(128), nullable=True)
    event_data = Column(JSON, nullable=True)
    trigger_status = Column(String(30), nullable=False, default="delivered")
    created_at = Column(DateTime, default=utcnow, index=True)
    sent_at = Column(DateTime, nullable=True)


class Cart(Base):
    """Draft cart snapshot for abandoned-cart follow-up. Deleted once ordered."""
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=_uuid)
    phone = Column(String(20), nullable=True)
    items = Column(JSON, nullable=False, default=list)
    total_value = Column(Money, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, index=True)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=True)
    action = Column(String(100), nullable=False)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
