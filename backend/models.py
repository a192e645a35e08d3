"""
Pydantic models for request validation.

Request models are deliberately lenient about field *content*: shape rules
(phone format, region, delivery type, ...) are enforced by
utils.validators.validate_checkout so failures come back as localized 400s
in a fixed order instead of FastAPI's generic 422 list.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class StorefrontBase(BaseModel):
    """Shared base — allows construction by Python name or alias, ignores unknown keys."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True, extra="ignore")


# ── Checkout ────────────────────────────────────────────────────────

class CartItemOptions(StorefrontBase):
    size: Optional[str] = None
    color: Optional[str] = None


class CartItemIn(StorefrontBase):
    """One cart line as submitted by the browser."""
    product_id: str = ""
    quantity: int = 1
    # Accepted for compatibility with older clients, never used for pricing
    price: Optional[Decimal] = None
    options: Optional[CartItemOptions] = None


class CreateOrderRequest(StorefrontBase):
    """Untrusted checkout submission."""
    full_name: str = ""
    phone: str = ""
    region_code: str = Field(
        default="",
        validation_alias=AliasChoices("region_code", "wilaya"),
    )
    commune: Optional[str] = None
    delivery_type: str = ""
    address: Optional[str] = None
    note: Optional[str] = None
    cart_items: List[CartItemIn] = Field(default_factory=list)
    bot_challenge_token: str = Field(
        default="",
        validation_alias=AliasChoices("bot_challenge_token", "turnstile_token"),
    )
    client_event_id: str = Field(
        default="",
        max_length=128,
        validation_alias=AliasChoices("client_event_id", "event_id"),
    )
    cart_draft_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("cart_draft_id", "cart_id"),
    )


# ── Public order lookup ─────────────────────────────────────────────

class OrderLookupRequest(StorefrontBase):
    order_id: str = Field(default="", max_length=64)
    public_token: str = Field(default="", max_length=64)


# ── Cart drafts ─────────────────────────────────────────────────────

class CartDraftRequest(StorefrontBase):
    cart_id: Optional[str] = Field(default=None, max_length=36)
    phone: Optional[str] = Field(default=None, max_length=20)
    items: List[CartItemIn] = Field(default_factory=list, max_length=50)
    total_value: Decimal = Field(default=Decimal("0"), ge=0)


# ── Browser conversion events ──────────────────────────────────────

class TrackingUserData(StorefrontBase):
    fbc: Optional[str] = Field(default=None, max_length=500)
    fbp: Optional[str] = Field(default=None, max_length=500)


class TrackingContentIn(StorefrontBase):
    content_id: str
    quantity: Optional[int] = None
    price: Optional[Decimal] = None
    content_name: Optional[str] = None


class TrackingEventRequest(StorefrontBase):
    """Server-side copy of a browser pixel event (same event_id for dedup)."""
    event_name: str
    event_id: str = Field(..., min_length=1, max_length=128)
    phone: Optional[str] = None
    value: Optional[Decimal] = None
    content_ids: List[str] = Field(default_factory=list, max_length=50)
    contents: List[TrackingContentIn] = Field(default_factory=list, max_length=50)
    content_name: Optional[str] = Field(default=None, max_length=200)
    user_data: Optional[TrackingUserData] = None
