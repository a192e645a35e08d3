"""
Input validation utilities for checkout submissions.

validate_checkout() is a pure function: the only piece of outside state it
needs (whether the region code exists) is resolved by the caller and passed
in. Rules run in a fixed order and the first failure wins.
"""
import re
from dataclasses import dataclass, field
from typing import Optional

from config import settings
from domain import constants
from domain.enums import DeliveryType
from domain.errors import ValidationError
from models import CartItemIn, CreateOrderRequest

_PHONE_RE = re.compile(constants.PHONE_PATTERN)


@dataclass(frozen=True)
class ValidatedCheckout:
    """Normalized checkout fields, safe to persist."""
    full_name: str
    phone: str
    region_code: str
    delivery_type: DeliveryType
    commune: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    cart_items: list[CartItemIn] = field(default_factory=list)


def is_valid_phone(phone: str | None) -> bool:
    """True iff phone is a national mobile number (0 + 5/6/7 + 8 digits), exactly."""
    if not isinstance(phone, str):
        return False
    return _PHONE_RE.fullmatch(phone) is not None


def to_international_phone(phone: str) -> str | None:
    """
    Convert a national mobile number to international form without '+'.

    "0551234567" → "213551234567". Returns None for anything that is not a
    valid national mobile number.
    """
    phone = (phone or "").strip()
    if not is_valid_phone(phone):
        return None
    return settings.country_calling_code + phone[1:]


def mask_phone(phone: str | None) -> str:
    """Mask a phone number for logs: 0551234567 → 055****567."""
    if not phone or len(phone) < 6:
        return "***"
    return f"{phone[:3]}****{phone[-3:]}"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_checkout(request: CreateOrderRequest, *, region_exists: bool) -> ValidatedCheckout:
    """
    Validate and normalize a checkout submission.

    Args:
        request: Raw submitted fields
        region_exists: Whether request.region_code is in the region table

    Returns:
        ValidatedCheckout with trimmed strings and empty optionals set to None

    Raises:
        ValidationError(400) naming the first failing field
    """
    full_name = (request.full_name or "").strip()
    if not full_name:
        raise ValidationError(constants.MSG_NAME_REQUIRED, field="full_name")

    if not is_valid_phone(request.phone):
        raise ValidationError(constants.MSG_INVALID_PHONE, field="phone")

    if not request.region_code or not region_exists:
        raise ValidationError(constants.MSG_UNKNOWN_REGION, field="region_code")

    try:
        delivery_type = DeliveryType(request.delivery_type)
    except ValueError:
        raise ValidationError(constants.MSG_INVALID_DELIVERY_TYPE, field="delivery_type")

    address = _clean(request.address)
    if delivery_type is DeliveryType.HOME and not address:
        raise ValidationError(constants.MSG_ADDRESS_REQUIRED, field="address")

    if not request.cart_items:
        raise ValidationError(constants.MSG_EMPTY_CART, field="cart_items")

    for item in request.cart_items:
        if not item.product_id or not 1 <= item.quantity <= constants.MAX_LINE_QUANTITY:
            raise ValidationError(constants.MSG_INVALID_CART_ITEM, field="cart_items")

    return ValidatedCheckout(
        full_name=full_name,
        phone=request.phone,
        region_code=request.region_code,
        delivery_type=delivery_type,
        commune=_clean(request.commune),
        address=address,
        note=_clean(request.note),
        cart_items=list(request.cart_items),
    )
