"""
Domain enums and the order status lifecycle.
"""

from enum import Enum


class OrderStatus(str, Enum):
    NEW = "new"
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    SENT_TO_CARRIER = "sent_to_carrier"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    REFUSED = "refused"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class DeliveryType(str, Enum):
    OFFICE = "office"
    HOME = "home"


class IdentifierType(str, Enum):
    IP = "ip"
    PHONE = "phone"


class PurchaseEventTrigger(str, Enum):
    """When the Purchase conversion is reported to ad platforms."""
    CONFIRMED = "confirmed"   # immediately at order creation
    DELIVERED = "delivered"   # queued until the parcel is delivered


TERMINAL_STATUSES = frozenset({
    OrderStatus.DELIVERED,
    OrderStatus.REFUSED,
    OrderStatus.RETURNED,
    OrderStatus.CANCELLED,
})

# new → pending_confirmation → confirmed → sent_to_carrier → out_for_delivery → delivered
# confirmed | sent_to_carrier | out_for_delivery → refused | returned
# any pre-delivery state → cancelled
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.PENDING_CONFIRMATION, OrderStatus.CANCELLED}),
    OrderStatus.PENDING_CONFIRMATION: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({
        OrderStatus.SENT_TO_CARRIER, OrderStatus.REFUSED, OrderStatus.RETURNED, OrderStatus.CANCELLED,
    }),
    OrderStatus.SENT_TO_CARRIER: frozenset({
        OrderStatus.OUT_FOR_DELIVERY, OrderStatus.REFUSED, OrderStatus.RETURNED, OrderStatus.CANCELLED,
    }),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({
        OrderStatus.DELIVERED, OrderStatus.REFUSED, OrderStatus.RETURNED, OrderStatus.CANCELLED,
    }),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.REFUSED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())
