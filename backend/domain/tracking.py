"""
Value types passed between the order pipeline, the tracking dispatcher and
the ad platform adapters.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class ClientContext:
    """Who made the request. Forwarded to ad platforms for attribution."""
    ip: str = "unknown"
    user_agent: str = ""
    referer: str = ""


@dataclass(frozen=True)
class TrackingContent:
    content_id: str
    quantity: Optional[int] = None
    price: Optional[Decimal] = None
    content_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content_id": self.content_id}
        if self.quantity is not None:
            data["quantity"] = self.quantity
        if self.price is not None:
            data["price"] = float(self.price)
        if self.content_name:
            data["content_name"] = self.content_name
        return data


@dataclass(frozen=True)
class TrackingEvent:
    """
    A conversion event.

    event_id must equal the id used by the browser pixel for the same event;
    platforms merge browser and server copies that share it.
    """
    event_name: str
    event_id: str
    phone: Optional[str] = None
    value: Optional[Decimal] = None
    currency: str = "DZD"
    order_id: Optional[str] = None
    content_ids: list[str] = field(default_factory=list)
    contents: list[TrackingContent] = field(default_factory=list)
    content_name: Optional[str] = None
    fbc: Optional[str] = None
    fbp: Optional[str] = None

    def snapshot(self, *, hashed_phone: Optional[str], context: ClientContext) -> dict[str, Any]:
        """JSON-safe copy for the deferred queue. The phone is stored hashed only."""
        return {
            "event_name": self.event_name,
            "event_id": self.event_id,
            "hashed_phone": hashed_phone,
            "value": float(self.value) if self.value is not None else None,
            "currency": self.currency,
            "order_id": self.order_id,
            "content_ids": list(self.content_ids),
            "contents": [c.to_dict() for c in self.contents],
            "content_name": self.content_name,
            "fbc": self.fbc,
            "fbp": self.fbp,
            "client_ip_address": context.ip if context.ip != "unknown" else None,
            "client_user_agent": context.user_agent or None,
            "referer": context.referer or None,
        }
