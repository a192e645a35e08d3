"""
Ad platform adapters — Meta Conversions API and TikTok Events API.

Each adapter knows its endpoint, credentials and payload shape. Adapters
never see a plaintext phone number: the dispatcher hands them the SHA-256
digest of the international form.

Credentials are server-held (.env) and never sent to the browser.
"""
import logging
from typing import Any, Optional

import httpx

from config import settings
from domain.tracking import ClientContext, TrackingEvent
from exceptions import PlatformRequestError

logger = logging.getLogger(__name__)

META_GRAPH_BASE = "https://graph.facebook.com"
TIKTOK_TRACK_URL = "https://business-api.tiktok.com/open_api/v1.3/pixel/track/"


class AdPlatform:
    """Base adapter. Subclasses build the payload and interpret the response."""

    name: str = ""

    def build_payload(
        self,
        event: TrackingEvent,
        *,
        hashed_phone: Optional[str],
        context: ClientContext,
        event_time: int,
    ) -> dict[str, Any]:
        raise NotImplementedError

    async def send(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError


class MetaConversionsPlatform(AdPlatform):
    """Meta (Facebook) Conversions API."""

    name = "meta"

    def __init__(self, pixel_id: str, access_token: str, api_version: str = "v18.0"):
        self.pixel_id = pixel_id
        self.access_token = access_token
        self.api_version = api_version

    @property
    def url(self) -> str:
        return f"{META_GRAPH_BASE}/{self.api_version}/{self.pixel_id}/events"

    def build_payload(self, event, *, hashed_phone, context, event_time):
        user_data: dict[str, Any] = {}
        if hashed_phone:
            user_data["ph"] = hashed_phone
        if context.ip and context.ip != "unknown":
            user_data["client_ip_address"] = context.ip
        if context.user_agent:
            user_data["client_user_agent"] = context.user_agent
        if event.fbc:
            user_data["fbc"] = event.fbc
        if event.fbp:
            user_data["fbp"] = event.fbp

        custom_data: dict[str, Any] = {
            "currency": event.currency,
            "content_type": "product",
        }
        if event.value is not None:
            custom_data["value"] = float(event.value)
        if event.content_ids:
            custom_data["content_ids"] = list(event.content_ids)
        if event.contents:
            custom_data["contents"] = [
                {
                    "id": c.content_id,
                    **({"quantity": c.quantity} if c.quantity is not None else {}),
                    **({"item_price": float(c.price)} if c.price is not None else {}),
                }
                for c in event.contents
            ]
        if event.content_name:
            custom_data["content_name"] = event.content_name
        if event.order_id:
            custom_data["order_id"] = event.order_id

        data: dict[str, Any] = {
            "event_name": event.event_name,
            "event_time": event_time,
            "event_id": event.event_id,  # dedup with the browser pixel
            "action_source": "website",
            "user_data": user_data,
            "custom_data": custom_data,
        }
        if context.referer:
            data["event_source_url"] = context.referer

        # Token in the body, not the query string, so it never lands in access logs
        return {"data": [data], "access_token": self.access_token}

    async def send(self, client, payload):
        response = await client.post(self.url, json=payload)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            message = (body.get("error") or {}).get("message") if isinstance(body, dict) else None
            raise PlatformRequestError(self.name, message or "Meta API error", response.status_code)
        return body if isinstance(body, dict) else {}


class TikTokEventsPlatform(AdPlatform):
    """TikTok Events API (pixel track)."""

    name = "tiktok"

    def __init__(self, pixel_id: str, access_token: str):
        self.pixel_id = pixel_id
        self.access_token = access_token

    def build_payload(self, event, *, hashed_phone, context, event_time):
        user: dict[str, Any] = {}
        if hashed_phone:
            user["phone"] = [hashed_phone]
        if context.ip and context.ip != "unknown":
            user["ip"] = context.ip
        if context.user_agent:
            user["user_agent"] = context.user_agent

        contents = [c.to_dict() for c in event.contents] or [
            {"content_id": cid} for cid in event.content_ids
        ]
        properties: dict[str, Any] = {
            "currency": event.currency,
            "content_type": "product",
            "contents": contents,
        }
        if event.value is not None:
            properties["value"] = float(event.value)
        if event.content_ids:
            properties["content_id"] = event.content_ids[0]
        if event.content_name:
            properties["content_name"] = event.content_name
        if event.order_id:
            properties["order_id"] = event.order_id

        return {
            "pixel_code": self.pixel_id,
            "event": event.event_name,
            "event_id": event.event_id,
            "timestamp": event_time,
            "context": {
                "user": user,
                "page": {"url": context.referer, "referrer": context.referer},
            },
            "properties": properties,
        }

    async def send(self, client, payload):
        response = await client.post(
            TIKTOK_TRACK_URL,
            json=payload,
            headers={"Access-Token": self.access_token},
        )
        try:
            body = response.json()
        except ValueError:
            body = {}
        # TikTok reports errors in-band: code == 0 means accepted
        code = body.get("code") if isinstance(body, dict) else None
        if response.status_code >= 400 or code != 0:
            message = body.get("message") if isinstance(body, dict) else None
            raise PlatformRequestError(self.name, message or "TikTok API error", response.status_code)
        return body


def configured_platforms() -> list[AdPlatform]:
    """Platforms with credentials present. Missing credentials disable a platform silently."""
    platforms: list[AdPlatform] = []
    if settings.meta_configured:
        platforms.append(
            MetaConversionsPlatform(settings.meta_pixel_id, settings.meta_access_token, settings.meta_api_version)
        )
    if settings.tiktok_configured:
        platforms.append(TikTokEventsPlatform(settings.tiktok_pixel_id, settings.tiktok_access_token))
    return platforms
