"""
Shared FastAPI dependencies.

Centralizes request-derived values so routers import from a single place
(caller IP, client context).
"""

from __future__ import annotations

from fastapi import Request

from domain import constants
from domain.tracking import ClientContext


def client_ip(request: Request) -> str:
    """
    Caller IP as seen through the CDN/proxy chain.

    cf-connecting-ip wins, then the first x-forwarded-for hop, then the
    socket peer. "unknown" when none is available.
    """
    cf_ip = (request.headers.get("cf-connecting-ip") or "").strip()
    if cf_ip:
        return cf_ip

    forwarded = request.headers.get("x-forwarded-for") or ""
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def client_context(request: Request) -> ClientContext:
    return ClientContext(
        ip=client_ip(request),
        user_agent=(request.headers.get("user-agent") or "")[:constants.USER_AGENT_MAX_LENGTH],
        referer=request.headers.get("referer") or "",
    )
