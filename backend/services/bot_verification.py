"""
Bot verification — Cloudflare Turnstile siteverify client.

The storefront renders a Turnstile widget; the browser submits the resulting
token with the checkout. We verify it server-side with the secret key.

Fails closed: a missing secret, a network error, a non-2xx response or an
unparseable body all count as a failed verification. There is no retry; the
customer re-solves the challenge and resubmits.
"""
import logging
from typing import Optional

import httpx

from config import settings

logger = logging.getLogger(__name__)


async def verify_challenge(
    token: str,
    remote_ip: str | None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """
    Verify a Turnstile token for the calling IP.

    Args:
        token: Opaque token produced by the browser widget
        remote_ip: Caller IP forwarded to Turnstile (optional)
        client: Pre-built httpx client (tests inject a MockTransport client)

    Returns:
        True only if Turnstile answered {"success": true}
    """
    if not settings.turnstile_secret_key:
        logger.error(
            "TURNSTILE_SECRET_KEY not configured — rejecting checkout. "
            "Set TURNSTILE_SECRET_KEY in .env to accept orders."
        )
        return False

    if not token:
        logger.info("Checkout submitted without a bot challenge token")
        return False

    form = {"secret": settings.turnstile_secret_key, "response": token}
    if remote_ip and remote_ip != "unknown":
        form["remoteip"] = remote_ip

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.bot_verification_timeout_seconds) as own_client:
                response = await own_client.post(settings.turnstile_verify_url, data=form)
        else:
            response = await client.post(settings.turnstile_verify_url, data=form)
        response.raise_for_status()
        result = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Turnstile verification failed closed: {e}")
        return False

    if not isinstance(result, dict) or result.get("success") is not True:
        error_codes = result.get("error-codes") if isinstance(result, dict) else None
        logger.info(f"Turnstile rejected token (ip={remote_ip}, errors={error_codes})")
        return False

    return True
