"""
In-memory request throttle for public, unauthenticated endpoints.

Guards /tracking/events so a single browser cannot flood the ad platforms
through us. Order creation is limited separately by the persistent
limiter in services/rate_limit_service.py.

Uses a simple sliding-window counter per IP address. State is per process;
with several workers each one throttles independently.
"""
import time
import logging
from collections import defaultdict

from fastapi import Request

from deps import client_ip
from domain import constants
from domain.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Simple in-memory sliding-window rate limiter.

    Tracks request timestamps per (IP, route) key. Keys idle for longer than
    sweep_seconds are dropped on the next sweep.
    """

    def __init__(self, sweep_seconds: int = 300):
        # {key: [timestamp1, timestamp2, ...]}
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._sweep_seconds = sweep_seconds
        self._last_sweep = time.time()

    def _cleanup(self, key: str, window_seconds: int):
        """Remove expired timestamps from the window."""
        cutoff = time.time() - window_seconds
        timestamps = [ts for ts in self._requests[key] if ts > cutoff]
        if timestamps:
            self._requests[key] = timestamps
        else:
            self._requests.pop(key, None)

    def _sweep(self, now: float):
        """Drop every key whose newest request is older than sweep_seconds."""
        cutoff = now - self._sweep_seconds
        stale = [key for key, timestamps in self._requests.items() if not timestamps or timestamps[-1] <= cutoff]
        for key in stale:
            del self._requests[key]
        self._last_sweep = now
        if stale:
            logger.debug(f"Rate limiter swept {len(stale)} idle key(s)")

    def check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        Check if a request is allowed under the rate limit.

        Args:
            key: Unique identifier (e.g., "IP:route")
            max_requests: Maximum allowed requests in the window
            window_seconds: Time window in seconds

        Returns:
            True if allowed, False if rate-limited
        """
        now = time.time()
        if now - self._last_sweep >= self._sweep_seconds:
            self._sweep(now)

        self._cleanup(key, window_seconds)

        if len(self._requests[key]) >= max_requests:
            return False

        self._requests[key].append(now)
        return True

    def __len__(self) -> int:
        return len(self._requests)

    def reset(self):
        self._requests.clear()
        self._last_sweep = time.time()


# Global rate limiter instance
_limiter = RateLimiter()


def rate_limit(max_requests: int = 60, window_seconds: int = 60):
    """
    FastAPI dependency factory for per-IP throttling.

    Usage:
        @router.post("/tracking/events")
        async def track(request: Request, _=Depends(rate_limit(60, 60))):
            ...
    """
    async def _check_rate_limit(request: Request):
        ip = client_ip(request)
        route_path = request.url.path
        key = f"{ip}:{route_path}"

        if not _limiter.check(key, max_requests, window_seconds):
            logger.warning(
                f"Rate limit exceeded: {ip} on {route_path} "
                f"({max_requests}/{window_seconds}s)"
            )
            exc = RateLimitError(
                constants.MSG_TOO_MANY_REQUESTS,
                details={"limit": max_requests, "window_seconds": window_seconds},
            )
            exc.headers = {
                "Retry-After": str(window_seconds),
                "X-RateLimit-Limit": str(max_requests),
                "X-RateLimit-Remaining": "0",
            }
            raise exc

    return _check_rate_limit
