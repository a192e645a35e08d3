"""
Persistent order rate limiter — fixed one-hour windows per identifier.

Counters live in the rate_limits table keyed by
(identifier, identifier_type, action), so limits hold across workers.

Window semantics:
    A counter is active while window_start >= now - window. Once it falls out
    of the window it is treated as absent; the next record() replaces it with
    a fresh counter (count=1, window_start=now) instead of adding to it.

Concurrency:
    check() and record() are separate steps with no lock between them. Two
    concurrent checkouts for the same identifier can both read count=N and
    both be admitted, so a burst may exceed the limit by the number of
    in-flight requests. This is accepted: the overshoot is bounded by
    concurrency, not unbounded.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import RateLimitCounter
from domain import constants
from domain.enums import IdentifierType
from domain.errors import RateLimitError
from utils.timeutils import utcnow
from utils.validators import mask_phone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Counts seen during the read-only check stage (None = no active window)."""
    ip_count: Optional[int]
    phone_count: Optional[int]


def _window_start(now: datetime) -> datetime:
    return now - timedelta(minutes=settings.rate_limit_window_minutes)


async def _active_counter(
    db: AsyncSession,
    identifier: str,
    identifier_type: IdentifierType,
    action: str,
    now: datetime,
) -> RateLimitCounter | None:
    res = await db.execute(
        select(RateLimitCounter)
        .where(
            RateLimitCounter.identifier == identifier,
            RateLimitCounter.identifier_type == identifier_type.value,
            RateLimitCounter.action == action,
            RateLimitCounter.window_start >= _window_start(now),
        )
        .order_by(RateLimitCounter.window_start.desc())
        .limit(1)
    )
    return res.scalars().first()


async def check(
    db: AsyncSession,
    identifier: str,
    identifier_type: IdentifierType,
    action: str,
    *,
    now: datetime | None = None,
) -> int | None:
    """Return the count of the active window, or None if there is none. Read-only."""
    counter = await _active_counter(db, identifier, identifier_type, action, now or utcnow())
    return counter.count if counter else None


async def record(
    db: AsyncSession,
    identifier: str,
    identifier_type: IdentifierType,
    action: str,
    *,
    now: datetime | None = None,
) -> int:
    """
    Count one accepted attempt.

    Increments the active counter, or replaces expired counters for the key
    with a new window. Does not commit.

    Returns:
        The counter value after recording
    """
    now = now or utcnow()
    counter = await _active_counter(db, identifier, identifier_type, action, now)
    if counter:
        counter.count += 1
        await db.flush()
        return counter.count

    # New window replaces any expired ones for this key
    await db.execute(
        delete(RateLimitCounter).where(
            RateLimitCounter.identifier == identifier,
            RateLimitCounter.identifier_type == identifier_type.value,
            RateLimitCounter.action == action,
        )
    )
    db.add(
        RateLimitCounter(
            identifier=identifier,
            identifier_type=identifier_type.value,
            action=action,
            count=1,
            window_start=now,
        )
    )
    await db.flush()
    return 1


async def enforce_order_limits(
    db: AsyncSession,
    ip: str,
    phone: str,
    *,
    now: datetime | None = None,
) -> RateLimitSnapshot:
    """
    Read-only gate for order creation: IP first, then phone.

    Raises:
        RateLimitError(429) if either active window is at its limit
    """
    now = now or utcnow()

    ip_count = await check(db, ip, IdentifierType.IP, constants.ACTION_CREATE_ORDER, now=now)
    if ip_count is not None and ip_count >= settings.order_ip_limit_per_hour:
        logger.warning(
            f"Order rate limit exceeded for IP {ip} "
            f"({ip_count}/{settings.order_ip_limit_per_hour} per window)"
        )
        raise RateLimitError(
            constants.MSG_IP_RATE_LIMITED,
            details={"identifier_type": IdentifierType.IP.value},
        )

    phone_count = await check(db, phone, IdentifierType.PHONE, constants.ACTION_CREATE_ORDER, now=now)
    if phone_count is not None and phone_count >= settings.order_phone_limit_per_hour:
        logger.warning(
            f"Order rate limit exceeded for phone {mask_phone(phone)} "
            f"({phone_count}/{settings.order_phone_limit_per_hour} per window)"
        )
        raise RateLimitError(
            constants.MSG_PHONE_RATE_LIMITED,
            details={"identifier_type": IdentifierType.PHONE.value},
        )

    return RateLimitSnapshot(ip_count=ip_count, phone_count=phone_count)


async def record_order(
    db: AsyncSession,
    ip: str,
    phone: str,
    *,
    now: datetime | None = None,
) -> None:
    """Write path: count a successfully persisted order against IP and phone."""
    now = now or utcnow()
    await record(db, ip, IdentifierType.IP, constants.ACTION_CREATE_ORDER, now=now)
    await record(db, phone, IdentifierType.PHONE, constants.ACTION_CREATE_ORDER, now=now)
