"""
Time helpers.

All timestamps are stored as naive UTC datetimes (SQLite has no tz support).
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
