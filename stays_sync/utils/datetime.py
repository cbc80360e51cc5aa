"""Date and time helpers. Timestamps are UTC; business days are in the configured timezone."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from stays_sync.config import TIMEZONE


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Use this instead of datetime.now() or datetime.utcnow() so all stored
    timestamps are timezone-aware and in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def local_today(tz_name: str = TIMEZONE) -> date:
    """
    Return today's date in the property timezone.

    Check-in and check-out dates are local calendar days, so "today" for the
    dashboard and the sync window must be computed in that timezone, not UTC.
    """
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_date(value: object) -> Optional[date]:
    """
    Parse a calendar date from an ISO date or datetime string.

    Args:
        value: "2024-03-10", "2024-03-10T14:00:00Z", a date, or anything else

    Returns:
        The date, or None if the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (end - start).days


def iter_days(start: date, end: date):
    """Yield every date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
