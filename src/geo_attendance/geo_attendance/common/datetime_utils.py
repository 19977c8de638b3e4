from __future__ import annotations

from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp into naive UTC.

    Values with an offset are converted; values without one are taken as UTC.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid datetime {value!r} (expected ISO 8601)")
    return to_utc(parsed)


def utc_now() -> datetime:
    """Current time as naive UTC, the form every stored timestamp takes.

    Note: Wrapped so tests can inject a fixed clock instead.
    """
    return datetime.now(dt_timezone.utc).replace(tzinfo=None)


def to_utc(value: datetime) -> datetime:
    """Aware values are converted to UTC; naive values are already UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(dt_timezone.utc).replace(tzinfo=None)


def to_local(now: datetime, timezone: Optional[str] = None) -> datetime:
    """Express `now` in the tenant's timezone (naive input is UTC)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt_timezone.utc)
    if not timezone:
        return now
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone {timezone!r}")
    return now.astimezone(zone)


def local_work_date(now: datetime, timezone: Optional[str] = None) -> date:
    """Calendar day of `now` in the tenant's timezone."""
    return to_local(now, timezone).date()


def whole_minutes(start: datetime, end: datetime) -> int:
    """Floor of the elapsed minutes between two instants (may be negative)."""
    return (end - start) // timedelta(minutes=1)


def js_weekday(day: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}m"
