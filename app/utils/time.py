"""Utility functions for time handling.

All persisted timestamps are UTC and timezone-aware, stored as ISO-8601
strings with a "+00:00" offset via ``to_iso()`` / ``iso_now()``. Calendar-day
logic (reminder buckets, quiet hours) runs in the caller's timezone, taken
from the tzinfo of the ``now`` value it passes in.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def to_iso(dt: datetime | None) -> str | None:
    """Render an aware datetime as a UTC ISO8601 string; naive values are taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def start_of_day(now: datetime) -> datetime:
    """Midnight of ``now``'s calendar day, in ``now``'s own timezone."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def local_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Return ``[start_of_today, start_of_tomorrow)`` in ``now``'s timezone."""
    start = start_of_day(now)
    # Add a calendar day then re-anchor to midnight so DST shifts don't leak in
    tomorrow = start_of_day(start + timedelta(days=1, hours=12))
    return start, tomorrow


def as_timezone_of(value: datetime, now: datetime) -> datetime:
    """Express ``value`` in the timezone carried by ``now``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.astimezone(now.tzinfo)


def parse_hhmm(value: str) -> time:
    """Parse "HH:MM" into a ``time``; raises ValueError on bad input."""
    hours, _, minutes = value.strip().partition(":")
    return time(hour=int(hours), minute=int(minutes or 0))


def within_window(moment: time, start: time, end: time) -> bool:
    """True when ``moment`` lies in ``[start, end)``; windows may wrap midnight."""
    if start == end:
        return False
    if start < end:
        return start <= moment < end
    return moment >= start or moment < end
