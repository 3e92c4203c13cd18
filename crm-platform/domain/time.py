"""
Domain time utilities (pure).

Centralized timestamp validation and calendar helpers.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the requirement that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def start_of_day(day: date) -> datetime:
    """Midnight UTC at the start of `day`."""

    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """Last representable UTC instant of `day`."""

    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """
    Whole 24-hour days elapsed between two UTC timestamps:

    floor((later - earlier) / 24 hours)
    """

    require_utc_timestamp("earlier", earlier)
    require_utc_timestamp("later", later)

    if later < earlier:
        raise ValueError("later must be >= earlier")

    return int((later - earlier) // timedelta(days=1))
