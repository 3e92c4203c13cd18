"""
Shared row helpers for the Supabase repositories.

- Timestamp parsing/serialization (Supabase returns ISO-8601, sometimes with 'Z').
- A single `execute` wrapper that turns any Supabase/PostgREST failure into
  StoreUnavailable so callers see one error type for store failures.
- `map_row` / `map_rows`, which report rows the domain model rejects as
  StoreUnavailable as well.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Mapping, Optional, TypeVar

from postgrest.exceptions import APIError  # type: ignore[import-not-found]

from domain.errors import StoreUnavailable
from domain.time import require_utc_timestamp

T = TypeVar("T")


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        # Python's fromisoformat doesn't consistently accept 'Z' across versions.
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    # If the backend returns a naive timestamp, interpret it as UTC so that the
    # domain model's UTC invariant is satisfied.
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_optional_datetime(value: Any) -> Optional[datetime]:
    return parse_utc_datetime(value) if value else None


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def to_decimal(value: Any) -> Decimal:
    """Money columns may come back as numbers, strings or null."""

    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def execute(query: Any, action: str) -> List[Mapping[str, Any]]:
    """
    Execute a Supabase query builder and return its rows.

    Raises:
        StoreUnavailable: if PostgREST raises or the response carries an error.
    """

    try:
        response = query.execute()
    except APIError as e:
        raise StoreUnavailable(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise StoreUnavailable(f"Failed to {action}: {error}")

    return getattr(response, "data", None) or []


def map_row(row: Mapping[str, Any], mapper: Callable[[Mapping[str, Any]], T], action: str) -> T:
    """
    Convert one stored row with `mapper`.

    A row the domain model rejects is a store failure, not a caller error.

    Raises:
        StoreUnavailable: if the row is missing fields or carries invalid values.
    """

    try:
        return mapper(row)
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise StoreUnavailable(f"Failed to {action}: unreadable row {row.get('id')!r}: {e}") from e


def map_rows(rows: Iterable[Mapping[str, Any]], mapper: Callable[[Mapping[str, Any]], T], action: str) -> List[T]:
    return [map_row(row, mapper, action) for row in rows]


__all__ = [
    "execute",
    "map_row",
    "map_rows",
    "parse_optional_datetime",
    "parse_utc_datetime",
    "to_decimal",
    "to_iso_utc",
]
