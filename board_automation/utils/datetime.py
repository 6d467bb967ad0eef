"""Helpers for working with UTC datetimes.

The database stores naive UTC values (SQLite and several drivers drop
``tzinfo``); the domain layer always works with aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def utc_now_naive() -> datetime:
    """Return the current UTC time without ``tzinfo`` (column default helper)."""

    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is an aware datetime expressed in UTC.

    Naive values are assumed to already be UTC.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime | None) -> datetime | None:
    """Return ``value`` converted to UTC without ``tzinfo`` for persistence."""

    normalized = ensure_utc(value)
    if normalized is None:
        return None
    return normalized.replace(tzinfo=None)


def parse_datetime(value: object) -> datetime | None:
    """Coerce ``value`` (datetime or ISO-8601 string) into an aware UTC datetime.

    Returns ``None`` when the value is missing or cannot be interpreted.
    """

    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value.strip():
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(candidate))
        except ValueError:
            return None
    return None


__all__ = ["ensure_utc", "parse_datetime", "to_storage", "utc_now", "utc_now_naive"]
