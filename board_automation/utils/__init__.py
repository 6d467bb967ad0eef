"""Utility helpers for reusable functionality."""

from .datetime import ensure_utc, parse_datetime, to_storage, utc_now, utc_now_naive

__all__ = ["ensure_utc", "parse_datetime", "to_storage", "utc_now", "utc_now_naive"]
