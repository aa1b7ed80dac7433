"""Utility functions for time handling."""

from .timestamps import (
    DUE_DATE_FORMAT,
    ensure_utc,
    format_due_date,
    from_storage,
    to_storage,
    utc_now,
)

__all__ = [
    "DUE_DATE_FORMAT",
    "utc_now",
    "ensure_utc",
    "format_due_date",
    "to_storage",
    "from_storage",
]
