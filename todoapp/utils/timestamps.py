"""Timestamp utilities for UTC handling and display formatting.

This module provides the time helpers shared by the domain, persistence and
notification layers:
- Getting current UTC time
- Normalising naive datetimes to UTC
- Formatting due dates for email templates
- Converting to and from the ISO 8601 strings stored in the database
"""

from datetime import datetime, timezone
from typing import Optional

# Display pattern used in every notification template, e.g. "Jan 05, 2025 at 14:30".
# The month comes from MONTH_ABBREVIATIONS rather than %b, which follows LC_TIME.
DUE_DATE_FORMAT = "%d, %Y at %H:%M"

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware datetimes are converted.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None

    Example:
        >>> naive = datetime(2025, 1, 5, 14, 30)
        >>> ensure_utc(naive).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_due_date(dt: Optional[datetime], placeholder: str = "No due date") -> str:
    """Format a due date for display in an email.

    Args:
        dt: Due date to format, or None
        placeholder: Text returned when there is no due date

    Returns:
        Human-readable date such as "Jan 05, 2025 at 14:30", or the placeholder

    Example:
        >>> format_due_date(datetime(2025, 1, 5, 14, 30, tzinfo=timezone.utc))
        'Jan 05, 2025 at 14:30'
        >>> format_due_date(None)
        'No due date'
    """
    if dt is None:
        return placeholder
    dt = ensure_utc(dt)
    return f"{MONTH_ABBREVIATIONS[dt.month - 1]} {dt.strftime(DUE_DATE_FORMAT)}"


def to_storage(dt: Optional[datetime]) -> Optional[str]:
    """Serialise a datetime as a sortable ISO 8601 UTC string.

    Strings in this format compare lexicographically in chronological order,
    which the repositories rely on for range queries.
    """
    if dt is None:
        return None
    return ensure_utc(dt).strftime(STORAGE_FORMAT)


def from_storage(value: Optional[str]) -> Optional[datetime]:
    """Parse a string written by to_storage() back into an aware datetime."""
    if not value:
        return None

    cleaned = value.rstrip("Z")
    try:
        dt = datetime.strptime(cleaned, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(cleaned, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)
