"""Duration and time-of-day parsing for reminder configuration."""

import re
from datetime import time


class DurationParseError(ValueError):
    """Raised when a duration or time-of-day string cannot be parsed."""

    pass


_ISO_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")
_HUMAN_PATTERN = re.compile(r"(\d+)\s*([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> int:
    """
    Parse a duration string to seconds.

    Accepts human-readable durations ("30m", "24h", "1d12h") and ISO-8601
    durations ("PT30M", "P1D", "P1DT12H").

    Args:
        value: Duration string to parse

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the string is empty, malformed or zero

    Examples:
        >>> parse_duration("24h")
        86400
        >>> parse_duration("P1DT12H")
        129600
    """
    text = value.strip() if value else ""
    if not text:
        raise DurationParseError("Duration string cannot be empty")

    if text.upper().startswith("P"):
        seconds = _parse_iso8601(text.upper())
    else:
        seconds = _parse_human(text.lower())

    if seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{value}'")
    return seconds


def _parse_iso8601(text: str) -> int:
    match = _ISO_PATTERN.match(text)
    if not match or text in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{text}'. "
            "Expected format like 'P1D', 'PT12H' or 'PT30M'"
        )

    days, hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def _parse_human(text: str) -> int:
    matches = _HUMAN_PATTERN.findall(text)
    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{text}'. "
            "Expected format like '30m', '24h', '2d' or combinations like '1d12h'"
        )

    # Reject trailing garbage such as "24hours"
    if "".join(f"{num}{unit}" for num, unit in matches) != re.sub(r"\s+", "", text):
        raise DurationParseError(
            f"Invalid characters in duration: '{text}'. "
            "Use only digits and units: s, m, h, d"
        )

    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in matches)


def validate_duration_range(
    seconds: int,
    min_seconds: int = 300,
    max_seconds: int = 7 * 86400,
    label: str = "Duration",
) -> None:
    """
    Check that a parsed duration lies within an accepted range.

    Raises:
        DurationParseError: If the duration is outside the range
    """
    if seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {describe_seconds(seconds)}. "
            f"Minimum is {describe_seconds(min_seconds)}."
        )
    if seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {describe_seconds(seconds)}. "
            f"Maximum is {describe_seconds(max_seconds)}."
        )


def parse_time_of_day(value: str) -> time:
    """Parse a 24-hour "HH:MM" string.

    Examples:
        >>> parse_time_of_day("08:00")
        datetime.time(8, 0)
    """
    match = re.fullmatch(r"(\d{1,2}):(\d{2})", value.strip() if value else "")
    if not match:
        raise DurationParseError(f"Invalid time of day: '{value}'. Expected HH:MM (24-hour)")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise DurationParseError(f"Time of day out of range: '{value}'")
    return time(hour, minute)


def describe_seconds(seconds: int) -> str:
    """Render a number of seconds in its largest whole unit ("2 hours")."""
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
