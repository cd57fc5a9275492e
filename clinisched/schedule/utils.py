"""Date and time helpers shared by the engine and the calendar."""

import re
from datetime import date, datetime, time
from typing import Optional

from loguru import logger

_TIME_RE = re.compile(
    r"^\s*(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2})?\s*(?P<ampm>[AaPp][Mm])?\s*$",
)

DATE_FORMATS = (
    "%Y-%m-%d",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%SZ",
)


def parse_time(value: str) -> time:
    """
    Parse a clock time.

    Accepts 24-hour "HH:MM" (optionally with seconds) and 12-hour
    "h:MM AM" strings.

    Args:
        value: Time string (e.g., "09:30", "2:00 PM")

    Returns:
        time object

    Raises:
        ValueError: If the string is not a valid clock time
    """
    match = _TIME_RE.match(value or "")
    if match is None:
        raise ValueError(f"Invalid time: {value!r}")

    hour = int(match["hour"])
    minute = int(match["minute"])
    ampm = match["ampm"]

    if ampm is not None:
        if not 1 <= hour <= 12:
            raise ValueError(f"Invalid 12-hour time: {value!r}")
        hour %= 12
        if ampm.upper() == "PM":
            hour += 12

    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time: {value!r}")
    return time(hour, minute)


def format_time(value: time) -> str:
    """Format a time as zero-padded 24-hour "HH:MM"."""
    return f"{value.hour:02d}:{value.minute:02d}"


def format_time_display(value: time | str) -> str:
    """
    Format a time for display, e.g. "9:00 AM".

    Args:
        value: time object or a string accepted by parse_time

    Returns:
        12-hour display string
    """
    if isinstance(value, str):
        value = parse_time(value)
    ampm = "PM" if value.hour >= 12 else "AM"
    display_hour = value.hour % 12 or 12
    return f"{display_hour}:{value.minute:02d} {ampm}"


def parse_date(date_str: str) -> Optional[date]:
    """
    Parse date from string.

    Args:
        date_str: Date string (e.g., "2024-05-15")

    Returns:
        date object or None on error
    """
    if not date_str:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    logger.warning(f"Cannot parse date: {date_str}")
    return None


def day_of_week(value: date) -> str:
    """Weekday name, e.g. "Monday"."""
    return value.strftime("%A")


def format_date(value: date, fmt: str = "%b %d, %Y") -> str:
    """Format a date for display, e.g. "Jan 05, 2024"."""
    return value.strftime(fmt)
