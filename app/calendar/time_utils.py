import re
from datetime import datetime
from typing import Tuple


DEFAULT_MEETING_MINUTES = 30

_TIME_RE = re.compile(r"(\d{2}):(\d{2})")
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


class TimeFormatError(ValueError):
    """Raised when a date or time string is not in the expected format."""


def parse_time(value: str) -> Tuple[int, int]:
    """
    Parse an HH:MM (24h) string into (hour, minute).

    Raises TimeFormatError for anything else, including out-of-range values
    like "24:00" or "9:5".
    """
    match = _TIME_RE.fullmatch(value or "")
    if not match:
        raise TimeFormatError(f"Invalid time format: '{value}'. Expected HH:MM (e.g., 14:30)")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise TimeFormatError(f"Invalid time: '{value}'. Hours must be 00-23 and minutes 00-59")
    return hour, minute


def validate_date(value: str) -> str:
    """Return the date string if it is a real YYYY-MM-DD date."""
    if not _DATE_RE.fullmatch(value or ""):
        raise TimeFormatError(f"Invalid date format: '{value}'. Expected YYYY-MM-DD (e.g., 2025-12-05)")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise TimeFormatError(f"Invalid date: '{value}'")
    return value


def derive_end_time(start_time: str, minutes: int = DEFAULT_MEETING_MINUTES) -> str:
    """
    Compute the default end time for a meeting starting at start_time.

    The hour wraps modulo 24 and no day carry is reported: "23:45" -> "00:15".
    """
    hour, minute = parse_time(start_time)
    total = (hour * 60 + minute + minutes) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


def compose_datetime(date: str, time_str: str) -> str:
    """Join a date and an HH:MM time into a naive ISO timestamp with seconds."""
    return f"{date}T{time_str}:00"
