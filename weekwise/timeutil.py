"""Minute-of-day and duration helpers.

Times of day are plain ints counting minutes from midnight (0-1439).
"""

from __future__ import annotations

import math
from datetime import datetime

MINUTES_IN_DAY = 24 * 60

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DAY_NAMES_SHORT = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def minutes_to_time_string(minutes: int) -> str:
    """540 -> '09:00'. Out-of-range input is formatted as-is, not rejected."""
    minutes = int(minutes)
    hours = minutes // 60
    mins = minutes % 60
    return f"{hours:02d}:{mins:02d}"


def time_string_to_minutes(time_string: str) -> int:
    """'09:30' -> 570. Hour and minute ranges are not checked.

    Text without two numeric parts raises ValueError rather than yielding a
    bogus number.
    """
    parts = time_string.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {time_string!r}")
    try:
        hours = int(parts[0])
        mins = int(parts[1])
    except ValueError:
        raise ValueError(f"Invalid time string: {time_string!r}") from None
    return hours * 60 + mins


def format_duration(minutes: float) -> str:
    """Render a duration as '45m', '2h' or '1h 30m'."""
    total = math.floor(minutes + 0.5)
    if total < 60:
        return f"{total}m"
    hours = total // 60
    rest = total % 60
    if rest == 0:
        return f"{hours}h"
    return f"{hours}h {rest}m"


def get_day_name(day_of_week: int, short: bool = False) -> str:
    """0 -> 'Sunday' (or 'Sun').

    Raises ValueError for a day outside 0..6 rather than returning a blank name.
    """
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"Day of week out of range: {day_of_week}")
    return (DAY_NAMES_SHORT if short else DAY_NAMES)[day_of_week]


def block_duration_minutes(start_minutes: int, end_minutes: int) -> int:
    """Duration of a block; an end before the start wraps past midnight."""
    duration = end_minutes - start_minutes
    return duration + MINUTES_IN_DAY if duration < 0 else duration


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing 'Z' for UTC."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
