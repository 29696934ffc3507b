"""Date and time helpers for Unix timestamps."""

import re
from datetime import timezone
from typing import Any, Optional

from dateutil import parser as date_parser

_DIGITS = re.compile(r"^[0-9]+$")


def is_integer_timestamp(value: Any) -> bool:
    """Whether the value is a non-negative integer."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_timestamp(value: Any) -> bool:
    """Whether the value is a Unix timestamp.

    Accepts non-negative integers and strings made only of digits.
    """
    if is_integer_timestamp(value):
        return True
    return isinstance(value, str) and bool(_DIGITS.match(value))


def parse_datetime_string(value: str) -> int:
    """Parse a date/time string into a Unix timestamp.

    Values without timezone information are taken as UTC.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f'Cannot parse "{value}" as a date/time')
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise ValueError(f'Cannot parse "{value}" as a date/time: {e}') from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def time_after_time(
    start_time: int,
    interval: Optional[int] = None,
    max_time: Optional[int] = None,
) -> int:
    """Calculate the time that comes a given interval after a start time.

    The result never exceeds `max_time`. When no interval is given the result
    is `max_time` itself.

    Raises:
        ValueError: If any of the times is not a Unix timestamp, the interval
            is not a positive integer or neither an interval nor a maximum
            time is given.
    """
    if not is_integer_timestamp(start_time):
        raise ValueError(
            f"The start time must be a Unix timestamp, {start_time!r} given"
        )
    if interval is not None and (not is_integer_timestamp(interval) or interval == 0):
        raise ValueError(
            f"The interval must be a positive integer, {interval!r} given"
        )
    if max_time is not None and not is_integer_timestamp(max_time):
        raise ValueError(
            f"The maximum time must be a Unix timestamp, {max_time!r} given"
        )
    if interval is None and max_time is None:
        raise ValueError("At least one of the interval or the maximum time must be given")

    if interval is None:
        return max_time
    if max_time is None:
        return start_time + interval
    return min(start_time + interval, max_time)
