"""Time-string parsing and duration arithmetic for time entries."""
import re
from datetime import time

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"[0-9]{2}:[0-9]{2}")


class EntryValidationError(ValueError):
    """Raised when an entry's times cannot produce a valid duration."""


def parse_hhmm(value) -> time | None:
    """Parse a strict, zero-padded 24-hour ``HH:MM`` string.

    Returns None for anything else, including ``"9:00"``, ``"24:00"`` and
    ``"12:60"``.
    """
    if not isinstance(value, str) or not _HHMM.fullmatch(value):
        return None
    hours, minutes = (int(part) for part in value.split(":"))
    if hours > 23 or minutes > 59:
        return None
    return time(hours, minutes)


def minutes_between(start: time, end: time) -> int:
    """Minutes from start to end, wrapping once past midnight."""
    diff = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if diff < 0:
        diff += MINUTES_PER_DAY
    return diff


def check_span(span: int) -> None:
    if span <= 0:
        raise EntryValidationError("Start and end time give no duration")
    if span > MINUTES_PER_DAY:
        raise EntryValidationError("At most one day per entry")


def compute_duration(start_time, end_time, break_minutes: int = 0) -> int:
    """Validate an entry's times and return its duration in minutes.

    Checks run in a fixed order: time format, positive span, span within one
    day, then the break (non-negative and strictly shorter than the span).
    """
    start = parse_hhmm(start_time)
    end = parse_hhmm(end_time)
    if start is None or end is None:
        raise EntryValidationError("start_time / end_time must be HH:MM")

    span = minutes_between(start, end)
    check_span(span)

    if break_minutes < 0:
        raise EntryValidationError("break_minutes cannot be negative")
    if break_minutes >= span:
        raise EntryValidationError("Break must be shorter than the working span")
    return span - break_minutes
