"""
models/timestamps.py
UTC timestamp helpers for the fact store's text timestamp format.

Facts carry timestamps as ``YYYY-MM-DD HH:MM:SS.fffZ`` strings, so range
predicates can compare them lexicographically.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone

from explorer.core.errors import InvalidParameterError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render an aware (or naive UTC) datetime in the store's text format."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def start_of_day(day: date) -> str:
    return format_timestamp(datetime.combine(day, time.min))


def end_of_day(day: date) -> str:
    """Last representable millisecond of ``day``."""
    return f"{day.isoformat()} 23:59:59.999Z"


def parse_date(value: str, name: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` query parameter.

    Raises InvalidParameterError naming the parameter on malformed input,
    including well-formed strings that are not real calendar days.
    """
    if not DATE_PATTERN.match(value or ""):
        raise InvalidParameterError(f"Invalid '{name}' date format. Must be YYYY-MM-DD.")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidParameterError(f"Invalid '{name}' date: {value}.") from exc


def timestamp_day(value: str) -> date:
    """Calendar day (UTC) of a stored timestamp string."""
    return date.fromisoformat(value[:10])


def parse_day(value: str, name: str) -> date:
    """
    Calendar day of a ``YYYY-MM-DD`` value or of a full ISO-8601 timestamp
    (``2024-01-07T10:00:00Z``). The day is read from the date part as given;
    the time part only has to be valid.
    """
    day = parse_date(value[:10], name)
    if len(value) > 10:
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidParameterError(f"Invalid '{name}' date format. Must be YYYY-MM-DD.") from exc
    return day
