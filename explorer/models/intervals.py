"""
models/intervals.py
Calendar bucketing strategies for the stats endpoint.

Strategies implemented
----------------------
1. WeekInterval  – Sunday-to-Saturday weeks, Sunday-first week numbers (%U)
2. MonthInterval – calendar months
3. YearInterval  – calendar years

Week labels deliberately use Sunday-first numbering rather than ISO-8601
weeks; ISO consumers will see different labels for the same dates.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterator

from explorer.core.errors import InvalidParameterError
from explorer.models.records import TimeBucket


class IntervalStrategy:
    """Maps a calendar day to the one bucket of this granularity containing it."""

    name: str = ""

    def bucket_for(self, day: date) -> TimeBucket:
        raise NotImplementedError

    def buckets_between(self, start: date, end: date) -> Iterator[TimeBucket]:
        """Yield the contiguous buckets covering ``[start, end]``, oldest first."""
        if end < start:
            return
        bucket = self.bucket_for(start)
        while bucket.start <= end:
            yield bucket
            bucket = self.bucket_for(bucket.end + timedelta(days=1))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class WeekInterval(IntervalStrategy):
    name = "week"

    def bucket_for(self, day: date) -> TimeBucket:
        # date.weekday(): Monday=0 .. Sunday=6, so Sunday is 0 days back
        start = day - timedelta(days=(day.weekday() + 1) % 7)
        return TimeBucket(
            start = start,
            end   = start + timedelta(days=6),
            label = start.strftime("%Y-W%U"),
            type  = self.name,
        )


class MonthInterval(IntervalStrategy):
    name = "month"

    def bucket_for(self, day: date) -> TimeBucket:
        last_day = calendar.monthrange(day.year, day.month)[1]
        return TimeBucket(
            start = day.replace(day=1),
            end   = day.replace(day=last_day),
            label = day.strftime("%Y-%m"),
            type  = self.name,
        )


class YearInterval(IntervalStrategy):
    name = "year"

    def bucket_for(self, day: date) -> TimeBucket:
        return TimeBucket(
            start = date(day.year, 1, 1),
            end   = date(day.year, 12, 31),
            label = f"{day.year:04d}",
            type  = self.name,
        )


INTERVALS: dict[str, IntervalStrategy] = {
    strategy.name: strategy
    for strategy in (MonthInterval(), WeekInterval(), YearInterval())
}


def get_interval(name: str) -> IntervalStrategy:
    try:
        return INTERVALS[name]
    except KeyError:
        raise InvalidParameterError(
            "Invalid 'interval' parameter. Must be 'month', 'week', or 'year'."
        ) from None
