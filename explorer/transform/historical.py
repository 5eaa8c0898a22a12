"""
transform/historical.py
Point-in-time value resolution for feeds.

For a cutoff instant, a feed's historical value is the value of its most
recent fact with ``validation_date <= cutoff``. No interpolation is done;
a feed with no fact at or before the cutoff has no value (None).

Cutoffs are "N days ago at the current UTC time of day" and are recomputed
from the clock at every call.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from explorer.core.errors import StoreError
from explorer.models.timestamps import format_timestamp, utc_now
from explorer.store.fact_store import FactStore

log = structlog.get_logger(__name__)

# Response key -> days back
LOOKBACKS: dict[str, int] = {
    "oneDayAgo":    1,
    "threeDaysAgo": 3,
    "sevenDaysAgo": 7,
}


def cutoff_for(days_ago: int, now: datetime | None = None) -> datetime:
    """Today's UTC date minus ``days_ago``, at the current UTC time of day."""
    now = (now or utc_now()).astimezone(timezone.utc)
    day = now.date() - timedelta(days=days_ago)
    return datetime.combine(day, now.timetz())


class PointInTimeResolver:
    """
    Resolves "value as of" lookups against the fact store.

    Query failures are logged and reported as None, the same as a feed
    without history, so one failing lookup never fails the whole response.
    """

    def __init__(self, store: FactStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def resolve_as_of(self, feed: str, network_id: str, cutoff: datetime) -> float | None:
        try:
            row = self.store.fetch_one(
                "FACT_VALUE_AS_OF_SQL",
                network_id=network_id,
                feed=feed,
                cutoff=format_timestamp(cutoff),
            )
        except StoreError as exc:
            log.warning("historical.lookup_failed", feed=feed, network=network_id, error=str(exc))
            return None
        return None if row is None else float(row["value"])

    def resolve_lookbacks(self, feed: str, network_id: str) -> dict[str, float | None]:
        """``oneDayAgo``/``threeDaysAgo``/``sevenDaysAgo`` values for one feed."""
        return {
            key: self.resolve_as_of(feed, network_id, cutoff_for(days, self.clock()))
            for key, days in LOOKBACKS.items()
        }

    def resolve_network_as_of(self, network_id: str, cutoff: datetime) -> dict[str, float]:
        """Feed id -> value as of ``cutoff`` for every feed of the network with history."""
        try:
            rows = self.store.fetch_all(
                "FACT_VALUES_AS_OF_SQL",
                network_id=network_id,
                cutoff=format_timestamp(cutoff),
            )
        except StoreError as exc:
            log.warning("historical.network_lookup_failed", network=network_id, error=str(exc))
            return {}
        return {row["feed"]: float(row["value"]) for row in rows}

    def resolve_lookbacks_for_network(self, network_id: str) -> dict[str, dict[str, float]]:
        """Lookback key -> {feed id -> value}; feeds without history are absent."""
        return {
            key: self.resolve_network_as_of(network_id, cutoff_for(days, self.clock()))
            for key, days in LOOKBACKS.items()
        }
