"""
transform/interval_stats.py
Per-feed fact statistics bucketed into calendar intervals.

Facts published within ``[start 00:00:00.000Z, end 23:59:59.999Z]`` are
grouped by (feed_id, bucket) for the requested granularity; each bucket
reports its fact count and its count of distinct transactions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

import pandas as pd
import structlog

from explorer.models.intervals import IntervalStrategy
from explorer.models.timestamps import end_of_day, start_of_day, timestamp_day
from explorer.store.fact_store import FactStore

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------

@dataclass
class IntervalCount:
    type: str
    start: date
    end: date
    label: str
    total_facts: int
    total_txs: int

    def to_dict(self) -> dict:
        return {
            "type":       self.type,
            "start":      self.start.isoformat(),
            "end":        self.end.isoformat(),
            "label":      self.label,
            "totalFacts": self.total_facts,
            "totalTxs":   self.total_txs,
        }


@dataclass
class FeedIntervalStats:
    feed_id: str
    intervals: list[IntervalCount] = field(default_factory=list)

    @property
    def total_facts(self) -> int:
        return sum(i.total_facts for i in self.intervals)

    @property
    def total_txs(self) -> int:
        return sum(i.total_txs for i in self.intervals)

    def to_dict(self) -> dict:
        return {
            "feed_id":    self.feed_id,
            "totalFacts": self.total_facts,
            "totalTxs":   self.total_txs,
            "intervals":  [i.to_dict() for i in self.intervals],
        }


@dataclass
class StatsReport:
    start: date
    end: date
    total_facts: int
    total_txs: int
    feeds: list[FeedIntervalStats] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "all": {
                "start":      self.start.isoformat(),
                "end":        self.end.isoformat(),
                "totalFacts": self.total_facts,
                "totalTxs":   self.total_txs,
            },
            "feeds": [f.to_dict() for f in self.feeds],
        }


# ---------------------------------------------------------------------------
# Bucketing
# ---------------------------------------------------------------------------

def bucket_counts(facts: pd.DataFrame, strategy: IntervalStrategy) -> list[FeedIntervalStats]:
    """
    Group fact rows into per-feed interval counts.

    ``facts`` needs columns feed_id, fact_id, publication_date (UTC text)
    and transaction_id. Feeds come back ordered by feed_id, intervals by
    start date.
    """
    if facts.empty:
        return []

    df = facts.copy()
    df["day"] = df["publication_date"].astype(str).map(timestamp_day)

    # One strategy call per distinct day, not per fact
    buckets = {day: strategy.bucket_for(day) for day in df["day"].unique()}
    df["bucket_start"] = df["day"].map(lambda d: buckets[d].start)

    grouped = (
        df.groupby(["feed_id", "bucket_start"], sort=True)
        .agg(
            fact_count=("fact_id", "count"),
            tx_count=("transaction_id", "nunique"),
            day=("day", "first"),
        )
        .reset_index()
    )

    per_feed: list[FeedIntervalStats] = []
    for feed_id, rows in grouped.groupby("feed_id", sort=True):
        stats = FeedIntervalStats(feed_id=str(feed_id))
        for row in rows.sort_values("bucket_start").itertuples(index=False):
            bucket = buckets[row.day]
            stats.intervals.append(IntervalCount(
                type        = bucket.type,
                start       = bucket.start,
                end         = bucket.end,
                label       = bucket.label,
                total_facts = int(row.fact_count),
                total_txs   = int(row.tx_count),
            ))
        per_feed.append(stats)
    return per_feed


class IntervalAggregator:
    """Builds the stats report for one network, date range and granularity."""

    def __init__(self, store: FactStore):
        self.store = store

    def aggregate(
        self,
        network_id: str,
        start: date,
        end: date,
        strategy: IntervalStrategy,
    ) -> StatsReport:
        params = {
            "network_id":  network_id,
            "range_start": start_of_day(start),
            "range_end":   end_of_day(end),
        }

        facts = self.store.fetch_frame("STATS_FACTS_SQL", **params)
        feeds = bucket_counts(facts, strategy)

        # Independent of the per-feed buckets so shared transactions count once
        totals = self.store.fetch_one("STATS_TOTALS_SQL", **params)
        total_facts = int(totals["total_facts"] or 0) if totals else 0
        total_txs   = int(totals["total_txs"] or 0) if totals else 0

        log.info(
            "stats.aggregate_done",
            network=network_id,
            interval=strategy.name,
            start=start.isoformat(),
            end=end.isoformat(),
            feeds=len(feeds),
            total_facts=total_facts,
        )
        return StatsReport(
            start       = start,
            end         = end,
            total_facts = total_facts,
            total_txs   = total_txs,
            feeds       = feeds,
        )
