"""
tests/test_interval_stats.py
Unit tests for interval bucketing and the stats aggregation.
Run: pytest tests/ -v
"""

from datetime import date

import pandas as pd
import pytest

from conftest import fact_row, feed_row
from explorer.models.intervals import MonthInterval, WeekInterval, YearInterval
from explorer.store import schema
from explorer.transform.interval_stats import IntervalAggregator, bucket_counts


def frame(rows):
    return pd.DataFrame(rows, columns=["feed_id", "fact_id", "publication_date", "transaction_id"])


# ---------------------------------------------------------------------------
# bucket_counts (pure pandas)
# ---------------------------------------------------------------------------

class TestBucketCounts:
    def test_empty_frame(self):
        assert bucket_counts(frame([]), WeekInterval()) == []

    def test_week_bucket_for_wednesday(self):
        stats = bucket_counts(frame([
            ("ADA-USD/3", "f1", "2024-03-13 09:00:00.000Z", "tx1"),
        ]), WeekInterval())
        interval = stats[0].intervals[0]
        assert interval.start == date(2024, 3, 10)
        assert interval.end == date(2024, 3, 16)

    def test_distinct_transactions(self):
        stats = bucket_counts(frame([
            ("ADA-USD/3", "f1", "2024-03-01 09:00:00.000Z", "tx1"),
            ("ADA-USD/3", "f2", "2024-03-02 09:00:00.000Z", "tx1"),
            ("ADA-USD/3", "f3", "2024-03-03 09:00:00.000Z", "tx2"),
        ]), MonthInterval())
        interval = stats[0].intervals[0]
        assert interval.total_facts == 3
        assert interval.total_txs == 2
        assert interval.total_txs <= interval.total_facts

    def test_tx_equals_facts_without_shared_transactions(self):
        stats = bucket_counts(frame([
            ("ADA-USD/3", "f1", "2024-03-01 09:00:00.000Z", "tx1"),
            ("ADA-USD/3", "f2", "2024-03-02 09:00:00.000Z", "tx2"),
        ]), MonthInterval())
        assert stats[0].intervals[0].total_txs == stats[0].intervals[0].total_facts == 2

    def test_ordering_and_feed_totals(self):
        stats = bucket_counts(frame([
            ("BTC-USD/3", "b1", "2024-05-01 00:00:00.000Z", "tx9"),
            ("ADA-USD/3", "a2", "2024-04-20 00:00:00.000Z", "tx2"),
            ("ADA-USD/3", "a1", "2024-02-29 23:59:59.999Z", "tx1"),
            ("ADA-USD/3", "a3", "2024-04-21 00:00:00.000Z", "tx2"),
        ]), MonthInterval())
        assert [s.feed_id for s in stats] == ["ADA-USD/3", "BTC-USD/3"]

        ada = stats[0]
        assert [i.label for i in ada.intervals] == ["2024-02", "2024-04"]
        assert ada.total_facts == 3
        assert ada.total_txs == 2
        assert ada.to_dict()["intervals"][0] == {
            "type": "month",
            "start": "2024-02-01",
            "end": "2024-02-29",
            "label": "2024-02",
            "totalFacts": 1,
            "totalTxs": 1,
        }

    def test_year_groups_whole_year(self):
        stats = bucket_counts(frame([
            ("ADA-USD/3", "f1", "2023-01-01 00:00:00.000Z", "tx1"),
            ("ADA-USD/3", "f2", "2023-12-31 23:00:00.000Z", "tx2"),
            ("ADA-USD/3", "f3", "2024-01-01 00:00:00.000Z", "tx3"),
        ]), YearInterval())
        assert [(i.label, i.total_facts) for i in stats[0].intervals] == [("2023", 2), ("2024", 1)]


# ---------------------------------------------------------------------------
# IntervalAggregator (against the store)
# ---------------------------------------------------------------------------

@pytest.fixture
def stats_data(insert, networks):
    insert(schema.feeds, [
        feed_row("feed-ada", "ADA-USD/3"),
        feed_row("feed-btc", "BTC-USD/3"),
        feed_row("feed-pre", "ADA-USD/3", network="preview"),
    ])
    insert(schema.facts, [
        fact_row("a1", "feed-ada", "2024-03-01 10:00:00.000Z", 1.0, transaction_id="tx1"),
        fact_row("a2", "feed-ada", "2024-03-13 10:00:00.000Z", 1.1, transaction_id="tx2"),
        fact_row("b1", "feed-btc", "2024-03-13 10:00:00.000Z", 60000.0, transaction_id="tx2"),
        fact_row("b2", "feed-btc", "2024-03-31 23:59:59.999Z", 61000.0, transaction_id="tx3"),
        # outside the March range on either side
        fact_row("a0", "feed-ada", "2024-02-29 23:59:59.999Z", 0.9, transaction_id="tx0"),
        fact_row("b3", "feed-btc", "2024-04-01 00:00:00.000Z", 62000.0, transaction_id="tx4"),
        # other network
        fact_row("p1", "feed-pre", "2024-03-05 10:00:00.000Z", 1.0, network="preview", transaction_id="txp"),
    ])


class TestIntervalAggregator:
    def test_range_is_inclusive_by_day(self, store, stats_data):
        report = IntervalAggregator(store).aggregate(
            "mainnet", date(2024, 3, 1), date(2024, 3, 31), MonthInterval()
        )
        assert report.total_facts == 4
        assert {f.feed_id: f.total_facts for f in report.feeds} == {"ADA-USD/3": 2, "BTC-USD/3": 2}

    def test_all_totals_count_shared_transactions_once(self, store, stats_data):
        report = IntervalAggregator(store).aggregate(
            "mainnet", date(2024, 3, 1), date(2024, 3, 31), MonthInterval()
        )
        # tx2 is shared by both feeds
        assert report.total_txs == 3
        assert sum(f.total_txs for f in report.feeds) == 4
        assert report.total_facts == sum(
            i.total_facts for f in report.feeds for i in f.intervals
        )

    def test_weekly_report_shape(self, store, stats_data):
        payload = IntervalAggregator(store).aggregate(
            "mainnet", date(2024, 3, 1), date(2024, 3, 31), WeekInterval()
        ).to_dict()
        assert payload["all"] == {
            "start": "2024-03-01",
            "end": "2024-03-31",
            "totalFacts": 4,
            "totalTxs": 3,
        }
        btc = next(f for f in payload["feeds"] if f["feed_id"] == "BTC-USD/3")
        assert [(i["start"], i["end"]) for i in btc["intervals"]] == [
            ("2024-03-10", "2024-03-16"),
            ("2024-03-31", "2024-04-06"),
        ]

    def test_empty_range(self, store, stats_data):
        report = IntervalAggregator(store).aggregate(
            "mainnet", date(2020, 1, 1), date(2020, 12, 31), YearInterval()
        )
        assert report.feeds == []
        assert report.total_facts == 0
        assert report.total_txs == 0
