"""
api/data_service.py
Runs the explorer's lookups and returns serializable dicts for the API.
All reads flow through explorer/store/ and explorer/transform/.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable

import structlog

from explorer.core.errors import InvalidParameterError, NotFoundError
from explorer.models.intervals import get_interval
from explorer.models.records import Fact, Feed, Network, Policy
from explorer.models.timestamps import parse_date, start_of_day, utc_now
from explorer.store.fact_store import FactStore
from explorer.transform.historical import LOOKBACKS, PointInTimeResolver
from explorer.transform.interval_stats import IntervalAggregator

log = structlog.get_logger(__name__)

NETWORK_NAMES = ("Mainnet", "Preview")

FEED_TYPE_DESCRIPTION       = "Current Exchange Rate"
FEED_TYPE_DESCRIPTION_SHORT = "CER"

# Matches the ESCAPE character in FEED_BY_PREFIX_SQL
LIKE_ESCAPE = "!"

INVALID_RANGE = "Invalid 'range' parameter. Must be a positive integer."


def _escape_like(value: str) -> str:
    for char in (LIKE_ESCAPE, "%", "_"):
        value = value.replace(char, LIKE_ESCAPE + char)
    return value


def _feed_payload(
    feed: Feed,
    latest_fact: Fact | None,
    total_facts: int,
    historical: dict[str, float | None],
) -> dict:
    payload = feed.to_dict()
    payload.update({
        "latestFact":             latest_fact.to_dict() if latest_fact else None,
        "totalFacts":             total_facts,
        "type_description":       FEED_TYPE_DESCRIPTION,
        "type_description_short": FEED_TYPE_DESCRIPTION_SHORT,
    })
    for key in LOOKBACKS:
        payload[key] = historical.get(key)
    return payload


class ExplorerService:
    """
    Read-side operations behind each explorer endpoint.
    """

    def __init__(
        self,
        store: FactStore,
        facts_limit: int = 5000,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store       = store
        self.facts_limit = facts_limit
        self.clock       = clock
        self.resolver    = PointInTimeResolver(store, clock=clock)
        self.aggregator  = IntervalAggregator(store)

    # ── Networks ────────────────────────────────────────────────────────────

    def get_networks(self) -> list[dict]:
        networks = [Network.from_row(r) for r in self.store.fetch_all("NETWORKS_SQL")]
        if not networks:
            return []

        policies: dict[str, list[Policy]] = {}
        for row in self.store.fetch_all("POLICIES_SQL"):
            policy = Policy.from_row(row)
            policies.setdefault(policy.network, []).append(policy)

        return [n.to_dict(policies.get(n.id, [])) for n in networks]

    def resolve_network_id(self, network_name: str) -> str:
        row = self.store.fetch_one("NETWORK_BY_NAME_SQL", network_name=network_name)
        if row is None:
            raise NotFoundError(f"Network '{network_name}' not found.")
        return row["id"]

    # ── Feeds ───────────────────────────────────────────────────────────────

    def get_feeds(self, network_id: str) -> list[dict]:
        """
        Every feed of a network with its latest fact, fact count and
        1/3/7-day historical values.
        """
        feeds = [Feed.from_row(r) for r in self.store.fetch_all("FEEDS_SQL", network_id=network_id)]
        if not feeds:
            return []

        latest = {
            fact.feed: fact
            for fact in (
                Fact.from_row(r)
                for r in self.store.fetch_all("LATEST_FACT_PER_FEED_SQL", network_id=network_id)
            )
        }
        counts = {
            r["feed"]: int(r["fact_count"])
            for r in self.store.fetch_all("FACT_COUNTS_PER_FEED_SQL", network_id=network_id)
        }
        historical = self.resolver.resolve_lookbacks_for_network(network_id)

        log.info("feeds.list", network=network_id, feeds=len(feeds))
        return [
            _feed_payload(
                feed,
                latest.get(feed.id),
                counts.get(feed.id, 0),
                {key: values.get(feed.id) for key, values in historical.items()},
            )
            for feed in feeds
        ]

    def find_feed(self, network_id: str, feed_id: str) -> Feed:
        row = self.store.fetch_one(
            "FEED_BY_PREFIX_SQL",
            network_id=network_id,
            feed_pattern=f"{_escape_like(feed_id)}/%",
        )
        if row is None:
            raise NotFoundError("Feed not found")
        return Feed.from_row(row)

    def get_feed(self, network_id: str, feed_id: str) -> dict:
        feed = self.find_feed(network_id, feed_id)

        latest_row  = self.store.fetch_one("LATEST_FACT_SQL", network_id=network_id, feed=feed.id)
        total_facts = int(self.store.fetch_scalar("FEED_FACT_COUNT_SQL", network_id=network_id, feed=feed.id))
        historical  = self.resolver.resolve_lookbacks(feed.id, network_id)

        return _feed_payload(
            feed,
            Fact.from_row(latest_row) if latest_row else None,
            total_facts,
            historical,
        )

    def get_feed_facts(
        self,
        network_id: str,
        feed_id: str,
        range_days: int = 1,
        start: date | None = None,
    ) -> list[dict]:
        """
        Facts validated after ``start - (range_days - 1)`` days at midnight
        UTC, newest first, capped at ``facts_limit`` rows.
        """
        if range_days < 1:
            raise InvalidParameterError(INVALID_RANGE)

        feed  = self.find_feed(network_id, feed_id)
        start = start or self.clock().date()
        since = start_of_day(start - timedelta(days=range_days - 1))

        rows = self.store.fetch_all(
            "FEED_FACTS_SINCE_SQL",
            limit=self.facts_limit,
            network_id=network_id,
            feed=feed.id,
            since=since,
        )
        return [Fact.from_row(r).to_dict() for r in rows]

    # ── Stats ───────────────────────────────────────────────────────────────

    def get_stats(
        self,
        network_name: str | None,
        interval: str | None,
        start: str | None,
        end: str | None = None,
    ) -> dict:
        """
        Validate the stats query, resolve the network and aggregate.

        Every parameter problem is raised before the store is touched.
        """
        if not network_name:
            raise InvalidParameterError(
                "Missing required 'network' parameter. Must be 'Mainnet' or 'Preview'."
            )
        if not interval:
            raise InvalidParameterError(
                "Missing required 'interval' parameter. Must be 'month', 'week', or 'year'."
            )
        if not start:
            raise InvalidParameterError(
                "Missing required 'start' parameter. Must be in YYYY-MM-DD format."
            )
        if network_name not in NETWORK_NAMES:
            raise InvalidParameterError(
                "Invalid 'network' parameter. Must be 'Mainnet' or 'Preview'."
            )

        strategy   = get_interval(interval)
        start_date = parse_date(start, "start")
        end_date   = parse_date(end, "end") if end else self.clock().date()

        network_id = self.resolve_network_id(network_name)
        report = self.aggregator.aggregate(network_id, start_date, end_date, strategy)
        return report.to_dict()

    # ── Dashboard ───────────────────────────────────────────────────────────

    def get_dashboard(self, network_id: str) -> dict:
        now = self.clock()
        return {
            "totalFacts": int(self.store.fetch_scalar(
                "NETWORK_FACT_COUNT_SQL", network_id=network_id,
            )),
            "totalFacts24Hour": int(self.store.fetch_scalar(
                "NETWORK_FACTS_PUBLISHED_SINCE_SQL",
                network_id=network_id,
                since=start_of_day(now.date()),
            )),
            "totalActiveFeeds": int(self.store.fetch_scalar(
                "ACTIVE_FEED_COUNT_SQL", network_id=network_id,
            )),
            "lastUpdated": now.isoformat(),
        }
