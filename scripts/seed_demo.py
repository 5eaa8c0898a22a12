"""
scripts/seed_demo.py
Create the explorer schema and fill it with synthetic networks, feeds and
facts for local exploration.

Usage:
  python scripts/seed_demo.py --database-url sqlite:///explorer.db
  python scripts/seed_demo.py --days 120 --facts-per-day 24
"""

import argparse
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import structlog

log = structlog.get_logger(__name__)

FEED_PAIRS = {
    "ADA-USD":   0.45,
    "ADA-IUSD":  0.44,
    "ADA-DJED":  0.46,
    "BTC-USD":   64_000.0,
}


def parse_args():
    p = argparse.ArgumentParser(description="Facts Explorer demo seeder")
    p.add_argument("--database-url",  default="sqlite:///explorer.db")
    p.add_argument("--days",          type=int, default=60)
    p.add_argument("--facts-per-day", type=int, default=12)
    p.add_argument("--seed",          type=int, default=42)
    return p.parse_args()


def build_rows(days: int, facts_per_day: int, seed: int, now: datetime):
    """Random-walk prices per feed; pairs of facts share a transaction."""
    from explorer.models.timestamps import format_timestamp

    rng = np.random.default_rng(seed)
    networks = [
        {"id": "mainnet", "name": "Mainnet", "is_enabled": True},
        {"id": "preview", "name": "Preview", "is_enabled": True},
    ]
    policies = [
        {"network": n["id"], "policy_id": f"policy-{n['id']}", "starting_slot": 1,
         "starting_block_hash": "0" * 64, "starting_date": format_timestamp(now - timedelta(days=days))}
        for n in networks
    ]

    feeds, facts = [], []
    for network in networks:
        for pair, base_price in FEED_PAIRS.items():
            feed_pk = f"{network['id']}-{pair.lower()}"
            feeds.append({
                "id": feed_pk, "feed_id": f"{pair}/3", "network": network["id"],
                "type": "CER", "name": pair, "version": 3, "status": "active",
                "source_type": "exchange", "heartbeat_interval": 3600, "deviation": 1.0,
                "updated": format_timestamp(now),
            })

            n = days * facts_per_day
            returns = rng.normal(0.0, 0.01, n)
            prices  = base_price * np.exp(np.cumsum(returns))
            step    = timedelta(days=1) / facts_per_day
            start   = now - timedelta(days=days)

            for i, price in enumerate(prices):
                validated = start + step * i
                published = validated + timedelta(seconds=int(rng.integers(30, 600)))
                facts.append({
                    "id": f"{feed_pk}-{i:06d}",
                    "network": network["id"],
                    "feed": feed_pk,
                    "policy": f"policy-{network['id']}",
                    "fact_urn": f"urn:orcfax:{feed_pk}:{i}",
                    "value": round(float(price), 8),
                    "value_inverse": round(1.0 / float(price), 8),
                    "validation_date": format_timestamp(validated),
                    "publication_date": format_timestamp(published),
                    "transaction_id": f"tx-{network['id']}-{i // 2:06d}",
                    "slot": 100_000 + i,
                    "participating_nodes": json.dumps([]),
                    "sources": json.dumps([]),
                    "is_archive_indexed": False,
                })
    return networks, policies, feeds, facts


def main():
    args = parse_args()

    from sqlalchemy import create_engine

    from explorer.store import schema

    now = datetime.now(timezone.utc)
    networks, policies, feeds, facts = build_rows(args.days, args.facts_per_day, args.seed, now)
    log.info("seed.start", database=args.database_url.split("@")[-1], feeds=len(feeds), facts=len(facts))

    engine = create_engine(args.database_url, future=True)
    schema.metadata.create_all(engine)
    with engine.begin() as conn:
        for table in (schema.facts, schema.feeds, schema.policies, schema.networks):
            conn.execute(table.delete())
        conn.execute(schema.networks.insert(), networks)
        conn.execute(schema.policies.insert(), policies)
        conn.execute(schema.feeds.insert(), feeds)
        conn.execute(schema.facts.insert(), facts)

    log.info("seed.complete", facts=len(facts))


if __name__ == "__main__":
    main()
