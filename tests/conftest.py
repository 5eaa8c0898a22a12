"""
tests/conftest.py
Shared fixtures: a throwaway SQLite fact store built from the explorer schema.
"""

import json
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine

from explorer.store import schema
from explorer.store.fact_store import FactStore

FIXED_NOW = datetime(2024, 1, 8, 12, 0, 0, tzinfo=timezone.utc)


def fact_row(
    fact_id,
    feed,
    validation_date,
    value,
    network="mainnet",
    publication_date=None,
    transaction_id=None,
):
    """Build a complete Facts row; publication defaults to validation time."""
    return {
        "id": fact_id,
        "network": network,
        "feed": feed,
        "policy": "policy-1",
        "fact_urn": f"urn:fact:{fact_id}",
        "value": value,
        "value_inverse": 1.0 / value if value else None,
        "validation_date": validation_date,
        "publication_date": publication_date or validation_date,
        "transaction_id": transaction_id or f"tx-{fact_id}",
        "storage_urn": "",
        "block_hash": "",
        "output_index": 0,
        "address": "",
        "slot": 0,
        "statement_hash": "",
        "publication_cost": 0.2,
        "participating_nodes": json.dumps(["node-1"]),
        "storage_cost": 0.1,
        "sources": json.dumps([]),
        "content_signature": "",
        "collection_date": validation_date,
        "is_archive_indexed": False,
    }


def feed_row(pk, feed_id, network="mainnet", updated="2024-01-01 00:00:00.000Z", status="active"):
    return {
        "id": pk,
        "feed_id": feed_id,
        "network": network,
        "type": "CER",
        "name": feed_id.split("/")[0],
        "version": 3,
        "status": status,
        "inactive_reason": "",
        "source_type": "exchange",
        "funding_type": "paid",
        "calculation_method": "median",
        "heartbeat_interval": 3600,
        "deviation": 1.0,
        "base_asset": None,
        "quote_asset": None,
        "updated": updated,
    }


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'explorer.db'}", future=True)
    schema.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    store = FactStore(engine, dialect="sqlite")
    yield store
    store.dispose()


@pytest.fixture
def insert(engine):
    def _insert(table, rows):
        with engine.begin() as conn:
            conn.execute(table.insert(), rows)
    return _insert


@pytest.fixture
def networks(insert):
    insert(schema.networks, [
        {"id": "mainnet", "name": "Mainnet", "is_enabled": True},
        {"id": "preview", "name": "Preview", "is_enabled": True},
    ])
