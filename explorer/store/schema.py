"""
store/schema.py
Table definitions for the explorer's relational store.

The explorer only reads these tables; the definitions exist so tests and
scripts/seed_demo.py can create a compatible database.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

networks = Table(
    "networks",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False, unique=True),
    Column("fact_statement_pointer", String),
    Column("script_token", String),
    Column("block_explorer_base_url", String),
    Column("last_block_hash", String),
    Column("last_checkpoint_slot", Integer),
    Column("zero_time", Integer),
    Column("zero_slot", Integer),
    Column("slot_length", Integer),
    Column("is_enabled", Boolean, default=False),
)

policies = Table(
    "policies",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("network", String, nullable=False),
    Column("policy_id", String, nullable=False),
    Column("starting_slot", Integer),
    Column("starting_block_hash", String),
    Column("starting_date", String),
)

feeds = Table(
    "feeds",
    metadata,
    Column("id", String, primary_key=True),
    Column("feed_id", String, nullable=False),
    Column("network", String, nullable=False),
    Column("type", String),
    Column("name", String),
    Column("version", Integer),
    Column("status", String),
    Column("inactive_reason", String),
    Column("source_type", String),
    Column("funding_type", String),
    Column("calculation_method", String),
    Column("heartbeat_interval", Integer),
    Column("deviation", Float),
    Column("base_asset", String),
    Column("quote_asset", String),
    Column("updated", String),
)

# Timestamps are UTC text "YYYY-MM-DD HH:MM:SS.fffZ"; JSON arrays are text.
facts = Table(
    "facts",
    metadata,
    Column("id", String, primary_key=True),
    Column("network", String, nullable=False),
    Column("feed", String, nullable=False),
    Column("policy", String),
    Column("fact_urn", String),
    Column("value", Float, nullable=False),
    Column("value_inverse", Float),
    Column("validation_date", String, nullable=False),
    Column("publication_date", String, nullable=False),
    Column("transaction_id", String),
    Column("storage_urn", String),
    Column("block_hash", String),
    Column("output_index", Integer),
    Column("address", String),
    Column("slot", Integer),
    Column("statement_hash", String),
    Column("publication_cost", Float),
    Column("participating_nodes", Text),
    Column("storage_cost", Float),
    Column("sources", Text),
    Column("content_signature", String),
    Column("collection_date", String),
    Column("is_archive_indexed", Boolean, default=False),
    Index("ix_facts_network_feed_validation", "network", "feed", "validation_date"),
    Index("ix_facts_network_publication", "network", "publication_date"),
)
