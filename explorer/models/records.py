"""
models/records.py
Typed records for the explorer's tables.

Rows coming back from the fact store are decoded here, once, into frozen
dataclasses; nothing past the store boundary touches raw row mappings.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Mapping


def _json_list(raw: Any) -> list:
    """Decode a JSON array column (stored as text) into a list."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    decoded = json.loads(raw)
    return decoded if isinstance(decoded, list) else [decoded]


def _float_or_none(raw: Any) -> float | None:
    return None if raw is None else float(raw)


# ---------------------------------------------------------------------------
# Store-backed records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Policy:
    network: str
    policy_id: str
    starting_slot: int
    starting_block_hash: str
    starting_date: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Policy":
        return cls(
            network             = row["network"],
            policy_id           = row["policy_id"],
            starting_slot       = int(row["starting_slot"] or 0),
            starting_block_hash = row["starting_block_hash"] or "",
            starting_date       = row["starting_date"] or "",
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Network:
    id: str
    name: str
    fact_statement_pointer: str = ""
    script_token: str = ""
    block_explorer_base_url: str = ""
    last_block_hash: str = ""
    last_checkpoint_slot: int = 0
    zero_time: int = 0
    zero_slot: int = 0
    slot_length: int = 0
    is_enabled: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Network":
        return cls(
            id                      = row["id"],
            name                    = row["name"],
            fact_statement_pointer  = row.get("fact_statement_pointer") or "",
            script_token            = row.get("script_token") or "",
            block_explorer_base_url = row.get("block_explorer_base_url") or "",
            last_block_hash         = row.get("last_block_hash") or "",
            last_checkpoint_slot    = int(row.get("last_checkpoint_slot") or 0),
            zero_time               = int(row.get("zero_time") or 0),
            zero_slot               = int(row.get("zero_slot") or 0),
            slot_length             = int(row.get("slot_length") or 0),
            is_enabled              = bool(row.get("is_enabled")),
        )

    def to_dict(self, policies: list[Policy] | None = None) -> dict:
        payload = asdict(self)
        payload["policies"] = [p.to_dict() for p in policies or []]
        return payload


@dataclass(frozen=True)
class Feed:
    id: str
    feed_id: str
    network: str
    type: str = ""
    name: str = ""
    version: int = 0
    status: str = ""
    inactive_reason: str = ""
    source_type: str = ""
    funding_type: str = ""
    calculation_method: str = ""
    heartbeat_interval: int = 0
    deviation: float = 0.0
    base_asset: str | None = None
    quote_asset: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Feed":
        return cls(
            id                 = row["id"],
            feed_id            = row["feed_id"],
            network            = row["network"],
            type               = row.get("type") or "",
            name               = row.get("name") or "",
            version            = int(row.get("version") or 0),
            status             = row.get("status") or "",
            inactive_reason    = row.get("inactive_reason") or "",
            source_type        = row.get("source_type") or "",
            funding_type       = row.get("funding_type") or "",
            calculation_method = row.get("calculation_method") or "",
            heartbeat_interval = int(row.get("heartbeat_interval") or 0),
            deviation          = float(row.get("deviation") or 0.0),
            base_asset         = row.get("base_asset") or None,
            quote_asset        = row.get("quote_asset") or None,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Fact:
    id: str
    network: str
    feed: str
    value: float
    validation_date: str
    publication_date: str
    policy: str = ""
    fact_urn: str = ""
    value_inverse: float | None = None
    transaction_id: str = ""
    storage_urn: str = ""
    block_hash: str = ""
    output_index: int = 0
    address: str = ""
    slot: int = 0
    statement_hash: str = ""
    publication_cost: float | None = None
    participating_nodes: list = field(default_factory=list)
    storage_cost: float | None = None
    sources: list = field(default_factory=list)
    content_signature: str = ""
    collection_date: str = ""
    is_archive_indexed: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Fact":
        return cls(
            id                  = row["id"],
            network             = row["network"],
            feed                = row["feed"],
            value               = float(row["value"]),
            validation_date     = row["validation_date"],
            publication_date    = row["publication_date"],
            policy              = row.get("policy") or "",
            fact_urn            = row.get("fact_urn") or "",
            value_inverse       = _float_or_none(row.get("value_inverse")),
            transaction_id      = row.get("transaction_id") or "",
            storage_urn         = row.get("storage_urn") or "",
            block_hash          = row.get("block_hash") or "",
            output_index        = int(row.get("output_index") or 0),
            address             = row.get("address") or "",
            slot                = int(row.get("slot") or 0),
            statement_hash      = row.get("statement_hash") or "",
            publication_cost    = _float_or_none(row.get("publication_cost")),
            participating_nodes = _json_list(row.get("participating_nodes")),
            storage_cost        = _float_or_none(row.get("storage_cost")),
            sources             = _json_list(row.get("sources")),
            content_signature   = row.get("content_signature") or "",
            collection_date     = row.get("collection_date") or "",
            is_archive_indexed  = bool(row.get("is_archive_indexed")),
        )

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class TimeBucket:
    """Calendar interval; ``start`` and ``end`` are both inclusive."""
    start: date
    end: date
    label: str
    type: str

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end
