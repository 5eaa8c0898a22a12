"""
store/fact_store.py
Read-only access to the relational fact store.

Wraps a SQLAlchemy engine and runs the canonical queries from
store/queries.py, transpiled for the configured dialect. Store failures are
re-raised as StoreError; callers decide whether to degrade or fail.
"""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd
import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, RowMapping
from sqlalchemy.exc import SQLAlchemyError

from explorer.core.errors import StoreError
from explorer.store.queries import ExplorerQueryBuilder

log = structlog.get_logger(__name__)


class FactStore:
    """
    Typical usage
    -------------
    store = FactStore.from_url("sqlite:///explorer.db")
    rows  = store.fetch_all("FEEDS_SQL", network_id="mainnet")
    """

    def __init__(self, engine: Engine, dialect: str = "sqlite"):
        self.engine  = engine
        self.dialect = dialect
        self.queries = ExplorerQueryBuilder

    @classmethod
    def from_url(cls, database_url: str, dialect: str = "sqlite") -> "FactStore":
        return cls(create_engine(database_url, future=True), dialect=dialect)

    def _sql(self, query_name: str, limit: int | None = None):
        return text(self.queries.render(query_name, self.dialect, limit=limit))

    def fetch_all(self, query_name: str, limit: int | None = None, **params: Any) -> Sequence[RowMapping]:
        try:
            with self.engine.connect() as conn:
                return conn.execute(self._sql(query_name, limit), params).mappings().all()
        except SQLAlchemyError as exc:
            log.error("store.query_failed", query=query_name, error=str(exc))
            raise StoreError(f"{query_name} failed") from exc

    def fetch_one(self, query_name: str, **params: Any) -> RowMapping | None:
        rows = self.fetch_all(query_name, **params)
        return rows[0] if rows else None

    def fetch_scalar(self, query_name: str, default: Any = 0, **params: Any) -> Any:
        row = self.fetch_one(query_name, **params)
        if row is None:
            return default
        value = next(iter(row.values()))
        return default if value is None else value

    def fetch_frame(self, query_name: str, **params: Any) -> pd.DataFrame:
        """Run a query straight into a DataFrame for pandas aggregation."""
        try:
            with self.engine.connect() as conn:
                return pd.read_sql_query(self._sql(query_name), conn, params=params)
        except SQLAlchemyError as exc:
            log.error("store.query_failed", query=query_name, error=str(exc))
            raise StoreError(f"{query_name} failed") from exc

    def dispose(self) -> None:
        self.engine.dispose()
