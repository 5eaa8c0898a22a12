"""
tests/test_queries.py
Unit tests for canonical SQL rendering and the fact store wrapper.
Run: pytest tests/ -v
"""

import re

import pytest
from sqlalchemy import text
from sqlalchemy.dialects import mysql, postgresql, sqlite

from conftest import fact_row
from explorer.core.errors import StoreError
from explorer.store import schema
from explorer.store.queries import ExplorerQueryBuilder

BIND_PATTERN = re.compile(r"(?<!:):(\w+)")

# duckdb_engine builds on the postgres dialect
SQLALCHEMY_DIALECTS = {
    "sqlite":   sqlite.dialect(),
    "postgres": postgresql.dialect(),
    "mysql":    mysql.dialect(),
    "duckdb":   postgresql.dialect(),
}


def canonical_binds(name):
    return set(BIND_PATTERN.findall(getattr(ExplorerQueryBuilder, name)))


class TestExplorerQueryBuilder:
    def test_every_query_parses(self):
        for name in ExplorerQueryBuilder.query_names():
            assert ExplorerQueryBuilder.validate_sql(getattr(ExplorerQueryBuilder, name)) == [], name

    @pytest.mark.parametrize("dialect", ExplorerQueryBuilder.get_all_dialects())
    def test_rendered_binds_reach_sqlalchemy(self, dialect):
        rendered = ExplorerQueryBuilder.render_all(dialect)
        assert set(rendered) == set(ExplorerQueryBuilder.query_names())
        for name, sql in rendered.items():
            compiled = text(sql).compile(dialect=SQLALCHEMY_DIALECTS[dialect])
            assert set(compiled.params) == canonical_binds(name), name
            assert "%%" not in str(compiled), name

    @pytest.mark.parametrize("dialect", ["postgres", "duckdb"])
    def test_limited_query_keeps_binds(self, dialect):
        sql = ExplorerQueryBuilder.render("FEED_FACTS_SINCE_SQL", dialect, limit=25)
        assert "$network_id" not in sql
        assert "%(network_id)s" not in sql
        compiled = text(sql).compile(dialect=SQLALCHEMY_DIALECTS[dialect])
        assert set(compiled.params) == canonical_binds("FEED_FACTS_SINCE_SQL")

    def test_like_escape_survives_transpile(self):
        for dialect in ExplorerQueryBuilder.get_all_dialects():
            sql = ExplorerQueryBuilder.render("FEED_BY_PREFIX_SQL", dialect)
            assert "ESCAPE '!'" in sql, dialect

    def test_sqlite_keeps_named_binds(self):
        sql = ExplorerQueryBuilder.render("FACT_VALUE_AS_OF_SQL", "sqlite")
        assert ":cutoff" in sql
        assert ":network_id" in sql

    def test_window_query_keeps_partitioning(self):
        sql = ExplorerQueryBuilder.render("FACT_VALUES_AS_OF_SQL", "postgres").upper()
        assert "ROW_NUMBER()" in sql
        assert "PARTITION BY" in sql

    def test_limit_via_expression_api(self):
        sql = ExplorerQueryBuilder.render("FEED_FACTS_SINCE_SQL", "sqlite", limit=25)
        assert "LIMIT 25" in sql

    def test_unknown_query(self):
        with pytest.raises(KeyError):
            ExplorerQueryBuilder.render("NOPE_SQL")

    def test_validate_invalid_sql(self):
        errors = ExplorerQueryBuilder.validate_sql("SELECT FROM FROM")
        assert isinstance(errors, list)


class TestFactStore:
    def test_fetch_all_returns_mappings(self, store, insert):
        insert(schema.facts, [fact_row("f1", "feed-x", "2024-01-01 00:00:00.000Z", 1.5)])
        rows = store.fetch_all("FACT_COUNTS_PER_FEED_SQL", network_id="mainnet")
        assert [dict(r) for r in rows] == [{"feed": "feed-x", "fact_count": 1}]

    def test_fetch_scalar_default(self, store):
        assert store.fetch_scalar("NETWORK_FACT_COUNT_SQL", network_id="nowhere") == 0

    def test_fetch_frame(self, store, insert):
        insert(schema.facts, [fact_row("f1", "feed-x", "2024-01-01 00:00:00.000Z", 1.5)])
        df = store.fetch_frame("FACT_COUNTS_PER_FEED_SQL", network_id="mainnet")
        assert list(df.columns) == ["feed", "fact_count"]
        assert len(df) == 1

    def test_errors_become_store_errors(self, store, engine):
        schema.facts.drop(engine)
        with pytest.raises(StoreError):
            store.fetch_all("NETWORK_FACT_COUNT_SQL", network_id="mainnet")
