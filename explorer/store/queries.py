"""
store/queries.py
Canonical explorer SQL and its cross-dialect rendering.

Key tools:
  - SQLGlot : every query is written once in SQLite syntax with named
              ``:binds`` and transpiled to the configured warehouse dialect
              (sqlite, postgres, mysql, duckdb).

Timestamps are compared as UTC text, so no dialect-specific date functions
appear in the canonical SQL; calendar bucketing happens in pandas.
"""

from __future__ import annotations

from functools import lru_cache

import sqlglot
import sqlglot.expressions as exp
import structlog

log = structlog.get_logger(__name__)

CANONICAL_DIALECT = "sqlite"


class ExplorerQueryBuilder:
    """
    Registry of the explorer's read queries.

    Supported dialects: sqlite, postgres, mysql, duckdb
    """

    # -- Networks ------------------------------------------------------------

    NETWORKS_SQL = """
        SELECT *
        FROM networks
        ORDER BY id DESC
    """

    NETWORK_BY_NAME_SQL = """
        SELECT id, name
        FROM networks
        WHERE name = :network_name
    """

    POLICIES_SQL = """
        SELECT network, policy_id, starting_slot, starting_block_hash, starting_date
        FROM policies
        ORDER BY starting_slot DESC
    """

    # -- Feeds ---------------------------------------------------------------

    FEEDS_SQL = """
        SELECT *
        FROM feeds
        WHERE network = :network_id
        ORDER BY updated DESC
    """

    # feed_id carries a version suffix ("ADA-USD/3"); callers match on the prefix
    FEED_BY_PREFIX_SQL = """
        SELECT *
        FROM feeds
        WHERE network = :network_id
          AND feed_id LIKE :feed_pattern ESCAPE '!'
        ORDER BY updated DESC
        LIMIT 1
    """

    ACTIVE_FEED_COUNT_SQL = """
        SELECT COUNT(*) AS feed_count
        FROM feeds
        WHERE network = :network_id
          AND status = 'active'
    """

    # -- Facts ---------------------------------------------------------------

    LATEST_FACT_PER_FEED_SQL = """
        SELECT *
        FROM (
            SELECT
                f.*,
                ROW_NUMBER() OVER (
                    PARTITION BY f.feed
                    ORDER BY f.validation_date DESC, f.id DESC
                ) AS recency_rank
            FROM facts f
            WHERE f.network = :network_id
        ) ranked
        WHERE recency_rank = 1
    """

    LATEST_FACT_SQL = """
        SELECT f.*
        FROM facts f
        WHERE f.network = :network_id
          AND f.feed = :feed
        ORDER BY f.validation_date DESC, f.id DESC
        LIMIT 1
    """

    # Nearest-before lookups; equal validation_date ties go to the greatest id
    FACT_VALUE_AS_OF_SQL = """
        SELECT f.value
        FROM facts f
        WHERE f.network = :network_id
          AND f.feed = :feed
          AND f.validation_date <= :cutoff
        ORDER BY f.validation_date DESC, f.id DESC
        LIMIT 1
    """

    FACT_VALUES_AS_OF_SQL = """
        SELECT feed, value
        FROM (
            SELECT
                f.feed,
                f.value,
                ROW_NUMBER() OVER (
                    PARTITION BY f.feed
                    ORDER BY f.validation_date DESC, f.id DESC
                ) AS recency_rank
            FROM facts f
            WHERE f.network = :network_id
              AND f.validation_date <= :cutoff
        ) ranked
        WHERE recency_rank = 1
    """

    FACT_COUNTS_PER_FEED_SQL = """
        SELECT feed, COUNT(*) AS fact_count
        FROM facts
        WHERE network = :network_id
        GROUP BY feed
    """

    FEED_FACT_COUNT_SQL = """
        SELECT COUNT(*) AS fact_count
        FROM facts
        WHERE network = :network_id
          AND feed = :feed
    """

    FEED_FACTS_SINCE_SQL = """
        SELECT *
        FROM facts
        WHERE network = :network_id
          AND feed = :feed
          AND validation_date > :since
        ORDER BY validation_date DESC, id DESC
    """

    NETWORK_FACT_COUNT_SQL = """
        SELECT COUNT(*) AS fact_count
        FROM facts
        WHERE network = :network_id
    """

    NETWORK_FACTS_PUBLISHED_SINCE_SQL = """
        SELECT COUNT(*) AS fact_count
        FROM facts
        WHERE network = :network_id
          AND publication_date >= :since
    """

    # -- Stats ---------------------------------------------------------------

    STATS_FACTS_SQL = """
        SELECT
            fd.feed_id          AS feed_id,
            f.id                AS fact_id,
            f.publication_date  AS publication_date,
            f.transaction_id    AS transaction_id
        FROM facts f
        INNER JOIN feeds fd ON f.feed = fd.id
        WHERE f.network = :network_id
          AND f.publication_date >= :range_start
          AND f.publication_date <= :range_end
    """

    STATS_TOTALS_SQL = """
        SELECT
            COUNT(*)                        AS total_facts,
            COUNT(DISTINCT transaction_id)  AS total_txs
        FROM facts f
        WHERE f.network = :network_id
          AND f.publication_date >= :range_start
          AND f.publication_date <= :range_end
    """

    @classmethod
    def transpile(cls, sql: str, target_dialect: str) -> str:
        """
        Transpile a canonical SQLite query to the target dialect.

        Parameters
        ----------
        sql : str
            Source SQL (SQLite dialect, ``:name`` binds)
        target_dialect : str
            One of: 'sqlite', 'postgres', 'mysql', 'duckdb'
        """
        try:
            statements = sqlglot.parse(sql, read=CANONICAL_DIALECT, error_level=sqlglot.ErrorLevel.RAISE)
            return "\n".join(
                _named_binds(statement).sql(dialect=target_dialect, pretty=True)
                for statement in statements
                if statement is not None
            )
        except sqlglot.errors.SqlglotError as exc:
            log.error("sqlglot.transpile_failed", dialect=target_dialect, error=str(exc))
            raise

    @classmethod
    def render(cls, name: str, dialect: str = CANONICAL_DIALECT, limit: int | None = None) -> str:
        """Return query ``name`` (e.g. "FEEDS_SQL") rendered for ``dialect``."""
        if name not in cls.query_names():
            raise KeyError(f"Unknown explorer query: {name}")
        return _render_cached(name, dialect, limit)

    @classmethod
    def with_limit(cls, sql: str, limit: int, dialect: str) -> str:
        """Apply a row cap through the sqlglot expression API."""
        query = sqlglot.parse_one(sql, read=CANONICAL_DIALECT)
        if not isinstance(query, exp.Select):
            raise ValueError("Only SELECT statements accept a row limit")
        query = _named_binds(query.limit(exp.Literal.number(limit)))
        return query.sql(dialect=dialect, pretty=True)

    @classmethod
    def validate_sql(cls, sql: str) -> list[str]:
        """Parse SQL and return any syntactic errors as strings."""
        errors = []
        try:
            sqlglot.parse(sql, read=CANONICAL_DIALECT, error_level=sqlglot.ErrorLevel.RAISE)
        except sqlglot.errors.ParseError as exc:
            errors = [str(e) for e in exc.errors]
        return errors

    @classmethod
    def query_names(cls) -> list[str]:
        return sorted(
            name for name in vars(cls)
            if name.endswith("_SQL") and isinstance(getattr(cls, name), str)
        )

    @classmethod
    def get_all_dialects(cls) -> list[str]:
        return ["sqlite", "postgres", "mysql", "duckdb"]

    @classmethod
    def render_all(cls, dialect: str) -> dict[str, str]:
        """Useful for CI and dry runs: render every query for one dialect."""
        return {name: cls.render(name, dialect) for name in cls.query_names()}


def _named_binds(expression: exp.Expression) -> exp.Expression:
    """
    Pin every named placeholder to SQLAlchemy's ``:name`` form.

    Left alone, sqlglot writes binds in the target driver's paramstyle
    (``%(name)s`` for postgres, ``$name`` for duckdb), which ``text()`` does
    not recognise.
    """
    def pin(node: exp.Expression) -> exp.Expression:
        if isinstance(node, exp.Placeholder) and node.name:
            return exp.var(f":{node.name}")
        return node

    return expression.transform(pin)


@lru_cache(maxsize=256)
def _render_cached(name: str, dialect: str, limit: int | None) -> str:
    sql = getattr(ExplorerQueryBuilder, name)
    if limit is not None:
        return ExplorerQueryBuilder.with_limit(sql, limit, dialect)
    return ExplorerQueryBuilder.transpile(sql, dialect)
