"""
core/config.py
Runtime settings read from the environment.

Environment variables
---------------------
DATABASE_URL          SQLAlchemy URL of the fact store (default: local SQLite file)
EXPLORER_SQL_DIALECT  sqlglot dialect the canonical queries are transpiled to
PORT                  HTTP port for api/server.py
FLASK_ENV             "production" disables the Flask debugger
LOG_LEVEL             stdlib level name for structlog filtering
EXPLORER_FACTS_LIMIT  row cap for the feed facts endpoint
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from explorer.core.errors import ExplorerConfigError

DEFAULT_DATABASE_URL = "sqlite:///explorer.db"
SUPPORTED_DIALECTS   = ("sqlite", "postgres", "mysql", "duckdb")


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ExplorerConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ExplorerConfigError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    sql_dialect: str  = "sqlite"
    port: int         = 5000
    debug: bool       = False
    log_level: str    = "INFO"
    facts_limit: int  = 5000

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``os.environ`` (or an explicit mapping in tests)."""
        env = os.environ if env is None else env

        dialect = env.get("EXPLORER_SQL_DIALECT", "sqlite").lower()
        if dialect not in SUPPORTED_DIALECTS:
            raise ExplorerConfigError(
                f"EXPLORER_SQL_DIALECT must be one of {', '.join(SUPPORTED_DIALECTS)}"
            )

        return cls(
            database_url = env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            sql_dialect  = dialect,
            port         = _int_env(env, "PORT", 5000),
            debug        = env.get("FLASK_ENV") != "production",
            log_level    = env.get("LOG_LEVEL", "INFO").upper(),
            facts_limit  = _int_env(env, "EXPLORER_FACTS_LIMIT", 5000),
        )
