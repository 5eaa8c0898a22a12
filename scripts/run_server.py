"""
scripts/run_server.py
Entry point for the explorer API.

Usage:
  python scripts/run_server.py --database-url sqlite:///explorer.db
  python scripts/run_server.py --dialect postgres --dry-run
"""

import argparse
import os
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

log = structlog.get_logger(__name__)


def parse_args():
    p = argparse.ArgumentParser(description="Facts Explorer API Runner")
    p.add_argument("--database-url", default=os.getenv("DATABASE_URL", "sqlite:///explorer.db"))
    p.add_argument("--dialect",      default=os.getenv("EXPLORER_SQL_DIALECT", "sqlite"), help="SQLGlot output dialect")
    p.add_argument("--host",         default="0.0.0.0")
    p.add_argument("--port",         type=int, default=int(os.getenv("PORT", 5000)))
    p.add_argument("--dry-run",      action="store_true", help="Validate queries and config only")
    return p.parse_args()


def main():
    args = parse_args()

    from explorer.core.config import Settings
    from explorer.core.logging_config import configure_logging

    settings = Settings.from_env({
        **os.environ,
        "DATABASE_URL":         args.database_url,
        "EXPLORER_SQL_DIALECT": args.dialect,
        "PORT":                 str(args.port),
    })
    configure_logging(settings.log_level, json_output=False)

    log.info("server.init", dialect=settings.sql_dialect, port=settings.port, dry_run=args.dry_run)

    if args.dry_run:
        # Validate every canonical query and the interval strategies
        from explorer.models.intervals import INTERVALS
        from explorer.store.queries import ExplorerQueryBuilder

        rendered = ExplorerQueryBuilder.render_all(settings.sql_dialect)
        log.info("dry_run.sqlglot_ok", dialect=settings.sql_dialect, queries=len(rendered))

        today = date.today()
        for name, strategy in INTERVALS.items():
            bucket = strategy.bucket_for(today)
            log.info("dry_run.interval_ok", interval=name, label=bucket.label,
                     start=bucket.start.isoformat(), end=bucket.end.isoformat())

        print("\n✅ Dry-run passed. All queries transpiled and intervals validated.")
        return

    from api.server import create_app
    app = create_app(settings)
    app.run(debug=settings.debug, host=args.host, port=settings.port)


if __name__ == "__main__":
    main()
