"""
api/server.py
Flask API server for the facts explorer, serving network, feed and
statistics data from the fact store.

Usage:
    python api/server.py

Endpoints:
    GET /api/health                                        — Health check
    GET /api/explorer/networks                             — Networks with their policies
    GET /api/explorer/dashboard/<networkId>                — Fact and feed counters
    GET /api/explorer/feeds/<networkId>                    — Feeds with latest fact & 1/3/7-day values
    GET /api/explorer/feeds/<networkId>/<feedId>           — One feed, same shape
    GET /api/explorer/feeds/<networkId>/<feedId>/facts     — Facts of a feed over a day range
    GET /api/explorer/stats?network=&interval=&start=&end= — Per-feed interval statistics
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Callable

# Make sure explorer/ is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from api.data_service import INVALID_RANGE, ExplorerService
from explorer.core.config import Settings
from explorer.core.errors import ExplorerError, InvalidParameterError
from explorer.core.logging_config import configure_logging
from explorer.models.timestamps import parse_day, utc_now
from explorer.store.fact_store import FactStore

log = structlog.get_logger(__name__)

ENDPOINTS = ["networks", "dashboard", "feeds", "feed", "feed_facts", "stats"]


def _parse_range(raw: str | None) -> int:
    """Integer ``range`` argument; positivity is checked by the service."""
    if raw is None or raw == "":
        return 1
    try:
        return int(raw)
    except ValueError:
        raise InvalidParameterError(INVALID_RANGE) from None


def create_app(
    settings: Settings | None = None,
    store: FactStore | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> Flask:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    store   = store or FactStore.from_url(settings.database_url, dialect=settings.sql_dialect)
    service = ExplorerService(store, facts_limit=settings.facts_limit, clock=clock)

    app = Flask(__name__)
    CORS(app)

    # Server-side failures never leak store details to clients
    failure_messages = {
        "networks":   "Failed to fetch networks data",
        "dashboard":  "Failed to fetch dashboard data",
        "feeds":      "Failed to fetch feeds data",
        "feed":       "Failed to fetch feed data",
        "feed_facts": "Failed to fetch feed facts by date range",
        "stats":      "Failed to fetch statistics data",
    }

    @app.errorhandler(ExplorerError)
    def handle_explorer_error(exc: ExplorerError):
        if exc.status_code >= 500:
            log.error("api.request_failed", path=request.path, error=str(exc))
            message = failure_messages.get(request.endpoint, "Internal server error")
        else:
            log.info("api.request_rejected", path=request.path, status=exc.status_code, error=str(exc))
            message = str(exc)
        return jsonify({"error": message}), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        log.exception("api.unhandled_error", path=request.path, error=str(exc))
        message = failure_messages.get(request.endpoint, "Internal server error")
        return jsonify({"error": message}), 500

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok", "endpoints": ENDPOINTS})

    @app.route("/api/explorer/networks")
    def networks():
        return jsonify(service.get_networks())

    @app.route("/api/explorer/dashboard/<network_id>")
    def dashboard(network_id):
        return jsonify(service.get_dashboard(network_id))

    @app.route("/api/explorer/feeds/<network_id>")
    def feeds(network_id):
        """
        Every feed of a network. ``oneDayAgo``/``threeDaysAgo``/``sevenDaysAgo``
        are null when no fact existed at that cutoff.
        """
        return jsonify(service.get_feeds(network_id))

    @app.route("/api/explorer/feeds/<network_id>/<feed_id>")
    def feed(network_id, feed_id):
        return jsonify(service.get_feed(network_id, feed_id))

    @app.route("/api/explorer/feeds/<network_id>/<feed_id>/facts")
    def feed_facts(network_id, feed_id):
        range_days = _parse_range(request.args.get("range"))
        start_raw  = request.args.get("startDate")
        start      = parse_day(start_raw, "startDate") if start_raw else None
        return jsonify(service.get_feed_facts(network_id, feed_id, range_days, start))

    @app.route("/api/explorer/stats")
    def stats():
        """
        Per-feed fact and transaction counts bucketed by month, week or year.
        Driven by explorer/transform/interval_stats.py IntervalAggregator.
        """
        data = service.get_stats(
            network_name = request.args.get("network"),
            interval     = request.args.get("interval"),
            start        = request.args.get("start"),
            end          = request.args.get("end"),
        )
        return jsonify(data)

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    app = create_app(settings)
    host = "0.0.0.0"
    log.info("api.start", host=host, port=settings.port, database=settings.database_url.split("@")[-1])
    app.run(debug=settings.debug, host=host, port=settings.port)
