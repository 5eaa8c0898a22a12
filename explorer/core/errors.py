"""
core/errors.py
Explorer exception hierarchy.

Each failure class carries the HTTP status the API layer maps it to.
"""

from __future__ import annotations


class ExplorerError(Exception):
    """Base exception for all explorer failures."""

    status_code = 500


class ExplorerConfigError(ExplorerError):
    """Raised for invalid runtime configuration."""


class InvalidParameterError(ExplorerError):
    """Raised when a request parameter is missing or malformed."""

    status_code = 400


class NotFoundError(ExplorerError):
    """Raised when a network or feed cannot be resolved."""

    status_code = 404


class StoreError(ExplorerError):
    """Raised when the fact store fails to execute a query."""
