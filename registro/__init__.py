"""User registry service: JSON API plus static front end."""

from __future__ import annotations

from typing import Any

from .database import Database, DatabaseError, resolve_database_path


def create_application(*args: Any, **kwargs: Any):
    """Factory function that returns the combined API + static application."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


def create_api_app(*args: Any, **kwargs: Any):
    """Factory function for the API-only application."""

    from .api import create_app as _create_api_app

    return _create_api_app(*args, **kwargs)


__all__ = [
    "Database",
    "DatabaseError",
    "resolve_database_path",
    "create_application",
    "create_api_app",
]
