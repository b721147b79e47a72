"""
Storage module for domino competition data.

Provides a unified interface for multiple database backends:
- SQLite (local development, self-hosted)
- Supabase (PostgreSQL, hosted)

Usage:
    from domino_ranking.storage import get_database

    db = get_database()  # Uses DB_TYPE env var
    games = db.get_games(competition_id)
"""

from .base import DatabaseInterface
from .factory import get_database, reset_database
from .exceptions import (
    DatabaseError,
    ConnectionError,
    ConfigurationError,
    SchemaError,
    QueryError,
    DataFetchError,
    WriteError,
    NotFoundError
)

__all__ = [
    'DatabaseInterface',
    'get_database',
    'reset_database',
    'DatabaseError',
    'ConnectionError',
    'ConfigurationError',
    'SchemaError',
    'QueryError',
    'DataFetchError',
    'WriteError',
    'NotFoundError'
]
