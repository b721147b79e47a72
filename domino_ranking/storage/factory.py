"""
Factory function to create the appropriate database implementation.

Reads configuration from environment variables to determine which
database backend to use.
"""

import logging
import os
from typing import Optional

from .base import DatabaseInterface
from .exceptions import ConfigurationError
from ..config import get_data_dir

logger = logging.getLogger(__name__)

# Singleton instance
_db_instance: Optional[DatabaseInterface] = None


def get_database() -> DatabaseInterface:
    """
    Get or create the database instance.

    Uses the DB_TYPE environment variable to determine which implementation:
    - "sqlite" (default): Local SQLite database
    - "supabase": Supabase PostgreSQL database

    Additional environment variables per type:
    - SQLite: DATA_DIR, or uses the "data" directory
    - Supabase: SUPABASE_URL, SUPABASE_KEY

    Returns:
        DatabaseInterface implementation

    Raises:
        ConfigurationError: If required env vars are missing
    """
    global _db_instance

    if _db_instance is not None:
        return _db_instance

    db_type = os.environ.get('DB_TYPE', 'sqlite').lower()
    logger.info("Database type: %s", db_type)

    if db_type == 'sqlite':
        from .sqlite_db import SQLiteDatabase

        db_path = os.path.join(get_data_dir(), 'dominoes.db')
        db = SQLiteDatabase(db_path=db_path)

    elif db_type == 'supabase':
        from .supabase_db import SupabaseDatabase
        db = SupabaseDatabase()

    else:
        raise ConfigurationError(
            f"Unknown DB_TYPE: {db_type}. "
            f"Valid options: sqlite, supabase"
        )

    # Only cache an initialized instance
    db.initialize()
    _db_instance = db

    return _db_instance


def reset_database() -> None:
    """
    Reset the database singleton.

    Used for testing or when switching configurations.
    """
    global _db_instance
    if _db_instance is not None:
        _db_instance.close()
        _db_instance = None
