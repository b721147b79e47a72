"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes')


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


def get_data_dir() -> str:
    """
    Directory holding the local SQLite database.

    Priority: DATA_DIR > /app/data (container) > data (local)
    """
    return (
        os.environ.get('DATA_DIR') or
        ('/app/data' if os.path.exists('/app') else 'data')
    )


# =============================================================================
# SERVER SETTINGS
# =============================================================================
PORT = _get_int('PORT', 8000)
HOST = _get_str('HOST', '0.0.0.0')

# =============================================================================
# DATABASE SETTINGS
# =============================================================================
# sqlite (default) or supabase
DB_TYPE = _get_str('DB_TYPE', 'sqlite')
DATA_DIR = get_data_dir()

# =============================================================================
# RESULTS CACHE
# =============================================================================
# Results of finished competitions never change, so a long TTL is fine.
# Default: 1 hour
RESULTS_CACHE_TTL_SECONDS = _get_int('RESULTS_CACHE_TTL_SECONDS', 3600)
RESULTS_CACHE_MAXSIZE = _get_int('RESULTS_CACHE_MAXSIZE', 256)
RESULTS_CACHE_ENABLED = _get_bool('RESULTS_CACHE_ENABLED', True)

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = _get_str('LOG_LEVEL', 'INFO')
