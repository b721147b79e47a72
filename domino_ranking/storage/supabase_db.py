"""
Supabase Database Storage for domino competitions.

Provides PostgreSQL-based cloud storage using Supabase's REST API.
Key differences from SQLite:
- Uses supabase-py client library (REST API)
- upsert() instead of INSERT ... ON CONFLICT
- in_() for list membership queries
- Batch size limits (chunk large upserts at 500 rows)
- initialize() verifies tables exist (doesn't create them)
- team1/team2 are stored as native text[] columns

Requires: pip install supabase
Schema must be created first via scripts/supabase_schema.sql
"""

import os
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from .base import DatabaseInterface
from .exceptions import (
    ConfigurationError,
    ConnectionError,
    DataFetchError,
    NotFoundError,
    WriteError,
)


# Batch size for upsert operations
BATCH_SIZE = 500

GAME_COLUMNS = (
    'id, competition_id, team1, team2, team1_score, team2_score, '
    'team1_was_losing_5_0, team2_was_losing_5_0, status'
)


class SupabaseDatabase(DatabaseInterface):
    """
    Supabase cloud database implementation.

    Uses PostgreSQL via Supabase's REST API.
    Implements the DatabaseInterface abstract base class.
    """

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        """
        Create Supabase database instance.

        Reads configuration from environment variables when not given:
        - SUPABASE_URL: Project URL (e.g., https://your-project.supabase.co)
        - SUPABASE_KEY: Anon or service key
        """
        self._url = url or os.environ.get('SUPABASE_URL')
        self._key = key or os.environ.get('SUPABASE_KEY')
        self._client = None
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the database connection and verify schema."""
        if self._initialized:
            return

        if not self._url:
            raise ConfigurationError(
                "SUPABASE_URL environment variable is required for Supabase backend"
            )
        if not self._key:
            raise ConfigurationError(
                "SUPABASE_KEY environment variable is required for Supabase backend"
            )

        # Verify connection and schema by querying competitions
        client = self._get_client()
        try:
            client.table('competitions').select('id').limit(1).execute()
        except Exception as e:
            raise ConnectionError(
                f"Failed to connect to Supabase or schema not initialized. "
                f"Run scripts/supabase_schema.sql in Supabase SQL Editor first. "
                f"Error: {e}"
            )

        self._initialized = True

    def _get_client(self):
        """Get or create Supabase client."""
        if self._client is None:
            try:
                from supabase import create_client
            except ImportError:
                raise ConfigurationError(
                    "supabase package not installed. "
                    "Install with: pip install supabase"
                )

            try:
                self._client = create_client(self._url, self._key)
            except Exception as e:
                raise ConnectionError(f"Failed to create Supabase client: {e}")

        return self._client

    def close(self) -> None:
        """Close database connection (no-op for Supabase REST API)."""
        # REST API doesn't maintain persistent connections
        self._client = None

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            client = self._get_client()
            client.table('competitions').select('id').limit(1).execute()
            return True
        except Exception:
            return False

    def _read(self, query) -> List[Dict[str, Any]]:
        """Execute a select, translating client errors."""
        try:
            return query.execute().data or []
        except Exception as e:
            raise DataFetchError(f"Supabase read failed: {e}") from e

    def _write(self, query) -> List[Dict[str, Any]]:
        """Execute an insert/update/delete, translating client errors."""
        try:
            return query.execute().data or []
        except Exception as e:
            raise WriteError(f"Supabase write failed: {e}") from e

    # =========================================================================
    # COMPETITIONS
    # =========================================================================

    def save_competition(self, competition: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or update a competition."""
        client = self._get_client()
        row = {
            'id': competition.get('id') or str(uuid.uuid4()),
            'name': competition.get('name', ''),
            'description': competition.get('description') or '',
            'community_id': competition.get('community_id'),
            'start_date': competition.get('start_date'),
            'created_at': competition.get('created_at') or datetime.now(timezone.utc).isoformat(),
            'status': competition.get('status') or 'pending',
        }
        rows = self._write(client.table('competitions').upsert(row, on_conflict='id'))
        return rows[0] if rows else row

    def get_competition(self, competition_id: str) -> Dict[str, Any]:
        """Get a single competition by ID."""
        client = self._get_client()
        rows = self._read(
            client.table('competitions')
            .select('*')
            .eq('id', competition_id)
            .limit(1)
        )
        if not rows:
            raise NotFoundError('competitions', competition_id)
        return rows[0]

    def list_competitions(self, community_id: str) -> List[Dict[str, Any]]:
        """Get competitions of a community, newest first."""
        client = self._get_client()
        return self._read(
            client.table('competitions')
            .select('*')
            .eq('community_id', community_id)
            .order('created_at', desc=True)
        )

    def set_competition_status(self, competition_id: str, status: str) -> Dict[str, Any]:
        """Overwrite the status of a competition."""
        client = self._get_client()
        rows = self._write(
            client.table('competitions')
            .update({'status': status})
            .eq('id', competition_id)
        )
        if not rows:
            raise NotFoundError('competitions', competition_id)
        return rows[0]

    # =========================================================================
    # PLAYERS
    # =========================================================================

    def save_players(self, players: List[Dict[str, Any]]) -> int:
        """Save players to database."""
        client = self._get_client()

        rows = [
            {
                'id': p['id'],
                'name': p.get('name', ''),
                'phone': p.get('phone'),
                'community_id': p.get('community_id'),
                'updated_at': datetime.now(timezone.utc).isoformat()
            }
            for p in players
        ]

        # Upsert in batches
        for i in range(0, len(rows), BATCH_SIZE):
            batch = rows[i:i + BATCH_SIZE]
            self._write(client.table('players').upsert(batch, on_conflict='id'))

        return len(players)

    def get_player(self, player_id: str) -> Dict[str, Any]:
        """Get a single player by ID."""
        client = self._get_client()
        rows = self._read(
            client.table('players')
            .select('id, name, phone, community_id')
            .eq('id', player_id)
            .limit(1)
        )
        if not rows:
            raise NotFoundError('players', player_id)
        return rows[0]

    def get_players(self, player_ids: List[str]) -> List[Dict[str, Any]]:
        """Get players by a list of IDs."""
        if not player_ids:
            return []
        client = self._get_client()
        return self._read(
            client.table('players')
            .select('id, name, phone, community_id')
            .in_('id', list(player_ids))
        )

    # =========================================================================
    # GAMES
    # =========================================================================

    def save_games(self, games: List[Dict[str, Any]]) -> int:
        """Save games to database."""
        client = self._get_client()

        rows = [
            {
                'id': g.get('id') or str(uuid.uuid4()),
                'competition_id': g['competition_id'],
                'team1': list(g.get('team1', [])),
                'team2': list(g.get('team2', [])),
                'team1_score': g.get('team1_score', 0),
                'team2_score': g.get('team2_score', 0),
                'team1_was_losing_5_0': bool(g.get('team1_was_losing_5_0')),
                'team2_was_losing_5_0': bool(g.get('team2_was_losing_5_0')),
                'status': g.get('status', 'pending'),
                'updated_at': datetime.now(timezone.utc).isoformat()
            }
            for g in games
        ]

        for i in range(0, len(rows), BATCH_SIZE):
            batch = rows[i:i + BATCH_SIZE]
            self._write(client.table('games').upsert(batch, on_conflict='id'))

        return len(games)

    def get_games(self, competition_id: str) -> List[Dict[str, Any]]:
        """Get games of a competition in insertion order."""
        client = self._get_client()
        query = client.table('games').select(GAME_COLUMNS).eq('competition_id', competition_id)

        # seq is a bigserial assigned on insert and untouched by upserts
        return self._read(query.order('seq'))

    # =========================================================================
    # MEMBERS
    # =========================================================================

    def add_member(self, competition_id: str, player_id: str) -> Dict[str, Any]:
        """Enroll a player in a competition (idempotent)."""
        client = self._get_client()
        row = {
            'id': str(uuid.uuid4()),
            'competition_id': competition_id,
            'player_id': player_id
        }
        self._write(
            client.table('competition_members')
            .upsert(row, on_conflict='competition_id,player_id', ignore_duplicates=True)
        )
        rows = self._read(
            client.table('competition_members')
            .select('id, competition_id, player_id')
            .eq('competition_id', competition_id)
            .eq('player_id', player_id)
            .limit(1)
        )
        return rows[0] if rows else row

    def remove_member(self, competition_id: str, player_id: str) -> None:
        """Remove a player from a competition."""
        client = self._get_client()
        self._write(
            client.table('competition_members')
            .delete()
            .eq('competition_id', competition_id)
            .eq('player_id', player_id)
        )

    def get_members(self, competition_id: str) -> List[Dict[str, Any]]:
        """Get membership rows of a competition."""
        client = self._get_client()
        return self._read(
            client.table('competition_members')
            .select('id, competition_id, player_id')
            .eq('competition_id', competition_id)
        )

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def clear_all(self) -> None:
        """Clear all data from database."""
        client = self._get_client()
        # Supabase requires a filter on delete; neq on id matches every row
        for table in ['competition_members', 'games', 'competitions', 'players']:
            self._write(client.table(table).delete().neq('id', ''))
