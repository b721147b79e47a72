"""
SQLite Database Storage for domino competitions.

Local storage for development and self-hosting:
- Atomic transactions for data safety
- Upserts that keep a game's original insertion order
- Concurrent read access via WAL mode

This is the SQLite implementation of the DatabaseInterface.
"""

import sqlite3
import json
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Dict, Any
import threading

from .base import DatabaseInterface
from .exceptions import DataFetchError, NotFoundError, SchemaError, WriteError
from ..types import GameDict


class SQLiteDatabase(DatabaseInterface):
    """
    SQLite database for domino competition storage.
    Thread-safe with connection per thread.

    Implements the DatabaseInterface abstract base class.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str = "data/dominoes.db"):
        """
        Create SQLite database instance.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the database connection and schema."""
        if self._initialized:
            return

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._init_schema()
        except WriteError as e:
            raise SchemaError(f"Failed to initialize schema: {e}") from e
        self._initialized = True

    def close(self) -> None:
        """Close database connections and clean up resources."""
        if hasattr(self._local, 'conn') and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            conn = self._get_connection()
            conn.execute("SELECT 1")
            return True
        except Exception:
            return False

    # =========================================================================
    # CONNECTION MANAGEMENT
    # =========================================================================

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'conn') or self._local.conn is None:
            self._local.conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=30.0
            )
            self._local.conn.row_factory = sqlite3.Row
            # Enable WAL mode for better concurrent access
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
            self._local.conn.execute("PRAGMA foreign_keys=ON")
        return self._local.conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise WriteError(str(e)) from e
        except Exception:
            conn.rollback()
            raise

    def _fetch(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Run a read query, translating driver errors."""
        try:
            conn = self._get_connection()
            return conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise DataFetchError(str(e)) from e

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.transaction() as conn:
            conn.executescript('''
                -- Players
                CREATE TABLE IF NOT EXISTS players (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    phone TEXT,
                    community_id TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                -- Competitions
                CREATE TABLE IF NOT EXISTS competitions (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    community_id TEXT NOT NULL,
                    start_date TEXT,
                    created_at TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending'
                );

                -- Games (team1/team2 are JSON arrays of player ids)
                CREATE TABLE IF NOT EXISTS games (
                    id TEXT PRIMARY KEY,
                    competition_id TEXT NOT NULL,
                    team1 JSON NOT NULL,
                    team2 JSON NOT NULL,
                    team1_score INTEGER NOT NULL DEFAULT 0,
                    team2_score INTEGER NOT NULL DEFAULT 0,
                    team1_was_losing_5_0 INTEGER NOT NULL DEFAULT 0,
                    team2_was_losing_5_0 INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'pending',
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (competition_id) REFERENCES competitions(id)
                );

                -- Competition members
                CREATE TABLE IF NOT EXISTS competition_members (
                    id TEXT PRIMARY KEY,
                    competition_id TEXT NOT NULL,
                    player_id TEXT NOT NULL,
                    UNIQUE (competition_id, player_id),
                    FOREIGN KEY (competition_id) REFERENCES competitions(id)
                );

                CREATE INDEX IF NOT EXISTS idx_games_competition ON games(competition_id);
                CREATE INDEX IF NOT EXISTS idx_competitions_community ON competitions(community_id);
                CREATE INDEX IF NOT EXISTS idx_members_competition ON competition_members(competition_id);
            ''')

    # =========================================================================
    # COMPETITIONS
    # =========================================================================

    def save_competition(self, competition: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or update a competition."""
        row = {
            'id': competition.get('id') or str(uuid.uuid4()),
            'name': competition.get('name', ''),
            'description': competition.get('description') or '',
            'community_id': competition.get('community_id'),
            'start_date': competition.get('start_date'),
            'created_at': competition.get('created_at') or datetime.now(timezone.utc).isoformat(),
            'status': competition.get('status') or 'pending',
        }
        with self.transaction() as conn:
            conn.execute('''
                INSERT INTO competitions
                (id, name, description, community_id, start_date, created_at, status)
                VALUES (:id, :name, :description, :community_id, :start_date, :created_at, :status)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    community_id = excluded.community_id,
                    start_date = excluded.start_date,
                    status = excluded.status
            ''', row)
        return self.get_competition(row['id'])

    def get_competition(self, competition_id: str) -> Dict[str, Any]:
        """Get a single competition by ID."""
        rows = self._fetch('SELECT * FROM competitions WHERE id = ?', (competition_id,))
        if not rows:
            raise NotFoundError('competitions', competition_id)
        return dict(rows[0])

    def list_competitions(self, community_id: str) -> List[Dict[str, Any]]:
        """Get competitions of a community, newest first."""
        rows = self._fetch(
            'SELECT * FROM competitions WHERE community_id = ? ORDER BY created_at DESC',
            (community_id,)
        )
        return [dict(row) for row in rows]

    def set_competition_status(self, competition_id: str, status: str) -> Dict[str, Any]:
        """Overwrite the status of a competition."""
        with self.transaction() as conn:
            cursor = conn.execute(
                'UPDATE competitions SET status = ? WHERE id = ?',
                (status, competition_id)
            )
            if cursor.rowcount == 0:
                raise NotFoundError('competitions', competition_id)
        return self.get_competition(competition_id)

    # =========================================================================
    # PLAYERS
    # =========================================================================

    def save_players(self, players: List[Dict[str, Any]]) -> int:
        """Save players to database. Returns count saved."""
        with self.transaction() as conn:
            conn.executemany('''
                INSERT INTO players (id, name, phone, community_id)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    phone = excluded.phone,
                    community_id = excluded.community_id,
                    updated_at = CURRENT_TIMESTAMP
            ''', [
                (
                    p['id'],
                    p.get('name', ''),
                    p.get('phone'),
                    p.get('community_id')
                )
                for p in players
            ])
        return len(players)

    def get_player(self, player_id: str) -> Dict[str, Any]:
        """Get a single player by ID."""
        rows = self._fetch(
            'SELECT id, name, phone, community_id FROM players WHERE id = ?',
            (player_id,)
        )
        if not rows:
            raise NotFoundError('players', player_id)
        return dict(rows[0])

    def get_players(self, player_ids: List[str]) -> List[Dict[str, Any]]:
        """Get players by a list of IDs."""
        if not player_ids:
            return []
        placeholders = ', '.join('?' for _ in player_ids)
        rows = self._fetch(
            f'SELECT id, name, phone, community_id FROM players WHERE id IN ({placeholders})',
            tuple(player_ids)
        )
        return [dict(row) for row in rows]

    # =========================================================================
    # GAMES
    # =========================================================================

    def save_games(self, games: List[Dict[str, Any]]) -> int:
        """Save games to database. Returns count saved."""
        with self.transaction() as conn:
            # ON CONFLICT keeps the rowid, so get_games() ordering survives updates
            conn.executemany('''
                INSERT INTO games
                (id, competition_id, team1, team2, team1_score, team2_score,
                 team1_was_losing_5_0, team2_was_losing_5_0, status)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    team1 = excluded.team1,
                    team2 = excluded.team2,
                    team1_score = excluded.team1_score,
                    team2_score = excluded.team2_score,
                    team1_was_losing_5_0 = excluded.team1_was_losing_5_0,
                    team2_was_losing_5_0 = excluded.team2_was_losing_5_0,
                    status = excluded.status,
                    updated_at = CURRENT_TIMESTAMP
            ''', [
                (
                    g.get('id') or str(uuid.uuid4()),
                    g['competition_id'],
                    json.dumps(g.get('team1', [])),
                    json.dumps(g.get('team2', [])),
                    g.get('team1_score', 0),
                    g.get('team2_score', 0),
                    int(bool(g.get('team1_was_losing_5_0'))),
                    int(bool(g.get('team2_was_losing_5_0'))),
                    g.get('status', 'pending')
                )
                for g in games
            ])
        return len(games)

    def get_games(self, competition_id: str) -> List[Dict[str, Any]]:
        """Get games of a competition in insertion order."""
        rows = self._fetch(
            "SELECT * FROM games WHERE competition_id = ? ORDER BY rowid",
            (competition_id,)
        )
        return [self._row_to_game(row) for row in rows]

    def _row_to_game(self, row: sqlite3.Row) -> GameDict:
        """Convert database row to game dict."""
        return {
            'id': row['id'],
            'competition_id': row['competition_id'],
            'team1': json.loads(row['team1']),
            'team2': json.loads(row['team2']),
            'team1_score': row['team1_score'],
            'team2_score': row['team2_score'],
            'team1_was_losing_5_0': bool(row['team1_was_losing_5_0']),
            'team2_was_losing_5_0': bool(row['team2_was_losing_5_0']),
            'status': row['status']
        }

    # =========================================================================
    # MEMBERS
    # =========================================================================

    def add_member(self, competition_id: str, player_id: str) -> Dict[str, Any]:
        """Enroll a player in a competition (idempotent)."""
        with self.transaction() as conn:
            conn.execute('''
                INSERT OR IGNORE INTO competition_members (id, competition_id, player_id)
                VALUES (?, ?, ?)
            ''', (str(uuid.uuid4()), competition_id, player_id))
        rows = self._fetch(
            'SELECT * FROM competition_members WHERE competition_id = ? AND player_id = ?',
            (competition_id, player_id)
        )
        return dict(rows[0])

    def remove_member(self, competition_id: str, player_id: str) -> None:
        """Remove a player from a competition."""
        with self.transaction() as conn:
            conn.execute(
                'DELETE FROM competition_members WHERE competition_id = ? AND player_id = ?',
                (competition_id, player_id)
            )

    def get_members(self, competition_id: str) -> List[Dict[str, Any]]:
        """Get membership rows of a competition."""
        rows = self._fetch(
            'SELECT * FROM competition_members WHERE competition_id = ? ORDER BY rowid',
            (competition_id,)
        )
        return [dict(row) for row in rows]

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def clear_all(self) -> None:
        """Clear all data from database."""
        with self.transaction() as conn:
            for table in ['competition_members', 'games', 'competitions', 'players']:
                conn.execute(f'DELETE FROM {table}')
