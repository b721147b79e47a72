"""
Abstract base class defining the database interface.

All database implementations must inherit from this class and implement
all abstract methods. This ensures consistent behavior across backends.

The ranking service only depends on three of these methods, which form its
collaborator contracts:
- get_games(competition_id): the game reader
- get_player(player_id): the player reader
- set_competition_status(competition_id, status): the competition writer
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any


class DatabaseInterface(ABC):
    """
    Abstract interface for domino competition storage.

    All methods must be implemented by concrete database classes.
    Methods should be thread-safe where applicable.
    """

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    def initialize(self) -> None:
        """
        Initialize the database connection and schema.

        Called once when the database is first created.
        Should create tables if they don't exist.
        Should be idempotent (safe to call multiple times).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close database connections and clean up resources.

        Should be called when the application shuts down.
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the database connection is healthy.

        Returns:
            True if database is accessible, False otherwise
        """
        pass

    # =========================================================================
    # COMPETITIONS
    # =========================================================================

    @abstractmethod
    def save_competition(self, competition: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert or update a competition.

        Args:
            competition: Competition row. 'id' is generated when missing,
                         'created_at' defaults to now (UTC),
                         'status' defaults to 'pending'.

        Returns:
            The stored competition row

        Raises:
            WriteError: If the write fails
        """
        pass

    @abstractmethod
    def get_competition(self, competition_id: str) -> Dict[str, Any]:
        """
        Get a single competition.

        Raises:
            NotFoundError: If no competition has this id
            DataFetchError: If the read fails
        """
        pass

    @abstractmethod
    def list_competitions(self, community_id: str) -> List[Dict[str, Any]]:
        """
        Get competitions of a community, newest first (by created_at).

        Raises:
            DataFetchError: If the read fails
        """
        pass

    @abstractmethod
    def set_competition_status(self, competition_id: str, status: str) -> Dict[str, Any]:
        """
        Update the status of a competition.

        No compare-and-set: the status is overwritten unconditionally.

        Args:
            competition_id: The competition to update
            status: pending, in_progress or finished

        Returns:
            The updated competition row

        Raises:
            NotFoundError: If no competition has this id
            WriteError: If the update fails
        """
        pass

    # =========================================================================
    # PLAYERS
    # =========================================================================

    @abstractmethod
    def save_players(self, players: List[Dict[str, Any]]) -> int:
        """
        Save or update players (upsert by id).

        Returns:
            Number of players saved

        Raises:
            WriteError: If the write fails
        """
        pass

    @abstractmethod
    def get_player(self, player_id: str) -> Dict[str, Any]:
        """
        Get a single player.

        Raises:
            NotFoundError: If no player has this id
            DataFetchError: If the read fails
        """
        pass

    @abstractmethod
    def get_players(self, player_ids: List[str]) -> List[Dict[str, Any]]:
        """
        Get all players whose id is in player_ids.

        Unknown ids are silently absent from the result.

        Raises:
            DataFetchError: If the read fails
        """
        pass

    # =========================================================================
    # GAMES
    # =========================================================================

    @abstractmethod
    def save_games(self, games: List[Dict[str, Any]]) -> int:
        """
        Save or update games (upsert by id).

        Updating an existing game must not change its position in
        get_games() ordering.

        Returns:
            Number of games saved

        Raises:
            WriteError: If the write fails
        """
        pass

    @abstractmethod
    def get_games(self, competition_id: str) -> List[Dict[str, Any]]:
        """
        Get games of a competition regardless of status.

        The order is stable across calls (insertion order). Standings
        tie-breaks depend on it.

        Args:
            competition_id: The competition to filter by

        Raises:
            DataFetchError: If the read fails
        """
        pass

    # =========================================================================
    # MEMBERS
    # =========================================================================

    @abstractmethod
    def add_member(self, competition_id: str, player_id: str) -> Dict[str, Any]:
        """
        Enroll a player in a competition.

        Returns:
            The membership row

        Raises:
            WriteError: If the write fails
        """
        pass

    @abstractmethod
    def remove_member(self, competition_id: str, player_id: str) -> None:
        """
        Remove a player from a competition. No-op if not enrolled.

        Raises:
            WriteError: If the delete fails
        """
        pass

    @abstractmethod
    def get_members(self, competition_id: str) -> List[Dict[str, Any]]:
        """
        Get membership rows of a competition.

        Raises:
            DataFetchError: If the read fails
        """
        pass

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    @abstractmethod
    def clear_all(self) -> None:
        """
        Delete all data from the database.

        Used for testing. Does not drop tables/schema, just data.
        """
        pass
