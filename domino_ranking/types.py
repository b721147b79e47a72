"""
Type definitions for the domino ranking application.

Provides TypedDict classes for the rows read from storage and the JSON
returned by the API.
"""

from typing import TypedDict, Optional, List


class GameDict(TypedDict):
    """
    Game row.

    team1/team2 hold player ids. Scores are 0 until the game finishes.
    """
    id: str
    competition_id: str
    team1: List[str]
    team2: List[str]
    team1_score: int
    team2_score: int
    team1_was_losing_5_0: bool
    team2_was_losing_5_0: bool
    status: str  # pending, in_progress, finished


class PlayerStandingDict(TypedDict):
    """Player leaderboard entry as returned by the API."""
    id: str
    name: str
    score: int
    wins: int
    losses: int
    buchudas: int
    buchudasDeRe: int
    position: Optional[int]


class PairStandingDict(TypedDict):
    """Pair leaderboard entry as returned by the API."""
    players: List[str]
    score: int
    wins: int
    losses: int
    buchudas: int
    buchudasDeRe: int
    position: Optional[int]


class CompetitionResultDict(TypedDict):
    """Response from the finish and results endpoints."""
    competitionId: str
    players: List[PlayerStandingDict]
    pairs: List[PairStandingDict]


class CanFinishResponseDict(TypedDict):
    """Response from /api/competitions/{id}/can-finish."""
    competitionId: str
    canFinish: bool
