"""Data models for the domino ranking application."""

from domino_ranking.models.competition import (
    Competition,
    CompetitionMember,
    CompetitionResult,
    CompetitionStatus,
    PairStanding,
    PlayerStanding,
)
from domino_ranking.models.game import PAIR_KEY_SEPARATOR, Game, GameStatus
from domino_ranking.models.player import Player

__all__ = [
    "Competition",
    "CompetitionMember",
    "CompetitionResult",
    "CompetitionStatus",
    "PairStanding",
    "PlayerStanding",
    "Game",
    "GameStatus",
    "PAIR_KEY_SEPARATOR",
    "Player",
]
