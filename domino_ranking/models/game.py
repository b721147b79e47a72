"""Game data model."""

from enum import Enum
from pydantic import BaseModel, Field, model_validator

# Joins the sorted player ids of a team into its pair key.
PAIR_KEY_SEPARATOR = "_"


class GameStatus(str, Enum):
    """Lifecycle of a single game."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Game(BaseModel):
    """Represents one domino game between two teams."""

    id: str
    competition_id: str = Field(..., alias="competitionId")
    team1: list[str] = Field(..., min_length=1, max_length=2)
    team2: list[str] = Field(..., min_length=1, max_length=2)
    team1_score: int = Field(default=0, ge=0, le=6, alias="team1Score")
    team2_score: int = Field(default=0, ge=0, le=6, alias="team2Score")

    # Recorded by the live game when it ends; cannot be derived from the score.
    team1_was_losing_5_0: bool = Field(default=False, alias="team1WasLosing5_0")
    team2_was_losing_5_0: bool = Field(default=False, alias="team2WasLosing5_0")

    status: GameStatus = GameStatus.PENDING

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @model_validator(mode="after")
    def check_players(self) -> "Game":
        """
        Reject rosters the standings cannot count.

        A player may appear only once across both teams, and no player id
        may contain the pair key separator (two different teams would
        otherwise share a pair key).
        """
        players = [*self.team1, *self.team2]
        if len(set(players)) != len(players):
            raise ValueError(f"Game {self.id} lists a player more than once")
        for player_id in players:
            if PAIR_KEY_SEPARATOR in player_id:
                raise ValueError(
                    f"Player id {player_id!r} contains {PAIR_KEY_SEPARATOR!r}"
                )
        return self

    @property
    def is_finished(self) -> bool:
        """Check if the game counts towards standings."""
        return self.status == GameStatus.FINISHED
