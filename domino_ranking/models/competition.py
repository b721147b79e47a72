"""Competition data models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from domino_ranking.models.player import Player


class CompetitionStatus(str, Enum):
    """Competition lifecycle: pending -> in_progress -> finished."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Competition(BaseModel):
    """Represents a competition inside a community."""

    id: str
    name: str
    description: str = ""
    community_id: str = Field(..., alias="communityId")
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    status: CompetitionStatus = CompetitionStatus.PENDING

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    def is_finished(self) -> bool:
        """Check if results can be read for this competition."""
        return self.status == CompetitionStatus.FINISHED


class CompetitionMember(BaseModel):
    """A player enrolled in a competition."""

    id: str
    competition_id: str = Field(..., alias="competitionId")
    player_id: str = Field(..., alias="playerId")
    player: Optional[Player] = None

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class StandingStats(BaseModel):
    """Counters shared by player and pair standings."""

    score: int = 0
    wins: int = 0
    losses: int = 0
    buchudas: int = 0
    buchudas_de_re: int = Field(default=0, alias="buchudasDeRe")
    position: Optional[int] = None

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @property
    def games_played(self) -> int:
        return self.wins + self.losses


class PlayerStanding(StandingStats):
    """One row of the player leaderboard."""

    id: str
    name: str


class PairStanding(StandingStats):
    """One row of the pair leaderboard."""

    players: list[str]


class CompetitionResult(BaseModel):
    """Final leaderboards of a competition."""

    competition_id: str = Field(..., alias="competitionId")
    players: list[PlayerStanding] = []
    pairs: list[PairStanding] = []

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
