"""Player data model."""

from typing import Optional
from pydantic import BaseModel, Field


class Player(BaseModel):
    """Represents a domino player."""

    id: str
    name: str
    phone: Optional[str] = None
    community_id: Optional[str] = Field(default=None, alias="communityId")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
