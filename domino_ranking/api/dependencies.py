"""FastAPI dependencies for dependency injection."""

from typing import Optional

from domino_ranking.services.competition_service import CompetitionService

_competition_service: Optional[CompetitionService] = None


def get_competition_service() -> CompetitionService:
    """Get the shared competition service dependency."""
    global _competition_service
    if _competition_service is None:
        _competition_service = CompetitionService()
    return _competition_service


def reset_competition_service() -> None:
    """Drop the shared service (used by tests and config switches)."""
    global _competition_service
    _competition_service = None
