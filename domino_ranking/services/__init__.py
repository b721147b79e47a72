"""Services for the domino ranking application."""

from domino_ranking.services.cache import ResultsCache
from domino_ranking.services.competition_service import CompetitionService
from domino_ranking.services.exceptions import InvalidStateError

__all__ = ["CompetitionService", "InvalidStateError", "ResultsCache"]
