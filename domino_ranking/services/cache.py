"""In-memory cache of computed competition results."""

import threading
from typing import Optional

from cachetools import TTLCache

from domino_ranking import config
from domino_ranking.models import CompetitionResult


class ResultsCache:
    """Thread-safe TTL cache of results, keyed by competition id.

    Only results of finished competitions belong here: their games are
    immutable, so a cached result never goes stale before its TTL.
    """

    def __init__(
        self,
        maxsize: Optional[int] = None,
        ttl: Optional[int] = None
    ) -> None:
        """Initialize the cache store."""
        self._cache: TTLCache = TTLCache(
            maxsize=maxsize or config.RESULTS_CACHE_MAXSIZE,
            ttl=ttl or config.RESULTS_CACHE_TTL_SECONDS,
        )
        self._lock = threading.RLock()

    def get(self, competition_id: str) -> Optional[CompetitionResult]:
        """Get a cached result.

        Returns:
            Cached result or None if not found/expired
        """
        with self._lock:
            return self._cache.get(competition_id)

    def set(self, competition_id: str, result: CompetitionResult) -> None:
        """Store the result of a finished competition."""
        with self._lock:
            self._cache[competition_id] = result

    def delete(self, competition_id: str) -> bool:
        """Drop a cached result.

        Returns:
            True if key was deleted, False if not found
        """
        with self._lock:
            if competition_id in self._cache:
                del self._cache[competition_id]
                return True
            return False

    def clear(self) -> None:
        """Drop every cached result."""
        with self._lock:
            self._cache.clear()

    def stats(self) -> dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._cache),
                "maxsize": int(self._cache.maxsize),
            }
