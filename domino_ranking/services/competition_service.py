"""
Competition Service - Lifecycle and final standings of competitions.

Wraps the storage backend with async operations. Each storage call runs in
a worker thread, so the service suspends at every read and write while the
ranking itself (services.ranking) stays pure and synchronous.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from domino_ranking import config
from domino_ranking.models import (
    Competition,
    CompetitionMember,
    CompetitionResult,
    CompetitionStatus,
    Game,
    PairStanding,
    Player,
    PlayerStanding,
)
from domino_ranking.services import ranking
from domino_ranking.services.cache import ResultsCache
from domino_ranking.services.exceptions import InvalidStateError
from domino_ranking.storage import DatabaseInterface, get_database

logger = logging.getLogger(__name__)


class CompetitionService:
    """
    Service layer for competitions.

    Reads games and players through the DatabaseInterface, computes
    standings with the ranking engine and persists status transitions.
    """

    def __init__(
        self,
        db: Optional[DatabaseInterface] = None,
        cache: Optional[ResultsCache] = None
    ):
        # Get database from factory (respects DB_TYPE env var)
        self.db: DatabaseInterface = db or get_database()

        if cache is None and config.RESULTS_CACHE_ENABLED:
            cache = ResultsCache()
        self.cache = cache

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking storage call without blocking the event loop."""
        return await asyncio.to_thread(func, *args)

    async def health_check(self) -> bool:
        """Check that the storage backend answers."""
        return await self._run(self.db.health_check)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def create_competition(
        self,
        name: str,
        community_id: str,
        description: str = ""
    ) -> Competition:
        """Create a pending competition starting now."""
        row = await self._run(self.db.save_competition, {
            'name': name,
            'description': description,
            'community_id': community_id,
            'start_date': datetime.now(timezone.utc).isoformat(),
            'status': CompetitionStatus.PENDING.value,
        })
        competition = Competition.model_validate(row)
        logger.info(f"Created competition {competition.id} in community {community_id}")
        return competition

    async def list_competitions(self, community_id: str) -> List[Competition]:
        """Get competitions of a community, newest first."""
        rows = await self._run(self.db.list_competitions, community_id)
        return [Competition.model_validate(row) for row in rows]

    async def get_competition(self, competition_id: str) -> Competition:
        """Get a competition. Raises NotFoundError if it does not exist."""
        row = await self._run(self.db.get_competition, competition_id)
        return Competition.model_validate(row)

    async def start_competition(self, competition_id: str) -> Competition:
        """
        Move a competition to in_progress.

        Also reopens a finished competition, so its cached results are
        dropped.
        """
        row = await self._run(
            self.db.set_competition_status,
            competition_id,
            CompetitionStatus.IN_PROGRESS.value
        )
        if self.cache is not None:
            self.cache.delete(competition_id)
        logger.info(f"Started competition {competition_id}")
        return Competition.model_validate(row)

    # =========================================================================
    # MEMBERS
    # =========================================================================

    async def add_member(self, competition_id: str, player_id: str) -> CompetitionMember:
        """Enroll a player in a competition."""
        row = await self._run(self.db.add_member, competition_id, player_id)
        return CompetitionMember.model_validate(row)

    async def remove_member(self, competition_id: str, player_id: str) -> None:
        """Remove a player from a competition."""
        await self._run(self.db.remove_member, competition_id, player_id)

    async def list_members(self, competition_id: str) -> List[CompetitionMember]:
        """
        Get the members of a competition with their players.

        Members whose player no longer exists are left out.
        """
        members = await self._run(self.db.get_members, competition_id)
        if not members:
            return []

        player_rows = await self._run(
            self.db.get_players, [m['player_id'] for m in members]
        )
        players = {row['id']: Player.model_validate(row) for row in player_rows}

        return [
            CompetitionMember.model_validate({**member, 'player': players[member['player_id']]})
            for member in members
            if member['player_id'] in players
        ]

    # =========================================================================
    # GAMES & STANDINGS
    # =========================================================================

    async def get_games(self, competition_id: str) -> List[Game]:
        """Get all games of a competition, any status."""
        rows = await self._run(self.db.get_games, competition_id)
        return [Game.model_validate(row) for row in rows]

    async def can_finish_competition(self, competition_id: str) -> bool:
        """
        Check if a competition may be finished.

        True when it has at least one finished game and none pending or
        in progress. The answer is only valid for the snapshot read here.
        """
        games = await self.get_games(competition_id)
        return ranking.can_finish(games)

    async def finish_competition(self, competition_id: str) -> CompetitionResult:
        """
        Compute final standings and mark the competition as finished.

        The status is written last: if reading games or any player fails,
        nothing is written. If the status write itself fails the error
        propagates and the whole call can be retried.

        Raises:
            DataFetchError: Reading games or players failed
            NotFoundError: A player or the competition does not exist
            WriteError: Persisting the finished status failed
        """
        result = await self._compute_result(competition_id)

        await self._run(
            self.db.set_competition_status,
            competition_id,
            CompetitionStatus.FINISHED.value
        )
        logger.info(
            f"Finished competition {competition_id}: "
            f"{len(result.players)} players, {len(result.pairs)} pairs"
        )

        if self.cache is not None:
            self.cache.set(competition_id, result)
        return result

    async def get_competition_results(self, competition_id: str) -> CompetitionResult:
        """
        Get the standings of a finished competition.

        Raises:
            InvalidStateError: The competition is not finished
            NotFoundError: The competition does not exist
        """
        competition = await self.get_competition(competition_id)
        if not competition.is_finished():
            raise InvalidStateError(
                competition_id,
                competition.status.value,
                CompetitionStatus.FINISHED.value
            )

        if self.cache is not None:
            cached = self.cache.get(competition_id)
            if cached is not None:
                logger.debug(f"Returning cached results for {competition_id}")
                return cached

        result = await self._compute_result(competition_id)
        if self.cache is not None:
            self.cache.set(competition_id, result)
        return result

    async def _compute_result(self, competition_id: str) -> CompetitionResult:
        """Fold the games and build both sorted leaderboards."""
        games = await self.get_games(competition_id)
        player_stats, pair_stats = ranking.aggregate(games)

        names = await self._resolve_names(list(player_stats))

        players = ranking.sort_standings(
            PlayerStanding(
                id=player_id,
                name=names[player_id],
                score=stats.score,
                wins=stats.wins,
                losses=stats.losses,
                buchudas=stats.buchudas,
                buchudas_de_re=stats.buchudas_de_re,
            )
            for player_id, stats in player_stats.items()
        )
        pairs = ranking.sort_standings(
            PairStanding(
                players=list(stats.players),
                score=stats.score,
                wins=stats.wins,
                losses=stats.losses,
                buchudas=stats.buchudas,
                buchudas_de_re=stats.buchudas_de_re,
            )
            for stats in pair_stats.values()
        )

        for standings in (players, pairs):
            for entry, position in zip(standings, ranking.assign_positions(standings)):
                entry.position = position

        return CompetitionResult(
            competition_id=competition_id,
            players=players,
            pairs=pairs,
        )

    async def _resolve_names(self, player_ids: List[str]) -> Dict[str, str]:
        """
        Look up display names, one concurrent lookup per player.

        Any failed lookup fails the whole call.
        """
        rows = await asyncio.gather(
            *(self._run(self.db.get_player, player_id) for player_id in player_ids)
        )
        return {
            player_id: Player.model_validate(row).name
            for player_id, row in zip(player_ids, rows)
        }
