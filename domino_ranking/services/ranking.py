"""
Ranking engine for domino competitions.

Turns the games of a competition into player and pair standings:

- can_finish(): may the competition move to "finished"?
- aggregate(): fold finished games into per-player and per-pair counters
- sort_standings(): order standings by wins, losses, score, buchudas
  and buchudas de ré
- assign_positions(): displayed rank numbers with ties ("1, 1, 3, 4")

Everything here is pure and synchronous. Fetching games, resolving player
names and persisting the competition status live in CompetitionService.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Hashable, Iterable, Optional, Sequence, TypeVar

from domino_ranking.models import PAIR_KEY_SEPARATOR, Game, GameStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Maximum points in a game; a 6-0 win is a buchuda.
WINNING_SCORE = 6

UNFINISHED_STATUSES = (GameStatus.PENDING, GameStatus.IN_PROGRESS)


@dataclass
class PairStats:
    """Counters for one pair (or solo player team) over a competition."""

    players: tuple[str, ...] = ()
    score: int = 0
    wins: int = 0
    losses: int = 0
    buchudas: int = 0
    buchudas_de_re: int = 0


@dataclass
class PlayerStats:
    """Counters for one player over a competition."""

    score: int = 0
    wins: int = 0
    losses: int = 0
    buchudas: int = 0
    buchudas_de_re: int = 0
    # Pair keys the player has been part of. Not part of the result.
    pairs: set[str] = field(default_factory=set)


def pair_key(team: Iterable[str]) -> str:
    """
    Canonical key of a team: player ids sorted and joined with "_".

    The key is only unambiguous while no id contains the separator, which
    Game validation guarantees.
    """
    return PAIR_KEY_SEPARATOR.join(sorted(team))


def can_finish(games: Sequence[Game]) -> bool:
    """
    Check if a competition with these games may be finished.

    Requires at least one finished game and no pending or in-progress game.
    An empty competition can never be finished.
    """
    if not games:
        return False

    has_finished = any(g.status == GameStatus.FINISHED for g in games)
    has_unfinished = any(g.status in UNFINISHED_STATUSES for g in games)
    return has_finished and not has_unfinished


def aggregate(games: Iterable[Game]) -> tuple[dict[str, PlayerStats], dict[str, PairStats]]:
    """
    Fold finished games into player and pair counters.

    Games that are not finished are ignored. Both mappings keep the order in
    which players and pairs first appear, which is the final tie-break of
    sort_standings().

    Returns:
        Tuple of (player id -> PlayerStats, pair key -> PairStats)
    """
    players: dict[str, PlayerStats] = {}
    pairs: dict[str, PairStats] = {}

    for game in games:
        if game.status != GameStatus.FINISHED:
            continue

        for player_id in [*game.team1, *game.team2]:
            if player_id not in players:
                players[player_id] = PlayerStats()

        team1_key = pair_key(game.team1)
        team2_key = pair_key(game.team2)
        if team1_key not in pairs:
            pairs[team1_key] = PairStats(players=tuple(sorted(game.team1)))
        if team2_key not in pairs:
            pairs[team2_key] = PairStats(players=tuple(sorted(game.team2)))

        for player_id in game.team1:
            players[player_id].pairs.add(team1_key)
        for player_id in game.team2:
            players[player_id].pairs.add(team2_key)

        if game.team1_score == game.team2_score:
            # Real games always have a winner; a tie falls through to team2.
            logger.warning(
                "Finished game %s is tied %d-%d, counting it as a team2 win",
                game.id, game.team1_score, game.team2_score
            )

        if game.team1_score > game.team2_score:
            winners, losers = game.team1, game.team2
            winner_key, loser_key = team1_key, team2_key
            winning_score, losing_score = game.team1_score, game.team2_score
            came_back = game.team1_was_losing_5_0
        else:
            winners, losers = game.team2, game.team1
            winner_key, loser_key = team2_key, team1_key
            winning_score, losing_score = game.team2_score, game.team1_score
            came_back = game.team2_was_losing_5_0

        winner_stats = [players[p] for p in winners] + [pairs[winner_key]]
        loser_stats = [players[p] for p in losers] + [pairs[loser_key]]

        for stats in winner_stats:
            stats.wins += 1
            stats.score += winning_score
        for stats in loser_stats:
            stats.losses += 1
            stats.score += losing_score

        if winning_score == WINNING_SCORE and losing_score == 0:
            for stats in winner_stats:
                stats.buchudas += 1

        # Only the winner's comeback counts
        if came_back:
            for stats in winner_stats:
                stats.buchudas_de_re += 1

        logger.debug(
            "Game %s: %s beat %s %d-%d",
            game.id, winner_key, loser_key, winning_score, losing_score
        )

    return players, pairs


def standing_key(entry) -> tuple[int, int, int, int, int]:
    """
    Sort key for a standing: best first.

    Works on anything with wins, losses, score, buchudas and
    buchudas_de_re attributes.
    """
    return (
        -entry.wins,
        entry.losses,
        -entry.score,
        -entry.buchudas,
        -entry.buchudas_de_re,
    )


def sort_standings(entries: Iterable[T]) -> list[T]:
    """
    Order standings from best to worst.

    1. More wins
    2. Fewer losses
    3. More points
    4. More buchudas
    5. More buchudas de ré

    The sort is stable: entries equal on all five keep their input order.
    """
    return sorted(entries, key=standing_key)


def assign_positions(
    entries: Sequence[T],
    key: Optional[Callable[[T], Hashable]] = None
) -> list[int]:
    """
    Displayed rank numbers for an already sorted leaderboard.

    Entry i gets i + 1 unless its key equals the previous entry's key, in
    which case it shares the rank of the first entry of that tie run.
    Example: keys [a, a, b, c] -> [1, 1, 3, 4].

    Args:
        entries: Sorted standings
        key: Tie key, defaults to standing_key

    Returns:
        One position per entry
    """
    key = key or standing_key
    positions: list[int] = []

    previous = None

    for index, entry in enumerate(entries):
        current = key(entry)
        if index > 0 and current == previous:
            positions.append(positions[index - 1])
        else:
            positions.append(index + 1)
        previous = current

    return positions
