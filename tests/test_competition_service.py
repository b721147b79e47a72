"""Tests for CompetitionService."""

import threading

import pytest
from pydantic import ValidationError
from unittest.mock import Mock

from domino_ranking.models import CompetitionStatus
from domino_ranking.services.cache import ResultsCache
from domino_ranking.services.competition_service import CompetitionService
from domino_ranking.services.exceptions import InvalidStateError
from domino_ranking.storage import (
    DatabaseInterface,
    DataFetchError,
    NotFoundError,
    WriteError,
)


def _mock_db(games=None, players=None, status='in_progress') -> Mock:
    """DatabaseInterface mock serving fixed games and players."""
    players = players or {}
    db = Mock(spec=DatabaseInterface)
    db.get_games.return_value = games or []
    db.get_competition.return_value = {
        'id': 'comp_1',
        'name': 'Mock',
        'community_id': 'community_1',
        'status': status,
    }

    def get_player(player_id):
        if player_id not in players:
            raise NotFoundError('players', player_id)
        return {'id': player_id, 'name': players[player_id]}

    db.get_player.side_effect = get_player
    db.set_competition_status.return_value = {
        'id': 'comp_1',
        'name': 'Mock',
        'community_id': 'community_1',
        'status': 'finished',
    }
    return db


class TestCanFinishCompetition:
    """Tests for can_finish_competition."""

    @pytest.mark.asyncio
    async def test_finished_games(self, service):
        """All games finished: can finish."""
        assert await service.can_finish_competition('comp_1') is True

    @pytest.mark.asyncio
    async def test_open_game_blocks(self, service, seeded_db):
        """A pending game blocks finishing."""
        seeded_db.save_games([{
            'id': 'game_3',
            'competition_id': 'comp_1',
            'team1': ['p1', 'p3'],
            'team2': ['p2', 'p4'],
            'status': 'pending',
        }])

        assert await service.can_finish_competition('comp_1') is False

    @pytest.mark.asyncio
    async def test_no_games(self, service, seeded_db):
        """A competition without games cannot finish."""
        seeded_db.save_competition({
            'id': 'comp_empty', 'name': 'Empty', 'community_id': 'community_1'
        })

        assert await service.can_finish_competition('comp_empty') is False


class TestFinishCompetition:
    """Tests for finish_competition."""

    @pytest.mark.asyncio
    async def test_standings(self, service):
        """Players and pairs are aggregated, named and sorted."""
        result = await service.finish_competition('comp_1')

        assert [p.name for p in result.players] == ['Bruno', 'Ana', 'Carla', 'Diego']
        ana = next(p for p in result.players if p.id == 'p1')
        assert (ana.wins, ana.losses, ana.score) == (2, 0, 12)
        assert (ana.buchudas, ana.buchudas_de_re) == (1, 1)
        assert ana.position == 1

        carla = next(p for p in result.players if p.id == 'p3')
        assert (carla.wins, carla.losses, carla.score) == (0, 2, 4)
        assert carla.position == 3

        assert [pair.players for pair in result.pairs] == [['p1', 'p2'], ['p3', 'p4']]
        assert result.pairs[0].wins == 2
        assert result.pairs[0].buchudas == 1
        assert [pair.position for pair in result.pairs] == [1, 2]

    @pytest.mark.asyncio
    async def test_marks_finished(self, service, seeded_db):
        """The competition status becomes finished."""
        await service.finish_competition('comp_1')

        assert seeded_db.get_competition('comp_1')['status'] == 'finished'

    @pytest.mark.asyncio
    async def test_json_uses_camel_case(self, service):
        """Serialized result keeps the buchudasDeRe field name."""
        result = await service.finish_competition('comp_1')

        data = result.model_dump(by_alias=True)
        assert data['competitionId'] == 'comp_1'
        assert data['players'][0]['buchudasDeRe'] == 1

    @pytest.mark.asyncio
    async def test_unknown_player_fails_without_writing(self):
        """A failed name lookup fails the call and leaves the status alone."""
        db = _mock_db(
            games=[{
                'id': 'g1', 'competition_id': 'comp_1',
                'team1': ['p1', 'p2'], 'team2': ['p3', 'ghost'],
                'team1_score': 6, 'team2_score': 2, 'status': 'finished',
            }],
            players={'p1': 'Ana', 'p2': 'Bruno', 'p3': 'Carla'},
        )
        service = CompetitionService(db=db, cache=ResultsCache())

        with pytest.raises(NotFoundError):
            await service.finish_competition('comp_1')

        db.set_competition_status.assert_not_called()
        assert service.cache.get('comp_1') is None

    @pytest.mark.asyncio
    async def test_player_on_both_teams_fails_without_writing(self):
        """A stored game listing a player twice is rejected before counting."""
        db = _mock_db(
            games=[{
                'id': 'g1', 'competition_id': 'comp_1',
                'team1': ['p1', 'p2'], 'team2': ['p1', 'p3'],
                'team1_score': 6, 'team2_score': 2, 'status': 'finished',
            }],
            players={'p1': 'Ana', 'p2': 'Bruno', 'p3': 'Carla'},
        )
        service = CompetitionService(db=db, cache=ResultsCache())

        with pytest.raises(ValidationError):
            await service.finish_competition('comp_1')

        db.get_player.assert_not_called()
        db.set_competition_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_games_fetch_error_propagates(self):
        """A failed games read propagates and nothing is written."""
        db = _mock_db()
        db.get_games.side_effect = DataFetchError("connection reset")
        service = CompetitionService(db=db, cache=ResultsCache())

        with pytest.raises(DataFetchError):
            await service.finish_competition('comp_1')

        db.set_competition_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_status_write_error_propagates(self):
        """A failed status write surfaces as WriteError and is not cached."""
        db = _mock_db(
            games=[{
                'id': 'g1', 'competition_id': 'comp_1',
                'team1': ['p1'], 'team2': ['p2'],
                'team1_score': 6, 'team2_score': 0, 'status': 'finished',
            }],
            players={'p1': 'Ana', 'p2': 'Bruno'},
        )
        db.set_competition_status.side_effect = WriteError("timeout")
        service = CompetitionService(db=db, cache=ResultsCache())

        with pytest.raises(WriteError):
            await service.finish_competition('comp_1')

        assert service.cache.get('comp_1') is None

    @pytest.mark.asyncio
    async def test_retry_after_write_error(self):
        """Retrying a failed finish gives the same standings."""
        db = _mock_db(
            games=[{
                'id': 'g1', 'competition_id': 'comp_1',
                'team1': ['p1'], 'team2': ['p2'],
                'team1_score': 6, 'team2_score': 3, 'status': 'finished',
            }],
            players={'p1': 'Ana', 'p2': 'Bruno'},
        )
        db.set_competition_status.side_effect = [WriteError("timeout"), {
            'id': 'comp_1', 'name': 'Mock', 'community_id': 'community_1',
            'status': 'finished',
        }]
        service = CompetitionService(db=db, cache=None)

        with pytest.raises(WriteError):
            await service.finish_competition('comp_1')
        result = await service.finish_competition('comp_1')

        assert [p.id for p in result.players] == ['p1', 'p2']
        assert db.set_competition_status.call_count == 2

    @pytest.mark.asyncio
    async def test_one_lookup_per_player(self):
        """Each distinct player is looked up exactly once."""
        db = _mock_db(
            games=[
                {
                    'id': f'g{i}', 'competition_id': 'comp_1',
                    'team1': ['p1', 'p2'], 'team2': ['p3', 'p4'],
                    'team1_score': 6, 'team2_score': i, 'status': 'finished',
                }
                for i in range(4)
            ],
            players={'p1': 'Ana', 'p2': 'Bruno', 'p3': 'Carla', 'p4': 'Diego'},
        )
        service = CompetitionService(db=db, cache=None)

        await service.finish_competition('comp_1')

        looked_up = sorted(call.args[0] for call in db.get_player.call_args_list)
        assert looked_up == ['p1', 'p2', 'p3', 'p4']


class TestGetCompetitionResults:
    """Tests for get_competition_results."""

    @pytest.mark.asyncio
    async def test_not_finished_raises_before_aggregation(self):
        """Unfinished competition: InvalidStateError, games never read."""
        db = _mock_db(status='in_progress')
        service = CompetitionService(db=db, cache=None)

        with pytest.raises(InvalidStateError) as exc_info:
            await service.get_competition_results('comp_1')

        assert exc_info.value.status == 'in_progress'
        db.get_games.assert_not_called()

    @pytest.mark.asyncio
    async def test_finished_returns_results(self, service, seeded_db):
        """Finished competition: standings are recomputed."""
        seeded_db.set_competition_status('comp_1', 'finished')

        result = await service.get_competition_results('comp_1')

        assert result.players[0].wins == 2
        assert len(result.pairs) == 2

    @pytest.mark.asyncio
    async def test_uses_cached_result(self, service, seeded_db):
        """Results of a finish are served from the cache."""
        finished = await service.finish_competition('comp_1')
        seeded_db.clear_all()
        seeded_db.save_competition({
            'id': 'comp_1', 'name': 'Again', 'community_id': 'community_1',
            'status': 'finished',
        })

        result = await service.get_competition_results('comp_1')

        assert result is finished

    @pytest.mark.asyncio
    async def test_missing_competition(self, service):
        """Unknown competition raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.get_competition_results('nope')


class TestLifecycle:
    """Tests for competition lifecycle operations."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, service):
        """New competitions start pending and are listed newest first."""
        first = await service.create_competition('Liga', 'community_9')
        second = await service.create_competition('Copa', 'community_9', 'Mata-mata')

        assert first.status == CompetitionStatus.PENDING
        assert first.start_date is not None
        assert second.description == 'Mata-mata'

        listed = await service.list_competitions('community_9')
        assert {c.id for c in listed} == {first.id, second.id}
        assert listed[0].created_at >= listed[1].created_at

    @pytest.mark.asyncio
    async def test_start(self, service):
        """Starting moves the competition to in_progress."""
        competition = await service.create_competition('Liga', 'community_9')

        started = await service.start_competition(competition.id)

        assert started.status == CompetitionStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_start_missing(self, service):
        """Starting an unknown competition raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.start_competition('nope')

    @pytest.mark.asyncio
    async def test_reopen_drops_cached_results(self, service):
        """Restarting a finished competition invalidates its results."""
        await service.finish_competition('comp_1')
        assert service.cache.get('comp_1') is not None

        started = await service.start_competition('comp_1')

        assert started.status == CompetitionStatus.IN_PROGRESS
        assert service.cache.get('comp_1') is None
        with pytest.raises(InvalidStateError):
            await service.get_competition_results('comp_1')

    @pytest.mark.asyncio
    async def test_health_check_runs_off_the_event_loop(self):
        """The storage health check runs in a worker thread."""
        loop_thread = threading.get_ident()
        threads = []

        def health_check():
            threads.append(threading.get_ident())
            return True

        db = Mock(spec=DatabaseInterface)
        db.health_check.side_effect = health_check
        service = CompetitionService(db=db, cache=None)

        assert await service.health_check() is True
        assert threads and threads[0] != loop_thread

    @pytest.mark.asyncio
    async def test_members(self, service):
        """Members are listed with their players; removal works."""
        await service.add_member('comp_1', 'p1')
        await service.add_member('comp_1', 'p2')
        await service.add_member('comp_1', 'p1')

        members = await service.list_members('comp_1')
        assert [m.player_id for m in members] == ['p1', 'p2']
        assert members[0].player.name == 'Ana'

        await service.remove_member('comp_1', 'p1')
        members = await service.list_members('comp_1')
        assert [m.player_id for m in members] == ['p2']

    @pytest.mark.asyncio
    async def test_members_without_player_skipped(self, service):
        """Members whose player is gone are left out."""
        await service.add_member('comp_1', 'p1')
        await service.add_member('comp_1', 'ghost')

        members = await service.list_members('comp_1')

        assert [m.player_id for m in members] == ['p1']

    @pytest.mark.asyncio
    async def test_no_members(self, service):
        assert await service.list_members('comp_1') == []
