"""
Shared test fixtures and configuration.

Provides reusable fixtures for all test files including database instances,
sample players and games, and a competition service wired to a temporary
SQLite database.
"""

import pytest
import os
import shutil
import tempfile
from typing import Dict, Any, List
from unittest.mock import patch

from domino_ranking.models import Game
from domino_ranking.services.cache import ResultsCache
from domino_ranking.services.competition_service import CompetitionService
from domino_ranking.storage import get_database, reset_database


def make_game(
    game_id: str,
    team1: List[str],
    team2: List[str],
    team1_score: int = 0,
    team2_score: int = 0,
    status: str = 'finished',
    competition_id: str = 'comp_1',
    team1_was_losing_5_0: bool = False,
    team2_was_losing_5_0: bool = False,
) -> Game:
    """Build a validated Game."""
    return Game.model_validate({
        'id': game_id,
        'competition_id': competition_id,
        'team1': team1,
        'team2': team2,
        'team1_score': team1_score,
        'team2_score': team2_score,
        'team1_was_losing_5_0': team1_was_losing_5_0,
        'team2_was_losing_5_0': team2_was_losing_5_0,
        'status': status,
    })


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def test_data_dir():
    """Provide a temporary directory for test data."""
    temp_dir = tempfile.mkdtemp(prefix="dominoes_test_")
    yield temp_dir

    # Cleanup
    if os.path.exists(temp_dir):
        try:
            shutil.rmtree(temp_dir)
        except PermissionError:
            pass  # Windows file locking, ignore


@pytest.fixture
def db_fixture(test_data_dir):
    """Provide a clean test database instance."""
    with patch.dict(os.environ, {'DB_TYPE': 'sqlite', 'DATA_DIR': test_data_dir}, clear=False):
        reset_database()
        db = get_database()
        yield db
        reset_database()  # Close connection before cleanup


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_players() -> List[Dict[str, Any]]:
    """Provide sample player rows."""
    return [
        {'id': 'p1', 'name': 'Ana', 'phone': '555-0101', 'community_id': 'community_1'},
        {'id': 'p2', 'name': 'Bruno', 'phone': None, 'community_id': 'community_1'},
        {'id': 'p3', 'name': 'Carla', 'phone': '555-0103', 'community_id': 'community_1'},
        {'id': 'p4', 'name': 'Diego', 'phone': None, 'community_id': 'community_1'},
    ]


@pytest.fixture
def sample_competition() -> Dict[str, Any]:
    """Provide a sample competition row."""
    return {
        'id': 'comp_1',
        'name': 'Torneio de Verão',
        'description': 'Duplas fixas',
        'community_id': 'community_1',
        'start_date': '2026-01-10T18:00:00+00:00',
        'status': 'in_progress',
    }


@pytest.fixture
def sample_games() -> List[Dict[str, Any]]:
    """
    Provide sample game rows for comp_1.

    p1/p2 win both games, the first one 6-0 after trailing 0-5.
    """
    return [
        {
            'id': 'game_1',
            'competition_id': 'comp_1',
            'team1': ['p2', 'p1'],
            'team2': ['p3', 'p4'],
            'team1_score': 6,
            'team2_score': 0,
            'team1_was_losing_5_0': True,
            'team2_was_losing_5_0': False,
            'status': 'finished',
        },
        {
            'id': 'game_2',
            'competition_id': 'comp_1',
            'team1': ['p3', 'p4'],
            'team2': ['p1', 'p2'],
            'team1_score': 4,
            'team2_score': 6,
            'team1_was_losing_5_0': False,
            'team2_was_losing_5_0': False,
            'status': 'finished',
        },
    ]


@pytest.fixture
def seeded_db(db_fixture, sample_players, sample_competition, sample_games):
    """Database with players, one competition and its games."""
    db_fixture.save_players(sample_players)
    db_fixture.save_competition(sample_competition)
    db_fixture.save_games(sample_games)
    return db_fixture


@pytest.fixture
def service(seeded_db) -> CompetitionService:
    """Competition service backed by the seeded database."""
    return CompetitionService(db=seeded_db, cache=ResultsCache(maxsize=10, ttl=60))
