"""
Pytest fixtures for tests.

Performance optimization: uses a session-scoped schema template so migrations
run once; each test copies the resulting database file instead of
re-initializing it.
"""

import shutil

import pytest

from infrastructure.schema_manager import SchemaManager
from repositories.notification_repository import NotificationRepository
from repositories.player_repository import PlayerRepository
from repositories.predictor_bet_repository import PredictorBetRepository
from repositories.predictor_match_repository import PredictorMatchRepository
from services.bet_placement_service import BetPlacementService
from services.bet_validation import BetValidator
from services.betting_window_service import BettingWindowService
from services.notification_service import NotificationService
from services.odds_calculator import OddsCalculator
from services.predictor_match_service import PredictorMatchService
from services.predictor_stats_service import PredictorStatsService
from services.results_service import ResultsService
from services.reward_distribution_service import RewardDistributionService
from services.settlement_service import SettlementService

# =============================================================================
# CENTRALIZED CONSTANTS
# =============================================================================

NOW = 1_750_000_000
"""Fixed 'current time' injected into time-dependent services."""

HOUR = 3600

DEFAULT_PREDICTION_TYPES = [
    {"type": "first_ban_team1", "title": "First ban (team 1)", "options": ["Pudge", "Io", "Tinker"]},
    {"type": "first_pick_team2", "title": "First pick (team 2)", "options": ["Pudge", "Io", "Tinker"]},
    {"type": "most_banned", "title": "Most banned hero", "options": ["Pudge", "Io", "Tinker"]},
    {"type": "pick_team1_core", "title": "Team 1 picks", "options": ["Pudge", "Io", "Tinker"]},
]


@pytest.fixture(scope="session")
def _schema_template_path(tmp_path_factory):
    """
    Create a schema template database once per test session.

    Tests copy from this template instead of running schema initialization each time.
    """
    template_dir = tmp_path_factory.mktemp("schema_template")
    template_path = str(template_dir / "template.db")
    SchemaManager(template_path).initialize()
    yield template_path


@pytest.fixture
def repo_db_path(_schema_template_path, tmp_path):
    """
    Create a temporary database with initialized schema for repository tests.

    Fast: file copy instead of schema initialization.
    """
    test_db_path = str(tmp_path / "test.db")
    shutil.copy2(_schema_template_path, test_db_path)
    yield test_db_path


# =============================================================================
# REPOSITORIES
# =============================================================================


@pytest.fixture
def player_repository(repo_db_path):
    return PlayerRepository(repo_db_path)


@pytest.fixture
def match_repository(repo_db_path):
    return PredictorMatchRepository(repo_db_path)


@pytest.fixture
def bet_repository(repo_db_path):
    return PredictorBetRepository(repo_db_path)


@pytest.fixture
def notification_repository(repo_db_path):
    return NotificationRepository(repo_db_path)


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def odds_calculator(match_repository, bet_repository):
    return OddsCalculator(
        match_repository, bet_repository, commission=0.05, base_odds=2.0, min_odds=1.1, max_odds=10.0
    )


@pytest.fixture
def bet_validator(match_repository, bet_repository, player_repository):
    return BetValidator(
        match_repository,
        bet_repository,
        player_repository,
        min_bet=10,
        max_bet=10000,
        close_lead_seconds=300,
    )


@pytest.fixture
def placement_service(bet_repository, bet_validator, odds_calculator):
    return BetPlacementService(bet_repository, bet_validator, odds_calculator)


@pytest.fixture
def notification_service(notification_repository, match_repository, bet_repository):
    return NotificationService(
        notification_repository,
        match_repository,
        bet_repository,
        ttl_seconds=30 * 24 * HOUR,
        notice_seconds=600,
    )


@pytest.fixture
def window_service(match_repository, notification_service):
    return BettingWindowService(
        match_repository, notification_service, close_lead_seconds=300, notice_seconds=600
    )


@pytest.fixture
def results_service(match_repository):
    return ResultsService(match_repository)


@pytest.fixture
def reward_service(match_repository, bet_repository, notification_service):
    return RewardDistributionService(
        match_repository, bet_repository, notification_service, commission=0.05
    )


@pytest.fixture
def settlement_service(match_repository, results_service, reward_service):
    return SettlementService(match_repository, results_service, reward_service)


@pytest.fixture
def match_service(match_repository):
    return PredictorMatchService(match_repository, games=["dota2", "cs2"])


@pytest.fixture
def stats_service(match_repository, bet_repository):
    return PredictorStatsService(match_repository, bet_repository)


# =============================================================================
# DATA HELPERS
# =============================================================================


@pytest.fixture
def create_match(match_repository):
    """Factory creating an upcoming match that starts `starts_in` seconds after NOW."""

    def _create(starts_in: int = 2 * HOUR, prediction_types=None, game: str = "dota2") -> int:
        return match_repository.create_match(
            game=game,
            team1_name="Team Spirit",
            team2_name="Gaimin Gladiators",
            start_time=NOW + starts_in,
            prediction_types=prediction_types or DEFAULT_PREDICTION_TYPES,
        )

    return _create


@pytest.fixture
def register_player(player_repository):
    """Factory registering a player with a balance."""

    def _register(discord_id: int, balance: float = 1000) -> int:
        player_repository.add(discord_id, f"user{discord_id}", balance=balance)
        return discord_id

    return _register


@pytest.fixture
def place(placement_service):
    """Place a bet at NOW and return the Result."""

    def _place(discord_id: int, match_id: int, *predictions):
        return placement_service.place_bet(
            discord_id,
            match_id,
            [{"type": t, "choice": c, "bet_amount": a} for t, c, a in predictions],
            now=NOW,
        )

    return _place
