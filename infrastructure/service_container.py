"""
Service container for dependency injection and initialization.

Builds the repositories and predictor services once at startup and hands them
to the bot; nothing is held in module-level globals.

Usage:
    container = ServiceContainer(ServiceConfig.from_config())
    await container.initialize()

    placement = container.bet_placement_service
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import config

if TYPE_CHECKING:
    from services.bet_placement_service import BetPlacementService
    from services.bet_validation import BetValidator
    from services.betting_window_service import BettingWindowService
    from services.notification_service import NotificationService
    from services.odds_calculator import OddsCalculator
    from services.player_service import PlayerService
    from services.predictor_match_service import PredictorMatchService
    from services.predictor_stats_service import PredictorStatsService
    from services.results_service import ResultsService
    from services.reward_distribution_service import RewardDistributionService
    from services.settlement_service import SettlementService

from infrastructure.schema_manager import SchemaManager

# Repositories
from repositories.notification_repository import NotificationRepository
from repositories.player_repository import PlayerRepository
from repositories.predictor_bet_repository import PredictorBetRepository
from repositories.predictor_match_repository import PredictorMatchRepository

logger = logging.getLogger("predictor_bot.infrastructure.container")


@dataclass
class RepositoryContainer:
    """Container for all repositories."""

    player: PlayerRepository | None = None
    match: PredictorMatchRepository | None = None
    bet: PredictorBetRepository | None = None
    notification: NotificationRepository | None = None


@dataclass
class ServiceConfig:
    """Configuration for service initialization."""

    # Database
    db_path: str = "predictor.db"

    # Accounts
    starting_balance: int = 1000

    # Odds and stakes
    commission: float = 0.05
    min_bet: int = 10
    max_bet: int = 10000
    base_odds: float = 2.0
    min_odds: float = 1.1
    max_odds: float = 10.0
    games: list[str] = field(default_factory=lambda: ["dota2", "cs2"])

    # Betting window
    close_lead_seconds: int = 300  # 5 minutes

    # Notifications
    match_starting_notice_seconds: int = 600  # 10 minutes
    notification_ttl_seconds: int = 2592000  # 30 days

    @classmethod
    def from_config(cls) -> "ServiceConfig":
        """Build a ServiceConfig from the environment-driven config module."""
        return cls(
            db_path=config.DB_PATH,
            starting_balance=config.STARTING_BALANCE,
            commission=config.PREDICTOR_COMMISSION,
            min_bet=config.PREDICTOR_MIN_BET,
            max_bet=config.PREDICTOR_MAX_BET,
            base_odds=config.PREDICTOR_BASE_ODDS,
            min_odds=config.PREDICTOR_MIN_ODDS,
            max_odds=config.PREDICTOR_MAX_ODDS,
            games=list(config.PREDICTOR_GAMES),
            close_lead_seconds=config.BETTING_CLOSE_LEAD_SECONDS,
            match_starting_notice_seconds=config.MATCH_STARTING_NOTICE_SECONDS,
            notification_ttl_seconds=config.NOTIFICATION_TTL_SECONDS,
        )


class ServiceContainer:
    """
    Central container for all application services.

    Handles initialization order and dependency injection.

    Example:
        container = ServiceContainer(config)
        await container.initialize()

        # Services are now available
        settlement = container.settlement_service
    """

    def __init__(self, config: ServiceConfig | None = None):
        """
        Initialize the container with configuration.

        Args:
            config: Service configuration (uses defaults if None)
        """
        self.config = config or ServiceConfig()
        self._initialized = False
        self._repos = RepositoryContainer()
        self._services: dict[str, Any] = {}

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize all services in correct order.

        This method is idempotent - calling it multiple times has no effect.
        """
        if self._initialized:
            logger.debug("ServiceContainer already initialized, skipping")
            return

        logger.info("Initializing ServiceContainer...")

        self._init_database()
        self._init_repositories()
        self._init_core_services()
        self._init_betting_services()
        self._init_settlement_services()

        self._initialized = True
        logger.info("ServiceContainer initialization complete")

    def _init_database(self) -> None:
        """Create tables and run migrations."""
        logger.debug(f"Initializing database at {self.config.db_path}")
        SchemaManager(self.config.db_path).initialize()

    def _init_repositories(self) -> None:
        """Initialize all repositories."""
        logger.debug("Initializing repositories")

        db_path = self.config.db_path
        self._repos.player = PlayerRepository(db_path)
        self._repos.match = PredictorMatchRepository(db_path)
        self._repos.bet = PredictorBetRepository(db_path)
        self._repos.notification = NotificationRepository(db_path)

    def _init_core_services(self) -> None:
        """Accounts, match admin and notifications."""
        logger.debug("Initializing core services")

        from services.notification_service import NotificationService
        from services.player_service import PlayerService
        from services.predictor_match_service import PredictorMatchService

        self._services["player"] = PlayerService(
            player_repo=self._repos.player,
            starting_balance=self.config.starting_balance,
        )
        self._services["predictor_match"] = PredictorMatchService(
            match_repo=self._repos.match,
            games=self.config.games,
        )
        self._services["notification"] = NotificationService(
            notification_repo=self._repos.notification,
            match_repo=self._repos.match,
            bet_repo=self._repos.bet,
            ttl_seconds=self.config.notification_ttl_seconds,
            notice_seconds=self.config.match_starting_notice_seconds,
        )

    def _init_betting_services(self) -> None:
        """Odds, admission, placement and the betting window."""
        logger.debug("Initializing betting services")

        from services.bet_placement_service import BetPlacementService
        from services.bet_validation import BetValidator
        from services.betting_window_service import BettingWindowService
        from services.odds_calculator import OddsCalculator
        from services.predictor_stats_service import PredictorStatsService

        self._services["odds"] = OddsCalculator(
            match_repo=self._repos.match,
            bet_repo=self._repos.bet,
            commission=self.config.commission,
            base_odds=self.config.base_odds,
            min_odds=self.config.min_odds,
            max_odds=self.config.max_odds,
        )
        self._services["validator"] = BetValidator(
            match_repo=self._repos.match,
            bet_repo=self._repos.bet,
            player_repo=self._repos.player,
            min_bet=self.config.min_bet,
            max_bet=self.config.max_bet,
            close_lead_seconds=self.config.close_lead_seconds,
        )
        self._services["placement"] = BetPlacementService(
            bet_repo=self._repos.bet,
            validator=self._services["validator"],
            odds_calculator=self._services["odds"],
        )
        self._services["betting_window"] = BettingWindowService(
            match_repo=self._repos.match,
            notification_service=self._services["notification"],
            close_lead_seconds=self.config.close_lead_seconds,
            notice_seconds=self.config.match_starting_notice_seconds,
        )
        self._services["stats"] = PredictorStatsService(
            match_repo=self._repos.match,
            bet_repo=self._repos.bet,
        )

    def _init_settlement_services(self) -> None:
        """Results processing and reward distribution."""
        logger.debug("Initializing settlement services")

        from services.results_service import ResultsService
        from services.reward_distribution_service import RewardDistributionService
        from services.settlement_service import SettlementService

        self._services["results"] = ResultsService(match_repo=self._repos.match)
        self._services["rewards"] = RewardDistributionService(
            match_repo=self._repos.match,
            bet_repo=self._repos.bet,
            notification_service=self._services["notification"],
            commission=self.config.commission,
        )
        self._services["settlement"] = SettlementService(
            match_repo=self._repos.match,
            results_service=self._services["results"],
            reward_service=self._services["rewards"],
        )

    # =========================================================================
    # Service accessors
    # =========================================================================

    @property
    def player_repo(self) -> PlayerRepository:
        return self._repos.player

    @property
    def match_repo(self) -> PredictorMatchRepository:
        return self._repos.match

    @property
    def bet_repo(self) -> PredictorBetRepository:
        return self._repos.bet

    @property
    def notification_repo(self) -> NotificationRepository:
        return self._repos.notification

    @property
    def player_service(self) -> "PlayerService | None":
        return self._services.get("player")

    @property
    def predictor_match_service(self) -> "PredictorMatchService | None":
        return self._services.get("predictor_match")

    @property
    def notification_service(self) -> "NotificationService | None":
        return self._services.get("notification")

    @property
    def odds_calculator(self) -> "OddsCalculator | None":
        return self._services.get("odds")

    @property
    def bet_validator(self) -> "BetValidator | None":
        return self._services.get("validator")

    @property
    def bet_placement_service(self) -> "BetPlacementService | None":
        return self._services.get("placement")

    @property
    def betting_window_service(self) -> "BettingWindowService | None":
        return self._services.get("betting_window")

    @property
    def stats_service(self) -> "PredictorStatsService | None":
        return self._services.get("stats")

    @property
    def results_service(self) -> "ResultsService | None":
        return self._services.get("results")

    @property
    def reward_service(self) -> "RewardDistributionService | None":
        return self._services.get("rewards")

    @property
    def settlement_service(self) -> "SettlementService | None":
        return self._services.get("settlement")

    def expose_to_bot(self, bot) -> None:
        """
        Expose services to a Discord bot object so cogs can reach them via
        bot.<service_name>.

        Args:
            bot: The Discord bot instance
        """
        bot.player_repo = self.player_repo
        bot.match_repo = self.match_repo
        bot.bet_repo = self.bet_repo

        bot.player_service = self.player_service
        bot.predictor_match_service = self.predictor_match_service
        bot.notification_service = self.notification_service
        bot.odds_calculator = self.odds_calculator
        bot.bet_placement_service = self.bet_placement_service
        bot.betting_window_service = self.betting_window_service
        bot.stats_service = self.stats_service
        bot.settlement_service = self.settlement_service

        logger.info("Services exposed to bot object")
