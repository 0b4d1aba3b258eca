"""
Application services layer.

Services orchestrate predictor operations using repositories.
"""

from services.bet_placement_service import BetPlacementService
from services.bet_validation import BetValidator, parse_bet_request
from services.betting_window_service import BettingWindowService
from services.draft_rules import DraftRuleRegistry, build_default_rules
from services.notification_service import NotificationService
from services.odds_calculator import OddsCalculator, calculate_odds
from services.player_service import PlayerService
from services.predictor_match_service import PredictorMatchService
from services.predictor_stats_service import PredictorStatsService

# Result type for consistent error handling
from services.result import Result
from services.results_service import ResultsService
from services.reward_distribution_service import RewardDistributionService
from services.settlement_service import SettlementService

__all__ = [
    "BetPlacementService",
    "BetValidator",
    "BettingWindowService",
    "DraftRuleRegistry",
    "NotificationService",
    "OddsCalculator",
    "PlayerService",
    "PredictorMatchService",
    "PredictorStatsService",
    "Result",
    "ResultsService",
    "RewardDistributionService",
    "SettlementService",
    "build_default_rules",
    "calculate_odds",
    "parse_bet_request",
]
