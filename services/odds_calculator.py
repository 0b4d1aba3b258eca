"""
Parimutuel odds for predictor options.

Odds follow the live pool: every call reflects the stakes booked so far, so the
value can move between two calls as other bets land. Placement prices against
the pool snapshot read under the write lock (see PredictorBetRepository.place_bet_atomic).
"""

from __future__ import annotations

import logging

import config
from domain.models.predictor import PredictorMatch
from repositories.interfaces import IPredictorBetRepository, IPredictorMatchRepository
from services import error_codes
from services.result import Result

logger = logging.getLogger("predictor_bot.services.odds")


def calculate_odds(
    type_pool: int,
    type_bets_count: int,
    option_pool: int,
    commission: float = config.PREDICTOR_COMMISSION,
    base_odds: float = config.PREDICTOR_BASE_ODDS,
    min_odds: float = config.PREDICTOR_MIN_ODDS,
    max_odds: float = config.PREDICTOR_MAX_ODDS,
) -> float:
    """
    Odds for one option given the pool snapshot.

    - Empty type pool: base_odds (2.0)
    - Nothing staked on this option yet: max_odds (10.0)
    - Otherwise (type_pool / option_pool) * (1 - commission), clamped to
      [min_odds, max_odds] and rounded to 2 decimals
    """
    if type_pool <= 0 or type_bets_count <= 0:
        return base_odds
    if option_pool <= 0:
        return max_odds

    raw = (type_pool / option_pool) * (1 - commission)
    return round(max(min_odds, min(max_odds, raw)), 2)


class OddsCalculator:
    """Computes current odds for a match's prediction options."""

    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        bet_repo: IPredictorBetRepository,
        commission: float | None = None,
        base_odds: float | None = None,
        min_odds: float | None = None,
        max_odds: float | None = None,
    ):
        self.match_repo = match_repo
        self.bet_repo = bet_repo
        self.commission = config.PREDICTOR_COMMISSION if commission is None else commission
        self.base_odds = config.PREDICTOR_BASE_ODDS if base_odds is None else base_odds
        self.min_odds = config.PREDICTOR_MIN_ODDS if min_odds is None else min_odds
        self.max_odds = config.PREDICTOR_MAX_ODDS if max_odds is None else max_odds

    def price(self, type_pool: int, type_bets_count: int, option_pool: int) -> float:
        """Odds from raw pool figures using this calculator's parameters."""
        return calculate_odds(
            type_pool,
            type_bets_count,
            option_pool,
            commission=self.commission,
            base_odds=self.base_odds,
            min_odds=self.min_odds,
            max_odds=self.max_odds,
        )

    def compute_odds(self, match: PredictorMatch, prediction_type: str, choice: str) -> float:
        """
        Current odds for (prediction_type, choice) on a match.

        Raises:
            ValueError: If the match has no such prediction type
        """
        ptype = match.get_prediction_type(prediction_type)
        if ptype is None:
            raise ValueError(f"Unknown prediction type: {prediction_type}")
        if ptype.is_empty:
            return self.base_odds

        option_pool = self.bet_repo.get_option_stake_total(match.match_id, prediction_type, choice)
        return self.price(ptype.reward_pool, ptype.bets_count, option_pool)

    def get_odds_board(self, match_id: int) -> Result[dict]:
        """
        Current odds for every (type, option) pair on a match.

        Returns:
            Result with {"match_id", "status", "types": [{"type", "title", "closed",
            "reward_pool", "bets_count", "options": [{"choice", "odds", "staked"}]}]}
        """
        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)

        stakes = self.bet_repo.get_option_stake_totals(match_id)
        types = []
        for ptype in match.prediction_types:
            options = []
            for choice in ptype.options:
                staked = stakes.get((ptype.type, choice), 0)
                options.append(
                    {
                        "choice": choice,
                        "odds": self.price(ptype.reward_pool, ptype.bets_count, staked),
                        "staked": staked,
                    }
                )
            types.append(
                {
                    "type": ptype.type,
                    "title": ptype.title,
                    "closed": ptype.closed,
                    "reward_pool": ptype.reward_pool,
                    "bets_count": ptype.bets_count,
                    "options": options,
                }
            )

        return Result.ok({"match_id": match_id, "status": match.status.value, "types": types})
