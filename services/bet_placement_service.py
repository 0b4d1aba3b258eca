"""
Coordinates bet placement: admission, pricing and the atomic booking write.
"""

from __future__ import annotations

import logging
import time

from domain.models.predictor import PredictorBet
from repositories.interfaces import IPredictorBetRepository
from services import error_codes
from services.bet_validation import BetValidator, parse_bet_request
from services.odds_calculator import OddsCalculator
from services.result import Result

logger = logging.getLogger("predictor_bot.services.placement")


class BetPlacementService:
    """
    Places predictor bets.

    The validator gives fast, read-only feedback. The repository then repeats the
    state checks under a write lock and prices, inserts, debits and grows the pools
    in one transaction, so a bet exists if and only if the debit and the pool
    increments happened, and its odds reflect the pool at admission.
    """

    def __init__(
        self,
        bet_repo: IPredictorBetRepository,
        validator: BetValidator,
        odds_calculator: OddsCalculator,
    ):
        self.bet_repo = bet_repo
        self.validator = validator
        self.odds_calculator = odds_calculator

    def place_bet(
        self,
        discord_id: int,
        match_id: int,
        predictions: list[dict],
        now: int | None = None,
    ) -> Result[PredictorBet]:
        """
        Place a bet made of one or more predictions on a match.

        Args:
            discord_id: Bettor's Discord ID
            match_id: Match to bet on
            predictions: List of {"type", "choice", "bet_amount"} dicts
            now: Current unix time (defaults to time.time())

        Returns:
            Result with the persisted bet, every prediction pending with its odds
        """
        now = int(time.time()) if now is None else now

        validation = self.validator.validate(discord_id, match_id, predictions, now=now)
        if not validation.success:
            logger.info(
                f"Bet rejected for user {discord_id} on match {match_id}: "
                f"{validation.error_code}"
            )
            return validation

        try:
            bet = self.bet_repo.place_bet_atomic(
                discord_id=discord_id,
                match_id=match_id,
                predictions=predictions,
                now=now,
                close_lead_seconds=self.validator.close_lead_seconds,
                price=self.odds_calculator.price,
            )
        except ValueError as e:
            logger.info(f"Bet for user {discord_id} on match {match_id} lost a race: {e}")
            return Result.from_exception(e, default_code=error_codes.VALIDATION_ERROR)

        logger.info(
            f"Bet {bet.bet_id} placed: user {discord_id}, match {match_id}, "
            f"total {bet.total_bet}, {len(bet.predictions)} prediction(s)"
        )
        return Result.ok(bet)

    def place_bet_from_request(
        self, discord_id: int, payload: dict, now: int | None = None
    ) -> Result[PredictorBet]:
        """Shape-check a raw {"matchId", "predictions"} request, then place it."""
        parsed = parse_bet_request(payload)
        if not parsed.success:
            return parsed
        request = parsed.value
        return self.place_bet(discord_id, request["match_id"], request["predictions"], now=now)
