"""
Bet admission control.

parse_bet_request checks the shape of an incoming request; BetValidator then runs
the admission checks against current match, pool and account state. Both return
Result so the caller can surface the error code and message unchanged.
"""

from __future__ import annotations

import logging
import time

import config
from repositories.interfaces import (
    IPlayerRepository,
    IPredictorBetRepository,
    IPredictorMatchRepository,
)
from services import error_codes
from services.result import Result

logger = logging.getLogger("predictor_bot.services.bet_validation")


def parse_bet_request(payload) -> Result[dict]:
    """
    Normalize a bet request into {"match_id", "predictions": [{"type", "choice", "bet_amount"}]}.

    Accepts {"matchId", "predictions": [{"type", "choice", "betAmount"}]}; snake_case
    keys are accepted as well. Range checks are left to BetValidator.
    """
    if not isinstance(payload, dict):
        return Result.fail("Match ID and predictions are required.", code=error_codes.INVALID_DATA)

    match_id = payload.get("matchId", payload.get("match_id"))
    predictions = payload.get("predictions")
    if (
        match_id is None
        or isinstance(match_id, bool)
        or not isinstance(predictions, list)
        or not predictions
    ):
        return Result.fail("Match ID and predictions are required.", code=error_codes.INVALID_DATA)
    try:
        match_id = int(match_id)
    except (TypeError, ValueError):
        return Result.fail("Match ID must be an integer.", code=error_codes.INVALID_DATA)

    normalized = []
    seen_types = set()
    for pred in predictions:
        if not isinstance(pred, dict):
            return Result.fail(
                "Each prediction must have type, choice, and betAmount.",
                code=error_codes.INVALID_PREDICTION_DATA,
            )
        ptype = pred.get("type")
        choice = pred.get("choice")
        amount = pred.get("betAmount", pred.get("bet_amount"))
        if not ptype or not choice or amount is None:
            return Result.fail(
                "Each prediction must have type, choice, and betAmount.",
                code=error_codes.INVALID_PREDICTION_DATA,
            )
        if isinstance(amount, bool) or not isinstance(amount, int):
            return Result.fail(
                f"Bet amount for {ptype} must be a whole number.",
                code=error_codes.INVALID_PREDICTION_DATA,
            )
        if ptype in seen_types:
            return Result.fail(
                f"Prediction type {ptype} appears more than once.",
                code=error_codes.INVALID_PREDICTION_DATA,
            )
        seen_types.add(ptype)
        normalized.append({"type": str(ptype), "choice": str(choice), "bet_amount": amount})

    return Result.ok({"match_id": match_id, "predictions": normalized})


class BetValidator:
    """
    Runs bet admission checks in a fixed order, stopping at the first failure.

    1. match exists
    2. match is upcoming
    3. more than close_lead_seconds until start
    4. at least one prediction
    5. per prediction: stake bounds, known type, type open, valid choice
    6. account exists and balance covers the total
    7. no existing bet on this match
    """

    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        bet_repo: IPredictorBetRepository,
        player_repo: IPlayerRepository,
        min_bet: int | None = None,
        max_bet: int | None = None,
        close_lead_seconds: int | None = None,
    ):
        self.match_repo = match_repo
        self.bet_repo = bet_repo
        self.player_repo = player_repo
        self.min_bet = config.PREDICTOR_MIN_BET if min_bet is None else min_bet
        self.max_bet = config.PREDICTOR_MAX_BET if max_bet is None else max_bet
        self.close_lead_seconds = (
            config.BETTING_CLOSE_LEAD_SECONDS if close_lead_seconds is None else close_lead_seconds
        )

    def validate(
        self,
        discord_id: int,
        match_id: int,
        predictions: list[dict],
        now: int | None = None,
    ) -> Result[int]:
        """
        Check whether a bet may be admitted.

        Returns:
            Result with the total stake on success
        """
        now = int(time.time()) if now is None else now

        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)

        if match.status.value != "upcoming":
            return Result.fail("Betting is closed for this match.", code=error_codes.BETTING_CLOSED)

        if match.seconds_until_start(now) <= self.close_lead_seconds:
            return Result.fail(
                f"Betting closes {self.close_lead_seconds // 60} minutes before the match starts.",
                code=error_codes.BETTING_CLOSED,
            )

        if not predictions:
            return Result.fail("No predictions provided.", code=error_codes.NO_PREDICTIONS)

        total_bet = 0
        for pred in predictions:
            amount = pred["bet_amount"]
            if amount < self.min_bet or amount > self.max_bet:
                return Result.fail(
                    f"Bet amount must be between {self.min_bet} and {self.max_bet} "
                    f"(got {amount} on {pred['type']}).",
                    code=error_codes.INVALID_BET_AMOUNT,
                )

            ptype = match.get_prediction_type(pred["type"])
            if ptype is None:
                return Result.fail(
                    f"Prediction type {pred['type']} not found.",
                    code=error_codes.INVALID_PREDICTION_TYPE,
                )
            if ptype.closed:
                return Result.fail(
                    f"Betting on {pred['type']} is closed.", code=error_codes.BETTING_CLOSED
                )
            if not ptype.has_option(pred["choice"]):
                return Result.fail(
                    f"{pred['choice']} is not available for {pred['type']}. "
                    f"Options: {', '.join(ptype.options)}.",
                    code=error_codes.INVALID_CHOICE,
                )

            total_bet += amount

        balance = self.player_repo.get_balance(discord_id)
        if balance is None:
            return Result.fail(
                "Player not found. Please register first.", code=error_codes.PLAYER_NOT_FOUND
            )
        if balance < total_bet:
            return Result.fail(
                f"Insufficient balance. Balance: {balance:g}, required: {total_bet}.",
                code=error_codes.INSUFFICIENT_FUNDS,
            )

        if self.bet_repo.get_user_bet_for_match(discord_id, match_id) is not None:
            return Result.fail(
                "You already have a bet on this match.", code=error_codes.DUPLICATE_BET
            )

        return Result.ok(total_bet)
