"""
Distributes prediction pools to winning predictions.

Each prediction type is settled on its own: the pool, minus commission, is split
between that type's winning predictions in proportion to their stakes. A type
with no winners keeps its pool undistributed (the house keeps it); it is reported
in the summary, never refunded or moved to another type.
"""

from __future__ import annotations

import logging
import time

import config
from domain.models.predictor import PredictionStatus
from repositories.interfaces import IPredictorBetRepository, IPredictorMatchRepository
from services import error_codes
from services.notification_service import NotificationService
from services.result import Result

logger = logging.getLogger("predictor_bot.services.rewards")


class RewardDistributionService:
    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        bet_repo: IPredictorBetRepository,
        notification_service: NotificationService | None = None,
        commission: float | None = None,
    ):
        self.match_repo = match_repo
        self.bet_repo = bet_repo
        self.notification_service = notification_service
        self.commission = config.PREDICTOR_COMMISSION if commission is None else commission

    def calculate_rewards(self, match_id: int) -> Result[dict]:
        """
        Work out every winning prediction's reward without paying anything.

        Returns:
            Result with "rewards" (list of {"prediction_id", "bet_id", "discord_id",
            "type", "stake", "reward"}), "types" (per-type breakdown) and
            "undistributed" (types with no winners and their pools)
        """
        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)
        if not match.draft.completed:
            return Result.fail(
                "Draft results have not been recorded yet.",
                code=error_codes.DRAFT_NOT_COMPLETED,
            )

        bets = self.bet_repo.get_bets_for_match(match_id)

        rewards: list[dict] = []
        types: list[dict] = []
        undistributed: list[dict] = []
        for ptype in match.prediction_types:
            winners = [
                (bet, pred)
                for bet in bets
                for pred in bet.predictions
                if pred.type == ptype.type and pred.status == PredictionStatus.WON
            ]
            total_winning_stake = sum(pred.bet_amount for _, pred in winners)

            if not winners or total_winning_stake == 0:
                if ptype.reward_pool > 0:
                    undistributed.append({"type": ptype.type, "reward_pool": ptype.reward_pool})
                types.append(
                    {
                        "type": ptype.type,
                        "reward_pool": ptype.reward_pool,
                        "winners": 0,
                        "distributed": 0.0,
                    }
                )
                continue

            distributable = ptype.reward_pool * (1 - self.commission)
            type_total = 0.0
            for bet, pred in winners:
                reward = round(pred.bet_amount / total_winning_stake * distributable, 2)
                type_total += reward
                rewards.append(
                    {
                        "prediction_id": pred.prediction_id,
                        "bet_id": bet.bet_id,
                        "discord_id": bet.discord_id,
                        "type": ptype.type,
                        "stake": pred.bet_amount,
                        "reward": reward,
                    }
                )
            types.append(
                {
                    "type": ptype.type,
                    "reward_pool": ptype.reward_pool,
                    "winners": len(winners),
                    "distributed": round(type_total, 2),
                }
            )

        return Result.ok({"rewards": rewards, "types": types, "undistributed": undistributed})

    def distribute_rewards(self, match_id: int, now: int | None = None) -> Result[dict]:
        """
        Pay out a completed match once.

        Rewards, bet totals, account credits and the distributed marker are
        written in one transaction. Bettors are notified afterwards; notification
        failures are counted, not raised.

        Returns:
            Result with total_rewards_distributed, users_rewarded, types,
            undistributed and notifications
        """
        now = int(time.time()) if now is None else now

        match = self.match_repo.get_match(match_id)
        if match is not None and match.rewards_distributed_at is not None:
            return Result.fail(
                "Rewards were already distributed for this match.",
                code=error_codes.REWARDS_ALREADY_DISTRIBUTED,
            )

        calculation = self.calculate_rewards(match_id)
        if not calculation.success:
            return calculation
        plan = calculation.value

        try:
            applied = self.bet_repo.apply_rewards_atomic(match_id, plan["rewards"], now)
        except ValueError as e:
            return Result.from_exception(e, default_code=error_codes.STATE_ERROR)

        for item in plan["undistributed"]:
            logger.info(
                f"Match {match_id}: no winners for {item['type']}, "
                f"pool of {item['reward_pool']} left undistributed"
            )
        logger.info(
            f"Rewards distributed for match {match_id}: {applied['total_distributed']} "
            f"to {len(applied['credited_users'])} user(s)"
        )

        notifications = {"sent": 0, "failed": 0}
        if self.notification_service is not None:
            notifications = self.notification_service.notify_prediction_results_all(match_id, now=now)

        return Result.ok(
            {
                "match_id": match_id,
                "total_rewards_distributed": applied["total_distributed"],
                "users_rewarded": len(applied["credited_users"]),
                "types": plan["types"],
                "undistributed": plan["undistributed"],
                "notifications": notifications,
            }
        )
