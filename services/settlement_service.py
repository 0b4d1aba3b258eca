"""
Runs results processing followed by reward distribution.
"""

from __future__ import annotations

import logging

from repositories.interfaces import IPredictorMatchRepository
from services import error_codes
from services.result import Result
from services.results_service import ResultsService
from services.reward_distribution_service import RewardDistributionService

logger = logging.getLogger("predictor_bot.services.settlement")


class SettlementService:
    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        results_service: ResultsService,
        reward_service: RewardDistributionService,
    ):
        self.match_repo = match_repo
        self.results_service = results_service
        self.reward_service = reward_service

    def settle(self, match_id: int, results: dict, now: int | None = None) -> Result[dict]:
        """
        Record results and pay out a match.

        Results and payout commit separately. When a match already has its draft
        results recorded, the submitted payload is ignored and only distribution
        runs, so a payout that failed earlier is finished by settling again.

        Returns:
            Result with "results" (None when resuming), "rewards" and "resumed"
        """
        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)

        if match.draft.completed:
            logger.info(f"Match {match_id} already has results; resuming reward distribution")
            distributed = self.reward_service.distribute_rewards(match_id, now=now)
            if not distributed.success:
                return distributed
            return Result.ok({"results": None, "rewards": distributed.value, "resumed": True})

        processed = self.results_service.process_results(match_id, results)
        if not processed.success:
            return processed

        distributed = self.reward_service.distribute_rewards(match_id, now=now)
        if not distributed.success:
            logger.warning(
                f"Match {match_id} results recorded but distribution failed: {distributed.error}"
            )
            return distributed

        return Result.ok(
            {"results": processed.value, "rewards": distributed.value, "resumed": False}
        )
