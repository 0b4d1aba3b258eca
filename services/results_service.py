"""
Records draft results for a match and settles its pending predictions.
"""

from __future__ import annotations

import logging

from domain.models.draft_results import DraftResults
from domain.models.predictor import RESULTS_ACCEPTING_STATUSES
from repositories.interfaces import IPredictorMatchRepository
from services import error_codes
from services.draft_rules import DraftRuleRegistry, build_default_rules
from services.result import Result

logger = logging.getLogger("predictor_bot.services.results")


class ResultsService:
    """
    Stores the draft outcome, completes the match and marks every pending
    prediction won or lost. Balances are not touched here; reward distribution
    runs separately afterwards.
    """

    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        rules: DraftRuleRegistry | None = None,
    ):
        self.match_repo = match_repo
        self.rules = rules or build_default_rules()

    def process_results(self, match_id: int, results: dict) -> Result[dict]:
        """
        Apply the admin-submitted draft results to a match.

        Args:
            match_id: Match to settle
            results: {"firstBan": {...}, "firstPick": {...}, "mostBanned": ..., "picks": {...}};
                missing fields never match a choice

        Returns:
            Result with processed_bets, winning_bets and winning_predictions.
            winning_bets counts bets holding at least one won prediction.
        """
        if not isinstance(results, dict):
            return Result.fail("Results must be an object.", code=error_codes.INVALID_DATA)

        draft = DraftResults.from_payload(results)
        try:
            summary = self.match_repo.record_results_atomic(
                match_id,
                results,
                lambda type_tag, choice: self.rules.resolve(draft, type_tag, choice),
                {status.value for status in RESULTS_ACCEPTING_STATUSES},
            )
        except ValueError as e:
            return Result.from_exception(e, default_code=error_codes.STATE_ERROR)

        logger.info(
            f"Results recorded for match {match_id}: {summary['processed_bets']} bet(s), "
            f"{summary['winning_bets']} winning, "
            f"{summary['winning_predictions']} winning prediction(s)"
        )
        return Result.ok(
            {
                "match_id": match_id,
                "processed_bets": summary["processed_bets"],
                "winning_bets": summary["winning_bets"],
                "winning_predictions": summary["winning_predictions"],
            }
        )
