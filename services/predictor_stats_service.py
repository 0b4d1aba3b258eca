"""
Read-only predictor queries: match pool stats, bet lookups and user history.

Nothing here is persisted; every figure is derived on each call.
"""

from __future__ import annotations

import math

from domain.models.predictor import PredictionStatus, PredictorBet
from repositories.interfaces import IPredictorBetRepository, IPredictorMatchRepository
from services import error_codes
from services.result import Result

VALID_BET_STATUS_FILTERS = {status.value for status in PredictionStatus}


def _percent(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


class PredictorStatsService:
    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        bet_repo: IPredictorBetRepository,
    ):
        self.match_repo = match_repo
        self.bet_repo = bet_repo

    def get_match_stats(self, match_id: int) -> Result[dict]:
        """
        Per-type stake breakdown for a match.

        Returns:
            Result with {"match_id", "stats": [{"type", "total_bets", "total_amount",
            "participants", "options": [{"choice", "bets_count", "total_amount",
            "percentage"}]}]}
        """
        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)

        stats: dict[str, dict] = {}
        participants: dict[str, set[int]] = {}
        for ptype in match.prediction_types:
            stats[ptype.type] = {
                "type": ptype.type,
                "total_bets": 0,
                "total_amount": 0,
                "participants": 0,
                "options": {
                    choice: {"choice": choice, "bets_count": 0, "total_amount": 0, "percentage": 0.0}
                    for choice in ptype.options
                },
            }
            participants[ptype.type] = set()

        for row in self.bet_repo.get_match_prediction_rows(match_id):
            type_stats = stats.get(row["type"])
            if type_stats is None:
                continue
            type_stats["total_bets"] += 1
            type_stats["total_amount"] += row["bet_amount"]
            participants[row["type"]].add(row["discord_id"])
            option = type_stats["options"].get(row["choice"])
            if option is not None:
                option["bets_count"] += 1
                option["total_amount"] += row["bet_amount"]

        for type_tag, type_stats in stats.items():
            for option in type_stats["options"].values():
                option["percentage"] = _percent(option["total_amount"], type_stats["total_amount"])
            type_stats["participants"] = len(participants[type_tag])
            type_stats["options"] = list(type_stats["options"].values())

        return Result.ok({"match_id": match_id, "stats": list(stats.values())})

    def get_bet(self, bet_id: int, discord_id: int) -> Result[PredictorBet]:
        """A single bet, visible only to its owner."""
        bet = self.bet_repo.get_bet(bet_id)
        if bet is None:
            return Result.fail("Bet not found.", code=error_codes.BET_NOT_FOUND)
        if bet.discord_id != discord_id:
            return Result.fail(
                "You do not have permission to view this bet.", code=error_codes.FORBIDDEN
            )
        return Result.ok(bet)

    def get_user_bets(
        self,
        discord_id: int,
        status: str | None = None,
        game: str | None = None,
        limit: int = 20,
        page: int = 1,
    ) -> dict:
        """
        A page of the user's bets, newest first.

        Unknown status values are ignored rather than rejected.

        Returns:
            Dict with bets and pagination {"total", "page", "limit", "pages"}
        """
        if status not in VALID_BET_STATUS_FILTERS:
            status = None
        limit = max(1, limit)
        page = max(1, page)

        bets = self.bet_repo.get_user_bets(
            discord_id, status=status, game=game, limit=limit, offset=(page - 1) * limit
        )
        total = self.bet_repo.count_user_bets(discord_id, status=status, game=game)
        return {
            "bets": bets,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": math.ceil(total / limit),
            },
        }

    def get_user_history_stats(self, discord_id: int) -> dict:
        """Lifetime prediction record for a user."""
        wins = losses = pending = 0
        total_bet_amount = 0
        total_win_amount = 0.0
        total_loss_amount = 0
        for bet in self.bet_repo.get_all_user_bets(discord_id):
            total_bet_amount += bet.total_bet
            for pred in bet.predictions:
                if pred.status == PredictionStatus.WON:
                    wins += 1
                    total_win_amount += pred.reward
                elif pred.status == PredictionStatus.LOST:
                    losses += 1
                    total_loss_amount += pred.bet_amount
                else:
                    pending += 1

        return {
            "total_predictions": wins + losses + pending,
            "total_wins": wins,
            "total_losses": losses,
            "total_pending": pending,
            "success_rate": _percent(wins, wins + losses),
            "total_bet_amount": total_bet_amount,
            "total_win_amount": round(total_win_amount, 2),
            "total_loss_amount": total_loss_amount,
            "net_profit": round(total_win_amount - total_bet_amount, 2),
        }
