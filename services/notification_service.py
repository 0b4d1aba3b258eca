"""
In-app notifications for predictor events.

Two events are sent: a "match starting" notice to everyone holding a bet on a
match that is about to close, and a won/lost result once a bet has been settled.
Fan-out is best effort: a failure for one user is logged and counted, and the
remaining users are still notified.
"""

from __future__ import annotations

import logging
import time

import config
from repositories.interfaces import (
    INotificationRepository,
    IPredictorBetRepository,
    IPredictorMatchRepository,
)
from services import error_codes
from services.result import Result

logger = logging.getLogger("predictor_bot.services.notifications")

MATCH_STARTING = "match_starting"
PREDICTION_RESULT = "prediction_result"


class NotificationService:
    def __init__(
        self,
        notification_repo: INotificationRepository,
        match_repo: IPredictorMatchRepository,
        bet_repo: IPredictorBetRepository,
        ttl_seconds: int | None = None,
        notice_seconds: int | None = None,
    ):
        self.notification_repo = notification_repo
        self.match_repo = match_repo
        self.bet_repo = bet_repo
        self.ttl_seconds = config.NOTIFICATION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.notice_seconds = (
            config.MATCH_STARTING_NOTICE_SECONDS if notice_seconds is None else notice_seconds
        )

    def _create(
        self, discord_id: int, kind: str, title: str, message: str, data: dict, now: int
    ) -> int:
        return self.notification_repo.create(
            discord_id=discord_id,
            kind=kind,
            title=title,
            message=message,
            data=data,
            created_at=now,
            expires_at=now + self.ttl_seconds,
        )

    # --- Single notifications ---

    def notify_match_starting(self, discord_id: int, match_id: int, now: int | None = None) -> int:
        """
        Tell a bettor their match is about to start.

        Raises:
            ValueError: If the match does not exist
        """
        now = int(time.time()) if now is None else now
        match = self.match_repo.get_match(match_id)
        if match is None:
            raise ValueError(f"Match {match_id} not found")

        minutes = max(1, self.notice_seconds // 60)
        return self._create(
            discord_id,
            MATCH_STARTING,
            "Match starting soon!",
            f"{match.team1.name} vs {match.team2.name} starts in {minutes} minutes.",
            {"match_id": match_id},
            now,
        )

    def notify_prediction_result(self, discord_id: int, bet_id: int, now: int | None = None) -> int:
        """
        Tell a bettor how their bet settled.

        Raises:
            ValueError: If the bet or its match does not exist
        """
        now = int(time.time()) if now is None else now
        bet = self.bet_repo.get_bet(bet_id)
        if bet is None:
            raise ValueError(f"Bet {bet_id} not found")
        match = self.match_repo.get_match(bet.match_id)
        if match is None:
            raise ValueError(f"Match {bet.match_id} not found")

        matchup = f"{match.team1.name} vs {match.team2.name}"
        if bet.has_won:
            title = "Congratulations, you won!"
            message = f"Your predictions for {matchup} came true. You won {bet.total_reward:g} coins!"
        else:
            title = "Prediction results"
            message = f"Unfortunately your predictions for {matchup} did not come true."

        return self._create(
            discord_id,
            PREDICTION_RESULT,
            title,
            message,
            {"match_id": match.match_id, "bet_id": bet_id, "reward": bet.total_reward},
            now,
        )

    # --- Fan-out ---

    def notify_match_starting_all(self, match_id: int, now: int | None = None) -> dict:
        """
        Send the starting notice to every bettor on a match.

        Returns:
            Dict with sent and failed counts
        """
        sent = failed = 0
        for discord_id in self.bet_repo.get_bettor_ids_for_match(match_id):
            try:
                self.notify_match_starting(discord_id, match_id, now=now)
                sent += 1
            except Exception as e:
                failed += 1
                logger.error(
                    f"Failed to send match-starting notice to {discord_id} for match {match_id}: {e}",
                    exc_info=True,
                )
        return {"sent": sent, "failed": failed}

    def notify_prediction_results_all(self, match_id: int, now: int | None = None) -> dict:
        """
        Send the result notice for every bet on a match.

        Returns:
            Dict with sent and failed counts
        """
        sent = failed = 0
        for bet in self.bet_repo.get_bets_for_match(match_id):
            try:
                self.notify_prediction_result(bet.discord_id, bet.bet_id, now=now)
                sent += 1
            except Exception as e:
                failed += 1
                logger.error(
                    f"Failed to send result notice to {bet.discord_id} for bet {bet.bet_id}: {e}",
                    exc_info=True,
                )
        return {"sent": sent, "failed": failed}

    # --- Inbox ---

    def get_user_notifications(
        self, discord_id: int, read: bool | None = None, limit: int = 50, offset: int = 0
    ) -> list[dict]:
        return self.notification_repo.get_for_user(discord_id, read=read, limit=limit, offset=offset)

    def mark_as_read(self, notification_id: int, discord_id: int) -> Result[dict]:
        notification = self.notification_repo.mark_as_read(notification_id, discord_id)
        if notification is None:
            return Result.fail("Notification not found.", code=error_codes.NOTIFICATION_NOT_FOUND)
        return Result.ok(notification)

    def cleanup_expired(self, now: int | None = None) -> int:
        now = int(time.time()) if now is None else now
        deleted = self.notification_repo.delete_expired(now)
        if deleted:
            logger.info(f"Cleaned up {deleted} expired notifications")
        return deleted
