"""
Closes betting windows shortly before matches start.

Closing is polled: sweep() runs on a fixed tick, so a window can close up to one
tick after the close_lead_seconds mark.
"""

from __future__ import annotations

import logging
import time

import config
from domain.models.predictor import MatchStatus, PredictorMatch
from repositories.interfaces import IPredictorMatchRepository
from services.notification_service import NotificationService

logger = logging.getLogger("predictor_bot.services.betting_window")


class BettingWindowService:
    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        notification_service: NotificationService | None = None,
        close_lead_seconds: int | None = None,
        notice_seconds: int | None = None,
    ):
        self.match_repo = match_repo
        self.notification_service = notification_service
        self.close_lead_seconds = (
            config.BETTING_CLOSE_LEAD_SECONDS if close_lead_seconds is None else close_lead_seconds
        )
        self.notice_seconds = (
            config.MATCH_STARTING_NOTICE_SECONDS if notice_seconds is None else notice_seconds
        )

    def close_if_due(self, match: PredictorMatch, now: int | None = None) -> dict:
        """
        Close every prediction type and move the match live if its window is over.

        A match more than close_lead_seconds from start is left alone. Repeating
        the call after closing changes nothing and reports closed=False.

        Returns:
            Dict with match_id and closed
        """
        now = int(time.time()) if now is None else now
        if match.seconds_until_start(now) > self.close_lead_seconds:
            return {"match_id": match.match_id, "closed": False}

        changes = self.match_repo.close_betting_atomic(match.match_id)
        closed = changes["types_closed"] > 0 or changes["went_live"]
        if closed:
            logger.info(
                f"Betting closed for match {match.match_id}: "
                f"{changes['types_closed']} type(s) closed, went_live={changes['went_live']}"
            )
        return {"match_id": match.match_id, "closed": closed}

    def close_match_by_id(self, match_id: int, now: int | None = None) -> dict | None:
        """close_if_due for a match ID; None if the match does not exist."""
        match = self.match_repo.get_match(match_id)
        if match is None:
            return None
        return self.close_if_due(match, now=now)

    def sweep(self, now: int | None = None) -> dict:
        """
        One scheduler tick: send due start notices, close due windows, then purge
        expired notifications.

        A failure on one match is logged and counted; the other matches are
        still processed. A start notice whose fan-out fails is released so the
        next tick retries it.

        Returns:
            Dict with closed_count, failed_count, notified_matches,
            notice_failed_count and expired_notifications
        """
        now = int(time.time()) if now is None else now
        notified_matches, notice_failed_count = self._send_start_notices(now)

        closed_count = 0
        failed_count = 0
        for match in self.match_repo.get_upcoming_matches_starting_before(
            now + self.close_lead_seconds
        ):
            try:
                if self.close_if_due(match, now=now)["closed"]:
                    closed_count += 1
            except Exception as e:
                failed_count += 1
                logger.error(f"Failed to close betting for match {match.match_id}: {e}", exc_info=True)

        expired_notifications = self._purge_expired_notifications(now)

        if closed_count or failed_count or notice_failed_count:
            logger.info(
                f"Betting sweep: closed {closed_count}, failed {failed_count}, "
                f"notice failures {notice_failed_count}"
            )
        return {
            "closed_count": closed_count,
            "failed_count": failed_count,
            "notified_matches": notified_matches,
            "notice_failed_count": notice_failed_count,
            "expired_notifications": expired_notifications,
        }

    def _send_start_notices(self, now: int) -> tuple[int, int]:
        if self.notification_service is None:
            return 0, 0

        notified = failed = 0
        for match in self.match_repo.get_matches_pending_start_notice(now + self.notice_seconds):
            if match.status != MatchStatus.UPCOMING:
                continue
            try:
                if self._notify_match_start(match.match_id, now):
                    notified += 1
            except Exception as e:
                failed += 1
                logger.error(
                    f"Failed to send starting notice for match {match.match_id}: {e}", exc_info=True
                )
        return notified, failed

    def _notify_match_start(self, match_id: int, now: int) -> bool:
        # Claim first so overlapping ticks never notify twice
        if not self.match_repo.mark_start_notified(match_id, now):
            return False
        try:
            counts = self.notification_service.notify_match_starting_all(match_id, now=now)
        except Exception:
            self.match_repo.release_start_notice(match_id, now)
            raise
        logger.info(
            f"Match {match_id} starting notice: sent {counts['sent']}, failed {counts['failed']}"
        )
        return True

    def _purge_expired_notifications(self, now: int) -> int:
        if self.notification_service is None:
            return 0
        try:
            return self.notification_service.cleanup_expired(now)
        except Exception as e:
            logger.error(f"Failed to purge expired notifications: {e}", exc_info=True)
            return 0
