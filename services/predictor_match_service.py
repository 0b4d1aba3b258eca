"""
Admin operations on predictor matches: creation, edits and status changes.
"""

from __future__ import annotations

import logging

import config
from domain.models.predictor import MatchStatus, PredictorMatch
from repositories.interfaces import IPredictorMatchRepository
from services import error_codes
from services.result import Result

logger = logging.getLogger("predictor_bot.services.predictor_match")

# Statuses that also close every prediction type
CLOSING_STATUSES = {MatchStatus.LIVE, MatchStatus.DRAFT_PHASE, MatchStatus.CANCELLED}

TEAM_SLOTS = ("team1", "team2")


class PredictorMatchService:
    def __init__(
        self,
        match_repo: IPredictorMatchRepository,
        games: list[str] | None = None,
    ):
        self.match_repo = match_repo
        self.games = list(games) if games is not None else list(config.PREDICTOR_GAMES)

    def _validate_game(self, game: str) -> Result | None:
        if game not in self.games:
            return Result.fail(
                f"Game must be one of: {', '.join(self.games)}.", code=error_codes.INVALID_GAME
            )
        return None

    @staticmethod
    def _validate_prediction_types(prediction_types) -> Result | None:
        if not isinstance(prediction_types, list):
            return Result.fail(
                "Prediction types must be a list.", code=error_codes.INVALID_PREDICTION_DATA
            )
        seen = set()
        for ptype in prediction_types:
            if not isinstance(ptype, dict) or not ptype.get("type"):
                return Result.fail(
                    "Each prediction type needs a type tag.",
                    code=error_codes.INVALID_PREDICTION_DATA,
                )
            tag = ptype["type"]
            if tag in seen:
                return Result.fail(
                    f"Prediction type {tag} is listed twice.",
                    code=error_codes.INVALID_PREDICTION_DATA,
                )
            seen.add(tag)
            options = ptype.get("options")
            if (
                not isinstance(options, list)
                or not options
                or not all(isinstance(o, str) and o for o in options)
            ):
                return Result.fail(
                    f"Prediction type {tag} needs a non-empty list of options.",
                    code=error_codes.INVALID_PREDICTION_DATA,
                )
            if len(set(options)) != len(options):
                return Result.fail(
                    f"Prediction type {tag} has duplicate options.",
                    code=error_codes.INVALID_PREDICTION_DATA,
                )
        return None

    def create_match(
        self,
        game: str,
        team1_name: str,
        team2_name: str,
        start_time: int,
        prediction_types: list[dict],
        team1_logo_url: str = "",
        team2_logo_url: str = "",
    ) -> Result[PredictorMatch]:
        """
        Create an upcoming match.

        Args:
            prediction_types: List of {"type", "options", "title"?} dicts
        """
        if not game or not team1_name or not team2_name or not start_time:
            return Result.fail(
                "Game, team names, and start time are required.", code=error_codes.INVALID_DATA
            )
        invalid = self._validate_game(game) or self._validate_prediction_types(prediction_types)
        if invalid:
            return invalid

        match_id = self.match_repo.create_match(
            game=game,
            team1_name=team1_name,
            team2_name=team2_name,
            start_time=int(start_time),
            prediction_types=prediction_types,
            team1_logo_url=team1_logo_url or "",
            team2_logo_url=team2_logo_url or "",
        )
        logger.info(
            f"Created match {match_id}: {team1_name} vs {team2_name} ({game}) "
            f"with {len(prediction_types)} prediction type(s)"
        )
        return Result.ok(self.match_repo.get_match(match_id))

    def get_match(self, match_id: int) -> Result[PredictorMatch]:
        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)
        return Result.ok(match)

    def list_matches(
        self, status: str | None = None, game: str | None = None, limit: int = 50
    ) -> list[PredictorMatch]:
        return self.match_repo.list_matches(status=status, game=game, limit=limit)

    def update_match(
        self,
        match_id: int,
        game: str | None = None,
        team1_name: str | None = None,
        team2_name: str | None = None,
        team1_logo_url: str | None = None,
        team2_logo_url: str | None = None,
        start_time: int | None = None,
    ) -> Result[PredictorMatch]:
        """Edit an upcoming match. Only the provided fields change."""
        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)
        if match.status != MatchStatus.UPCOMING:
            return Result.fail(
                f"Match is {match.status.value}; only upcoming matches can be edited.",
                code=error_codes.INVALID_MATCH_STATUS,
            )
        if game:
            invalid = self._validate_game(game)
            if invalid:
                return invalid

        fields = {
            "game": game or None,
            "team1_name": team1_name or None,
            "team2_name": team2_name or None,
            "team1_logo_url": team1_logo_url,
            "team2_logo_url": team2_logo_url,
            "start_time": int(start_time) if start_time else None,
        }
        self.match_repo.update_match_details(
            match_id, **{name: value for name, value in fields.items() if value is not None}
        )
        return Result.ok(self.match_repo.get_match(match_id))

    def set_team_logo(self, match_id: int, team: str, logo_url: str) -> Result[PredictorMatch]:
        """Set team1's or team2's logo URL."""
        if team not in TEAM_SLOTS:
            return Result.fail("Team must be team1 or team2.", code=error_codes.INVALID_TEAM)
        if not self.match_repo.update_match_details(match_id, **{f"{team}_logo_url": logo_url}):
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)
        return Result.ok(self.match_repo.get_match(match_id))

    def change_status(self, match_id: int, new_status: str) -> Result[PredictorMatch]:
        """
        Move a match forward along the status graph.

        Completion is reached by submitting results, not through this method.
        Leaving upcoming (live, draft_phase or cancelled) also closes every
        prediction type.
        """
        try:
            target = MatchStatus(new_status)
        except ValueError:
            return Result.fail(f"Invalid status: {new_status}.", code=error_codes.INVALID_STATUS)

        match = self.match_repo.get_match(match_id)
        if match is None:
            return Result.fail("Match not found.", code=error_codes.MATCH_NOT_FOUND)
        if target == MatchStatus.COMPLETED:
            return Result.fail(
                "Submit draft results to complete a match.",
                code=error_codes.INVALID_MATCH_STATUS,
            )
        if not match.can_transition_to(target):
            return Result.fail(
                f"Cannot change status from {match.status.value} to {target.value}.",
                code=error_codes.INVALID_MATCH_STATUS,
            )

        if not self.match_repo.transition_status(
            match_id, match.status, target, close_types=target in CLOSING_STATUSES
        ):
            return Result.fail(
                "Match status changed concurrently; try again.",
                code=error_codes.INVALID_MATCH_STATUS,
            )

        logger.info(f"Match {match_id} status: {match.status.value} -> {target.value}")
        return Result.ok(self.match_repo.get_match(match_id))

    def cancel_match(self, match_id: int) -> Result[PredictorMatch]:
        """Cancel a match. Existing bets are not refunded."""
        return self.change_status(match_id, MatchStatus.CANCELLED.value)
