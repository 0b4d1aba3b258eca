"""
Repository for predictor matches and their prediction types (the pool ledger).
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

from domain.models.predictor import (
    DraftOutcome,
    MatchStatus,
    PredictionStatus,
    PredictionType,
    PredictorMatch,
    TeamInfo,
)
from repositories.base_repository import BaseRepository
from repositories.errors import PredictorConflictError
from repositories.interfaces import IPredictorMatchRepository
from services import error_codes

logger = logging.getLogger("predictor_bot.repositories.predictor_match")


class PredictorMatchRepository(BaseRepository, IPredictorMatchRepository):
    """
    Handles the predictor_matches and prediction_types tables.

    Pool and bet-count increments are done by PredictorBetRepository.place_bet_atomic,
    inside the same transaction as the bet insert and balance debit.
    """

    UPDATABLE_FIELDS = {
        "game",
        "team1_name",
        "team1_logo_url",
        "team2_name",
        "team2_logo_url",
        "start_time",
    }

    # --- Row mapping ---

    @staticmethod
    def _row_to_prediction_type(row) -> PredictionType:
        return PredictionType(
            type=row["type"],
            title=row["title"],
            options=json.loads(row["options"]),
            reward_pool=int(row["reward_pool"]),
            bets_count=int(row["bets_count"]),
            closed=bool(row["closed"]),
        )

    def _load_matches(self, cursor, rows) -> list[PredictorMatch]:
        if not rows:
            return []
        match_ids = [row["match_id"] for row in rows]
        placeholders = ",".join("?" * len(match_ids))
        cursor.execute(
            f"""
            SELECT * FROM prediction_types
            WHERE match_id IN ({placeholders})
            ORDER BY match_id, position
            """,
            match_ids,
        )
        types_by_match: dict[int, list[PredictionType]] = {mid: [] for mid in match_ids}
        for type_row in cursor.fetchall():
            types_by_match[type_row["match_id"]].append(self._row_to_prediction_type(type_row))

        matches = []
        for row in rows:
            results = json.loads(row["draft_results"]) if row["draft_results"] else None
            matches.append(
                PredictorMatch(
                    match_id=row["match_id"],
                    game=row["game"],
                    team1=TeamInfo(name=row["team1_name"], logo_url=row["team1_logo_url"]),
                    team2=TeamInfo(name=row["team2_name"], logo_url=row["team2_logo_url"]),
                    start_time=int(row["start_time"]),
                    status=MatchStatus(row["status"]),
                    prediction_types=types_by_match[row["match_id"]],
                    draft=DraftOutcome(completed=bool(row["draft_completed"]), results=results),
                    start_notified_at=row["start_notified_at"],
                    rewards_distributed_at=row["rewards_distributed_at"],
                    created_at=row["created_at"],
                )
            )
        return matches

    # --- Reads ---

    def create_match(
        self,
        game: str,
        team1_name: str,
        team2_name: str,
        start_time: int,
        prediction_types: list[dict],
        team1_logo_url: str = "",
        team2_logo_url: str = "",
    ) -> int:
        """
        Create a match with its prediction types and return the match ID.

        Each prediction type dict holds "type", "options" and an optional "title".
        """
        created_at = int(time.time())
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO predictor_matches (
                    game, team1_name, team1_logo_url, team2_name, team2_logo_url,
                    start_time, status, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, 'upcoming', ?)
                """,
                (
                    game,
                    team1_name,
                    team1_logo_url,
                    team2_name,
                    team2_logo_url,
                    start_time,
                    created_at,
                ),
            )
            match_id = cursor.lastrowid
            cursor.executemany(
                """
                INSERT INTO prediction_types (match_id, type, title, options, position)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (
                        match_id,
                        ptype["type"],
                        ptype.get("title") or "",
                        json.dumps(list(ptype["options"])),
                        position,
                    )
                    for position, ptype in enumerate(prediction_types)
                ],
            )
            return match_id

    def get_match(self, match_id: int) -> PredictorMatch | None:
        """Get a match with its prediction types, or None."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM predictor_matches WHERE match_id = ?", (match_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._load_matches(cursor, [row])[0]

    def list_matches(
        self, status: str | None = None, game: str | None = None, limit: int = 50
    ) -> list[PredictorMatch]:
        """List matches ordered by start time, optionally filtered by status and game."""
        clauses = []
        params: list = []
        if status:
            clauses.append("status = ?")
            params.append(status)
        if game:
            clauses.append("game = ?")
            params.append(game)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(limit)
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT * FROM predictor_matches
                {where}
                ORDER BY start_time ASC, match_id ASC
                LIMIT ?
                """,
                params,
            )
            return self._load_matches(cursor, cursor.fetchall())

    def get_upcoming_matches_starting_before(self, cutoff: int) -> list[PredictorMatch]:
        """Upcoming matches whose start time is at or before cutoff."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM predictor_matches
                WHERE status = 'upcoming' AND start_time <= ?
                ORDER BY start_time ASC
                """,
                (cutoff,),
            )
            return self._load_matches(cursor, cursor.fetchall())

    def get_matches_pending_start_notice(self, cutoff: int) -> list[PredictorMatch]:
        """Upcoming matches starting at or before cutoff that have not been announced."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM predictor_matches
                WHERE status = 'upcoming' AND start_notified_at IS NULL AND start_time <= ?
                ORDER BY start_time ASC
                """,
                (cutoff,),
            )
            return self._load_matches(cursor, cursor.fetchall())

    # --- Writes ---

    def update_match_details(self, match_id: int, **fields) -> bool:
        """Update descriptive fields. Returns True if the match exists."""
        unknown = set(fields) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if not fields:
            return self.get_match(match_id) is not None

        assignments = ", ".join(f"{name} = ?" for name in fields)
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE predictor_matches
                SET {assignments}, updated_at = CURRENT_TIMESTAMP
                WHERE match_id = ?
                """,
                (*fields.values(), match_id),
            )
            return cursor.rowcount > 0

    def transition_status(
        self,
        match_id: int,
        from_status: MatchStatus,
        to_status: MatchStatus,
        close_types: bool,
    ) -> bool:
        """
        Compare-and-set a status change.

        Returns False when the match is no longer in from_status, so two admins
        racing on the same match cannot both apply a transition.
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE predictor_matches
                SET status = ?, updated_at = CURRENT_TIMESTAMP
                WHERE match_id = ? AND status = ?
                """,
                (to_status.value, match_id, from_status.value),
            )
            if cursor.rowcount == 0:
                return False
            if close_types:
                cursor.execute(
                    "UPDATE prediction_types SET closed = 1 WHERE match_id = ? AND closed = 0",
                    (match_id,),
                )
            return True

    def close_betting_atomic(self, match_id: int) -> dict:
        """
        Close every prediction type and move an upcoming match to live.

        Both updates are guarded on the current state, so repeating the call
        changes nothing and reports zero changes.

        Returns:
            Dict with types_closed (int) and went_live (bool)
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE prediction_types SET closed = 1 WHERE match_id = ? AND closed = 0",
                (match_id,),
            )
            types_closed = cursor.rowcount
            cursor.execute(
                """
                UPDATE predictor_matches
                SET status = 'live', updated_at = CURRENT_TIMESTAMP
                WHERE match_id = ? AND status = 'upcoming'
                """,
                (match_id,),
            )
            went_live = cursor.rowcount > 0
            return {"types_closed": types_closed, "went_live": went_live}

    def mark_start_notified(self, match_id: int, notified_at: int) -> bool:
        """Claim the start notice for a match. Only the first caller gets True."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE predictor_matches
                SET start_notified_at = ?
                WHERE match_id = ? AND start_notified_at IS NULL
                """,
                (notified_at, match_id),
            )
            return cursor.rowcount > 0

    def release_start_notice(self, match_id: int, notified_at: int) -> None:
        """Undo a claim made by mark_start_notified so a later tick retries it."""
        with self.connection() as conn:
            conn.execute(
                """
                UPDATE predictor_matches
                SET start_notified_at = NULL
                WHERE match_id = ? AND start_notified_at = ?
                """,
                (match_id, notified_at),
            )

    def record_results_atomic(
        self,
        match_id: int,
        results: dict,
        is_winner: Callable[[str, str], bool],
        accepted_statuses: set[str],
    ) -> dict:
        """
        Store the draft outcome, complete the match and settle pending predictions.

        is_winner(type_tag, choice) decides each still-pending prediction. Already
        settled predictions are left untouched.

        Returns:
            Dict with processed_bets, winning_predictions, winning_bets, bet_ids
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT status FROM predictor_matches WHERE match_id = ?",
                (match_id,),
            )
            row = cursor.fetchone()
            if not row:
                raise PredictorConflictError("Match not found.", error_codes.MATCH_NOT_FOUND)
            if row["status"] not in accepted_statuses:
                raise PredictorConflictError(
                    f"Match is {row['status']}; results can only be set while "
                    f"{' or '.join(sorted(accepted_statuses))}.",
                    error_codes.INVALID_MATCH_STATUS,
                )

            cursor.execute(
                """
                UPDATE predictor_matches
                SET draft_completed = 1, draft_results = ?, status = 'completed',
                    updated_at = CURRENT_TIMESTAMP
                WHERE match_id = ?
                """,
                (json.dumps(results), match_id),
            )

            cursor.execute(
                """
                SELECT b.bet_id, bp.prediction_id, bp.type, bp.choice, bp.status
                FROM predictor_bets b
                LEFT JOIN bet_predictions bp ON bp.bet_id = b.bet_id
                WHERE b.match_id = ?
                ORDER BY b.bet_id, bp.position
                """,
                (match_id,),
            )
            rows = cursor.fetchall()

            bet_ids: list[int] = []
            winning_bet_ids: set[int] = set()
            winning_predictions = 0
            updates: list[tuple[str, int]] = []
            for pred in rows:
                if not bet_ids or bet_ids[-1] != pred["bet_id"]:
                    bet_ids.append(pred["bet_id"])
                if pred["prediction_id"] is None or pred["status"] != PredictionStatus.PENDING.value:
                    continue
                won = is_winner(pred["type"], pred["choice"])
                if won:
                    winning_predictions += 1
                    winning_bet_ids.add(pred["bet_id"])
                status = PredictionStatus.WON if won else PredictionStatus.LOST
                updates.append((status.value, pred["prediction_id"]))

            cursor.executemany(
                """
                UPDATE bet_predictions SET status = ?
                WHERE prediction_id = ? AND status = 'pending'
                """,
                updates,
            )

            return {
                "processed_bets": len(bet_ids),
                "winning_predictions": winning_predictions,
                "winning_bets": len(winning_bet_ids),
                "bet_ids": bet_ids,
            }
