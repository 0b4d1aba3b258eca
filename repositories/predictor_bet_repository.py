"""
Repository for predictor bets and the predictions inside them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from domain.models.predictor import Prediction, PredictionStatus, PredictorBet
from repositories.base_repository import BaseRepository
from repositories.errors import PredictorConflictError
from repositories.interfaces import IPredictorBetRepository
from services import error_codes

logger = logging.getLogger("predictor_bot.repositories.predictor_bet")


class PredictorBetRepository(BaseRepository, IPredictorBetRepository):
    """
    Data access for predictor_bets and bet_predictions.

    Every write that touches balances or pools runs in atomic_transaction().
    """

    # --- Row mapping ---

    @staticmethod
    def _row_to_prediction(row) -> Prediction:
        return Prediction(
            prediction_id=row["prediction_id"],
            type=row["type"],
            choice=row["choice"],
            bet_amount=int(row["bet_amount"]),
            odds=float(row["odds"]),
            status=PredictionStatus(row["status"]),
            reward=float(row["reward"]),
        )

    def _load_bets(self, cursor, rows) -> list[PredictorBet]:
        if not rows:
            return []
        bet_ids = [row["bet_id"] for row in rows]
        placeholders = ",".join("?" * len(bet_ids))
        cursor.execute(
            f"""
            SELECT * FROM bet_predictions
            WHERE bet_id IN ({placeholders})
            ORDER BY bet_id, position
            """,
            bet_ids,
        )
        predictions: dict[int, list[Prediction]] = {bet_id: [] for bet_id in bet_ids}
        for pred_row in cursor.fetchall():
            predictions[pred_row["bet_id"]].append(self._row_to_prediction(pred_row))

        return [
            PredictorBet(
                bet_id=row["bet_id"],
                discord_id=row["discord_id"],
                match_id=row["match_id"],
                predictions=predictions[row["bet_id"]],
                total_bet=int(row["total_bet"]),
                total_reward=float(row["total_reward"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    # --- Placement ---

    def place_bet_atomic(
        self,
        discord_id: int,
        match_id: int,
        predictions: list[dict],
        now: int,
        close_lead_seconds: int,
        price: Callable[[int, int, int], float],
    ) -> PredictorBet:
        """
        Place a bet atomically (re-check, price, insert, debit, grow pools).

        - Re-checks match status, betting window, type/choice validity and closed flags
        - Re-checks duplicate bet and balance
        - Prices every prediction against the pool snapshot taken before this bet,
          via price(type_pool, type_bets_count, option_pool)
        - Inserts the bet and its predictions
        - Debits the account and increments reward_pool and bets_count per type

        Args:
            predictions: List of {"type", "choice", "bet_amount"} dicts

        Raises:
            PredictorConflictError: If any precondition fails under the write lock
        """
        if not predictions:
            raise PredictorConflictError("No predictions provided.", error_codes.NO_PREDICTIONS)

        total_bet = sum(int(p["bet_amount"]) for p in predictions)

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute(
                "SELECT status, start_time FROM predictor_matches WHERE match_id = ?",
                (match_id,),
            )
            match = cursor.fetchone()
            if not match:
                raise PredictorConflictError("Match not found.", error_codes.MATCH_NOT_FOUND)
            if match["status"] != "upcoming":
                raise PredictorConflictError(
                    "Betting is closed for this match.", error_codes.BETTING_CLOSED
                )
            if match["start_time"] - now <= close_lead_seconds:
                raise PredictorConflictError(
                    "Betting closes shortly before the match starts.",
                    error_codes.BETTING_CLOSED,
                )

            cursor.execute(
                """
                SELECT type, options, reward_pool, bets_count, closed
                FROM prediction_types WHERE match_id = ?
                """,
                (match_id,),
            )
            types = {row["type"]: row for row in cursor.fetchall()}
            for pred in predictions:
                ptype = types.get(pred["type"])
                if ptype is None:
                    raise PredictorConflictError(
                        f"Unknown prediction type: {pred['type']}.",
                        error_codes.INVALID_PREDICTION_TYPE,
                    )
                if ptype["closed"]:
                    raise PredictorConflictError(
                        f"Betting is closed for {pred['type']}.", error_codes.BETTING_CLOSED
                    )
                options = json.loads(ptype["options"])
                if pred["choice"] not in options:
                    raise PredictorConflictError(
                        f"Invalid choice for {pred['type']}. Options: {', '.join(options)}.",
                        error_codes.INVALID_CHOICE,
                    )

            cursor.execute("SELECT balance FROM players WHERE discord_id = ?", (discord_id,))
            player = cursor.fetchone()
            if not player:
                raise PredictorConflictError(
                    "Player not found. Please register first.", error_codes.PLAYER_NOT_FOUND
                )
            balance = float(player["balance"])
            if balance < total_bet:
                raise PredictorConflictError(
                    f"Insufficient balance. You have {balance:g}, need {total_bet}.",
                    error_codes.INSUFFICIENT_FUNDS,
                )

            cursor.execute(
                "SELECT 1 FROM predictor_bets WHERE discord_id = ? AND match_id = ?",
                (discord_id, match_id),
            )
            if cursor.fetchone():
                raise PredictorConflictError(
                    "You already have a bet on this match.", error_codes.DUPLICATE_BET
                )

            # Price everything against the pre-bet snapshot
            priced: list[tuple[dict, float]] = []
            for pred in predictions:
                ptype = types[pred["type"]]
                option_pool = self._option_stake_total(cursor, match_id, pred["type"], pred["choice"])
                odds = price(int(ptype["reward_pool"]), int(ptype["bets_count"]), option_pool)
                priced.append((pred, odds))

            cursor.execute(
                """
                INSERT INTO predictor_bets (discord_id, match_id, total_bet, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (discord_id, match_id, total_bet, now),
            )
            bet_id = cursor.lastrowid

            for position, (pred, odds) in enumerate(priced):
                cursor.execute(
                    """
                    INSERT INTO bet_predictions (bet_id, position, type, choice, bet_amount, odds)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (bet_id, position, pred["type"], pred["choice"], int(pred["bet_amount"]), odds),
                )
                cursor.execute(
                    """
                    UPDATE prediction_types
                    SET reward_pool = reward_pool + ?, bets_count = bets_count + 1
                    WHERE match_id = ? AND type = ?
                    """,
                    (int(pred["bet_amount"]), match_id, pred["type"]),
                )

            cursor.execute(
                """
                UPDATE players
                SET balance = ROUND(balance - ?, 2), updated_at = CURRENT_TIMESTAMP
                WHERE discord_id = ?
                """,
                (total_bet, discord_id),
            )

            return self._load_bets(
                cursor,
                cursor.execute("SELECT * FROM predictor_bets WHERE bet_id = ?", (bet_id,)).fetchall(),
            )[0]

    @staticmethod
    def _option_stake_total(cursor, match_id: int, prediction_type: str, choice: str) -> int:
        cursor.execute(
            """
            SELECT COALESCE(SUM(bp.bet_amount), 0) AS total
            FROM bet_predictions bp
            JOIN predictor_bets b ON b.bet_id = bp.bet_id
            WHERE b.match_id = ? AND bp.type = ? AND bp.choice = ?
            """,
            (match_id, prediction_type, choice),
        )
        return int(cursor.fetchone()["total"])

    # --- Reads ---

    def get_bet(self, bet_id: int) -> PredictorBet | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM predictor_bets WHERE bet_id = ?", (bet_id,))
            bets = self._load_bets(cursor, cursor.fetchall())
            return bets[0] if bets else None

    def get_user_bet_for_match(self, discord_id: int, match_id: int) -> PredictorBet | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM predictor_bets WHERE discord_id = ? AND match_id = ?",
                (discord_id, match_id),
            )
            bets = self._load_bets(cursor, cursor.fetchall())
            return bets[0] if bets else None

    def get_bets_for_match(self, match_id: int) -> list[PredictorBet]:
        """All bets on a match in placement order."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM predictor_bets WHERE match_id = ? ORDER BY bet_id",
                (match_id,),
            )
            return self._load_bets(cursor, cursor.fetchall())

    def get_bettor_ids_for_match(self, match_id: int) -> list[int]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT DISTINCT discord_id FROM predictor_bets WHERE match_id = ? ORDER BY discord_id",
                (match_id,),
            )
            return [row["discord_id"] for row in cursor.fetchall()]

    def get_option_stake_total(self, match_id: int, prediction_type: str, choice: str) -> int:
        """Sum of stakes placed on one option of one type."""
        with self.connection() as conn:
            return self._option_stake_total(conn.cursor(), match_id, prediction_type, choice)

    def get_option_stake_totals(self, match_id: int) -> dict[tuple[str, str], int]:
        """Stake sums keyed by (type, choice) for every option that has stakes."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT bp.type, bp.choice, SUM(bp.bet_amount) AS total
                FROM bet_predictions bp
                JOIN predictor_bets b ON b.bet_id = bp.bet_id
                WHERE b.match_id = ?
                GROUP BY bp.type, bp.choice
                """,
                (match_id,),
            )
            return {(row["type"], row["choice"]): int(row["total"]) for row in cursor.fetchall()}

    def get_match_prediction_rows(self, match_id: int) -> list[dict]:
        """Flat (discord_id, type, choice, bet_amount) rows for stats aggregation."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT b.discord_id, bp.type, bp.choice, bp.bet_amount
                FROM bet_predictions bp
                JOIN predictor_bets b ON b.bet_id = bp.bet_id
                WHERE b.match_id = ?
                ORDER BY b.bet_id, bp.position
                """,
                (match_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def _user_bets_filter(discord_id: int, status: str | None, game: str | None):
        clauses = ["b.discord_id = ?"]
        params: list = [discord_id]
        if status:
            clauses.append(
                "EXISTS (SELECT 1 FROM bet_predictions bp WHERE bp.bet_id = b.bet_id AND bp.status = ?)"
            )
            params.append(status)
        if game:
            clauses.append("m.game = ?")
            params.append(game)
        return " AND ".join(clauses), params

    def get_user_bets(
        self,
        discord_id: int,
        status: str | None = None,
        game: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[PredictorBet]:
        """
        A user's bets, newest first.

        status keeps bets holding at least one prediction in that status;
        game filters on the match's game.
        """
        where, params = self._user_bets_filter(discord_id, status, game)
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT b.* FROM predictor_bets b
                JOIN predictor_matches m ON m.match_id = b.match_id
                WHERE {where}
                ORDER BY b.created_at DESC, b.bet_id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            return self._load_bets(cursor, cursor.fetchall())

    def count_user_bets(
        self, discord_id: int, status: str | None = None, game: str | None = None
    ) -> int:
        where, params = self._user_bets_filter(discord_id, status, game)
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT COUNT(*) AS count FROM predictor_bets b
                JOIN predictor_matches m ON m.match_id = b.match_id
                WHERE {where}
                """,
                params,
            )
            return int(cursor.fetchone()["count"])

    def get_all_user_bets(self, discord_id: int) -> list[PredictorBet]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM predictor_bets WHERE discord_id = ? ORDER BY bet_id",
                (discord_id,),
            )
            return self._load_bets(cursor, cursor.fetchall())

    # --- Settlement ---

    def apply_rewards_atomic(self, match_id: int, rewards: list[dict], distributed_at: int) -> dict:
        """
        Record prediction rewards, add them to bet totals and credit accounts.

        Args:
            rewards: List of {"prediction_id", "bet_id", "discord_id", "reward"} dicts

        Returns:
            Dict with credited_users (list of discord IDs) and total_distributed

        Raises:
            PredictorConflictError: If the match is missing, the draft is not completed,
                or rewards were already distributed
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT draft_completed, rewards_distributed_at
                FROM predictor_matches WHERE match_id = ?
                """,
                (match_id,),
            )
            match = cursor.fetchone()
            if not match:
                raise PredictorConflictError("Match not found.", error_codes.MATCH_NOT_FOUND)
            if not match["draft_completed"]:
                raise PredictorConflictError(
                    "Draft results have not been recorded yet.", error_codes.DRAFT_NOT_COMPLETED
                )
            if match["rewards_distributed_at"] is not None:
                raise PredictorConflictError(
                    "Rewards were already distributed for this match.",
                    error_codes.REWARDS_ALREADY_DISTRIBUTED,
                )

            credited: list[int] = []
            total = 0.0
            for item in rewards:
                reward = item["reward"]
                cursor.execute(
                    """
                    UPDATE bet_predictions SET reward = ?
                    WHERE prediction_id = ? AND status = 'won'
                    """,
                    (reward, item["prediction_id"]),
                )
                if cursor.rowcount == 0:
                    continue
                cursor.execute(
                    """
                    UPDATE predictor_bets SET total_reward = ROUND(total_reward + ?, 2)
                    WHERE bet_id = ?
                    """,
                    (reward, item["bet_id"]),
                )
                cursor.execute(
                    """
                    UPDATE players
                    SET balance = ROUND(balance + ?, 2), updated_at = CURRENT_TIMESTAMP
                    WHERE discord_id = ?
                    """,
                    (reward, item["discord_id"]),
                )
                if cursor.rowcount == 0:
                    logger.warning(
                        f"No account for user {item['discord_id']}; reward {reward} "
                        f"recorded on bet {item['bet_id']} but not credited"
                    )
                    continue
                total += reward
                if item["discord_id"] not in credited:
                    credited.append(item["discord_id"])

            cursor.execute(
                "UPDATE predictor_matches SET rewards_distributed_at = ? WHERE match_id = ?",
                (distributed_at, match_id),
            )

            return {"credited_users": credited, "total_distributed": round(total, 2)}
