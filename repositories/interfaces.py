"""
Abstract repository interfaces for data access.

These interfaces define the contracts implemented by concrete repositories.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.models.predictor import MatchStatus, PredictorBet, PredictorMatch


class IPlayerRepository(ABC):
    @abstractmethod
    def add(self, discord_id: int, discord_username: str, balance: float = 0) -> None: ...

    @abstractmethod
    def get_by_id(self, discord_id: int) -> dict | None: ...

    @abstractmethod
    def get_balance(self, discord_id: int) -> float | None:
        """Return the spendable balance, or None for an unknown account."""
        ...


class IPredictorMatchRepository(ABC):
    @abstractmethod
    def create_match(
        self,
        game: str,
        team1_name: str,
        team2_name: str,
        start_time: int,
        prediction_types: list[dict],
        team1_logo_url: str = "",
        team2_logo_url: str = "",
    ) -> int: ...

    @abstractmethod
    def get_match(self, match_id: int) -> "PredictorMatch | None": ...

    @abstractmethod
    def list_matches(
        self, status: str | None = None, game: str | None = None, limit: int = 50
    ) -> list["PredictorMatch"]: ...

    @abstractmethod
    def get_upcoming_matches_starting_before(self, cutoff: int) -> list["PredictorMatch"]: ...

    @abstractmethod
    def get_matches_pending_start_notice(self, cutoff: int) -> list["PredictorMatch"]: ...

    @abstractmethod
    def update_match_details(self, match_id: int, **fields) -> bool: ...

    @abstractmethod
    def transition_status(
        self, match_id: int, from_status: "MatchStatus", to_status: "MatchStatus", close_types: bool
    ) -> bool:
        """Compare-and-set status change. Returns False if the match was not in from_status."""
        ...

    @abstractmethod
    def close_betting_atomic(self, match_id: int) -> dict:
        """Close every type and flip upcoming -> live. Returns types_closed and went_live."""
        ...

    @abstractmethod
    def mark_start_notified(self, match_id: int, notified_at: int) -> bool: ...

    @abstractmethod
    def release_start_notice(self, match_id: int, notified_at: int) -> None: ...

    @abstractmethod
    def record_results_atomic(
        self,
        match_id: int,
        results: dict,
        is_winner: Callable[[str, str], bool],
        accepted_statuses: set[str],
    ) -> dict:
        """Store the draft outcome, complete the match and settle pending predictions."""
        ...


class IPredictorBetRepository(ABC):
    @abstractmethod
    def place_bet_atomic(
        self,
        discord_id: int,
        match_id: int,
        predictions: list[dict],
        now: int,
        close_lead_seconds: int,
        price: Callable[[int, int, int], float],
    ) -> "PredictorBet": ...

    @abstractmethod
    def get_bet(self, bet_id: int) -> "PredictorBet | None": ...

    @abstractmethod
    def get_user_bet_for_match(self, discord_id: int, match_id: int) -> "PredictorBet | None": ...

    @abstractmethod
    def get_bets_for_match(self, match_id: int) -> list["PredictorBet"]: ...

    @abstractmethod
    def get_bettor_ids_for_match(self, match_id: int) -> list[int]: ...

    @abstractmethod
    def get_option_stake_total(self, match_id: int, prediction_type: str, choice: str) -> int: ...

    @abstractmethod
    def get_option_stake_totals(self, match_id: int) -> dict[tuple[str, str], int]: ...

    @abstractmethod
    def get_match_prediction_rows(self, match_id: int) -> list[dict]: ...

    @abstractmethod
    def get_user_bets(
        self,
        discord_id: int,
        status: str | None = None,
        game: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list["PredictorBet"]: ...

    @abstractmethod
    def count_user_bets(
        self, discord_id: int, status: str | None = None, game: str | None = None
    ) -> int: ...

    @abstractmethod
    def get_all_user_bets(self, discord_id: int) -> list["PredictorBet"]: ...

    @abstractmethod
    def apply_rewards_atomic(self, match_id: int, rewards: list[dict], distributed_at: int) -> dict:
        """Record prediction rewards, bump bet totals and credit accounts in one transaction."""
        ...


class INotificationRepository(ABC):
    @abstractmethod
    def create(
        self,
        discord_id: int,
        kind: str,
        title: str,
        message: str,
        data: dict | None,
        created_at: int,
        expires_at: int,
    ) -> int: ...

    @abstractmethod
    def get_for_user(
        self, discord_id: int, read: bool | None = None, limit: int = 50, offset: int = 0
    ) -> list[dict]: ...

    @abstractmethod
    def mark_as_read(self, notification_id: int, discord_id: int) -> dict | None: ...

    @abstractmethod
    def delete_expired(self, now: int) -> int: ...
