"""
Prediction market domain models: matches, prediction types, bets.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MatchStatus(str, Enum):
    """Lifecycle of a predictor match."""

    UPCOMING = "upcoming"
    LIVE = "live"
    DRAFT_PHASE = "draft_phase"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PredictionStatus(str, Enum):
    """Settlement state of a single prediction. Won and lost are terminal."""

    PENDING = "pending"
    WON = "won"
    LOST = "lost"


# Forward-only status graph. Completed and cancelled are terminal.
MATCH_STATUS_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.UPCOMING: frozenset(
        {MatchStatus.LIVE, MatchStatus.DRAFT_PHASE, MatchStatus.CANCELLED}
    ),
    MatchStatus.LIVE: frozenset(
        {MatchStatus.DRAFT_PHASE, MatchStatus.COMPLETED, MatchStatus.CANCELLED}
    ),
    MatchStatus.DRAFT_PHASE: frozenset({MatchStatus.COMPLETED}),
    MatchStatus.COMPLETED: frozenset(),
    MatchStatus.CANCELLED: frozenset(),
}

# Statuses from which admin results may be submitted
RESULTS_ACCEPTING_STATUSES = frozenset({MatchStatus.LIVE, MatchStatus.DRAFT_PHASE})


@dataclass
class TeamInfo:
    """A team taking part in a predictor match."""

    name: str
    logo_url: str = ""


@dataclass
class PredictionType:
    """
    One question attached to a match, e.g. "first ban, team 1".

    reward_pool and bets_count only ever grow; closed only ever goes False -> True.
    """

    type: str
    options: list[str]
    title: str = ""
    reward_pool: int = 0
    bets_count: int = 0
    closed: bool = False

    def has_option(self, choice: str) -> bool:
        return choice in self.options

    @property
    def is_empty(self) -> bool:
        return self.reward_pool == 0 or self.bets_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "options": list(self.options),
            "reward_pool": self.reward_pool,
            "bets_count": self.bets_count,
            "closed": self.closed,
        }


@dataclass
class DraftOutcome:
    """Draft-phase outcome record; filled once by results processing."""

    completed: bool = False
    results: dict[str, Any] | None = None


@dataclass
class PredictorMatch:
    """An esports match open to draft predictions."""

    match_id: int
    game: str
    team1: TeamInfo
    team2: TeamInfo
    start_time: int  # Unix timestamp
    status: MatchStatus = MatchStatus.UPCOMING
    prediction_types: list[PredictionType] = field(default_factory=list)
    draft: DraftOutcome = field(default_factory=DraftOutcome)
    start_notified_at: int | None = None
    rewards_distributed_at: int | None = None
    created_at: int | None = None

    def get_prediction_type(self, type_tag: str) -> PredictionType | None:
        for prediction_type in self.prediction_types:
            if prediction_type.type == type_tag:
                return prediction_type
        return None

    def seconds_until_start(self, now: int) -> int:
        return self.start_time - now

    def can_transition_to(self, new_status: MatchStatus) -> bool:
        return new_status in MATCH_STATUS_TRANSITIONS[self.status]

    @property
    def all_types_closed(self) -> bool:
        return all(p.closed for p in self.prediction_types)

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "game": self.game,
            "team1": {"name": self.team1.name, "logo_url": self.team1.logo_url},
            "team2": {"name": self.team2.name, "logo_url": self.team2.logo_url},
            "start_time": self.start_time,
            "status": self.status.value,
            "prediction_types": [p.to_dict() for p in self.prediction_types],
            "draft_phase": {
                "completed": self.draft.completed,
                "results": self.draft.results,
            },
        }


@dataclass
class Prediction:
    """
    One wager inside a bet.

    odds is captured at placement and never recomputed.
    """

    type: str
    choice: str
    bet_amount: int
    odds: float
    status: PredictionStatus = PredictionStatus.PENDING
    reward: float = 0.0
    prediction_id: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == PredictionStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "prediction_id": self.prediction_id,
            "type": self.type,
            "choice": self.choice,
            "bet_amount": self.bet_amount,
            "odds": self.odds,
            "status": self.status.value,
            "reward": self.reward,
        }


@dataclass
class PredictorBet:
    """A user's single bet on a match. total_bet is fixed at creation."""

    bet_id: int
    discord_id: int
    match_id: int
    predictions: list[Prediction]
    total_bet: int
    total_reward: float = 0.0
    created_at: int | None = None

    @property
    def has_won(self) -> bool:
        return any(p.status == PredictionStatus.WON for p in self.predictions)

    @property
    def is_settled(self) -> bool:
        return all(not p.is_pending for p in self.predictions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bet_id": self.bet_id,
            "discord_id": self.discord_id,
            "match_id": self.match_id,
            "predictions": [p.to_dict() for p in self.predictions],
            "total_bet": self.total_bet,
            "total_reward": self.total_reward,
            "created_at": self.created_at,
        }
