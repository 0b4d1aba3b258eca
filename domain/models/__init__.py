"""
Domain models - pure data structures representing business entities.
"""

from domain.models.draft_results import DraftResults, TeamPair
from domain.models.predictor import (
    DraftOutcome,
    MatchStatus,
    Prediction,
    PredictionStatus,
    PredictionType,
    PredictorBet,
    PredictorMatch,
    TeamInfo,
)

__all__ = [
    "DraftOutcome",
    "DraftResults",
    "MatchStatus",
    "Prediction",
    "PredictionStatus",
    "PredictionType",
    "PredictorBet",
    "PredictorMatch",
    "TeamInfo",
    "TeamPair",
]
