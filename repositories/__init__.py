"""
Repository layer for data access abstraction.
"""

from repositories.base_repository import BaseRepository
from repositories.errors import PredictorConflictError
from repositories.interfaces import (
    INotificationRepository,
    IPlayerRepository,
    IPredictorBetRepository,
    IPredictorMatchRepository,
)
from repositories.notification_repository import NotificationRepository
from repositories.player_repository import PlayerRepository
from repositories.predictor_bet_repository import PredictorBetRepository
from repositories.predictor_match_repository import PredictorMatchRepository

__all__ = [
    "BaseRepository",
    "PredictorConflictError",
    "PlayerRepository",
    "PredictorMatchRepository",
    "PredictorBetRepository",
    "NotificationRepository",
    "IPlayerRepository",
    "IPredictorMatchRepository",
    "IPredictorBetRepository",
    "INotificationRepository",
]
