"""
Player-facing account logic (registration, balance).
"""

import logging

import config
from repositories.interfaces import IPlayerRepository
from services import error_codes
from services.result import Result

logger = logging.getLogger("predictor_bot.services.player")


class PlayerService:
    """Encapsulates account registration and balance lookups."""

    def __init__(self, player_repo: IPlayerRepository, starting_balance: int | None = None):
        self.player_repo = player_repo
        self.starting_balance = (
            config.STARTING_BALANCE if starting_balance is None else starting_balance
        )

    def register_player(self, discord_id: int, discord_username: str) -> Result[dict]:
        """Open an account with the starting balance."""
        try:
            self.player_repo.add(discord_id, discord_username, balance=self.starting_balance)
        except ValueError as e:
            return Result.from_exception(e, default_code=error_codes.PLAYER_ALREADY_EXISTS)

        logger.info(f"Registered player {discord_username} ({discord_id})")
        return Result.ok(self.player_repo.get_by_id(discord_id))

    def get_balance(self, discord_id: int) -> Result[float]:
        balance = self.player_repo.get_balance(discord_id)
        if balance is None:
            return Result.fail(
                "Player not found. Please register first.", code=error_codes.PLAYER_NOT_FOUND
            )
        return Result.ok(balance)
