"""
Repository for player accounts and balances.
"""

from repositories.base_repository import BaseRepository
from repositories.interfaces import IPlayerRepository


class PlayerRepository(BaseRepository, IPlayerRepository):
    """
    Handles CRUD operations for the players table.

    Balances are debited by bet placement and credited by reward distribution;
    those writes happen inside the bet repository's atomic transactions.
    """

    def add(self, discord_id: int, discord_username: str, balance: float = 0) -> None:
        """
        Add a new player account.

        Raises:
            ValueError: If a player with this discord_id already exists
        """
        with self.connection() as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT discord_id FROM players WHERE discord_id = ?", (discord_id,))
            if cursor.fetchone():
                raise ValueError(f"Player with Discord ID {discord_id} already exists.")

            cursor.execute(
                """
                INSERT INTO players (discord_id, discord_username, balance, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (discord_id, discord_username, balance),
            )

    def get_by_id(self, discord_id: int) -> dict | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT discord_id, discord_username, balance FROM players WHERE discord_id = ?",
                (discord_id,),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_balance(self, discord_id: int) -> float | None:
        """Get a player's balance, or None if the account does not exist."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT balance FROM players WHERE discord_id = ?", (discord_id,))
            row = cursor.fetchone()
            return float(row["balance"]) if row else None

