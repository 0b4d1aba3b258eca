"""
Repository for in-app notifications.
"""

import json

from repositories.base_repository import BaseRepository
from repositories.interfaces import INotificationRepository


class NotificationRepository(BaseRepository, INotificationRepository):
    """Handles the notifications table. Rows expire at expires_at and are purged by delete_expired."""

    @staticmethod
    def _row_to_dict(row) -> dict:
        notification = dict(row)
        notification["data"] = json.loads(row["data"]) if row["data"] else {}
        notification["read"] = bool(row["read"])
        return notification

    def create(
        self,
        discord_id: int,
        kind: str,
        title: str,
        message: str,
        data: dict | None,
        created_at: int,
        expires_at: int,
    ) -> int:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO notifications (
                    discord_id, kind, title, message, data, created_at, expires_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    discord_id,
                    kind,
                    title,
                    message,
                    json.dumps(data) if data is not None else None,
                    created_at,
                    expires_at,
                ),
            )
            return cursor.lastrowid

    def get_for_user(
        self, discord_id: int, read: bool | None = None, limit: int = 50, offset: int = 0
    ) -> list[dict]:
        """A user's notifications, newest first, optionally filtered by read flag."""
        query = "SELECT * FROM notifications WHERE discord_id = ?"
        params: list = [discord_id]
        if read is not None:
            query += " AND read = ?"
            params.append(1 if read else 0)
        query += " ORDER BY created_at DESC, notification_id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_dict(row) for row in cursor.fetchall()]

    def count_unread(self, discord_id: int) -> int:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) AS count FROM notifications WHERE discord_id = ? AND read = 0",
                (discord_id,),
            )
            return int(cursor.fetchone()["count"])

    def mark_as_read(self, notification_id: int, discord_id: int) -> dict | None:
        """Mark a user's notification read. Returns the row, or None if it is not theirs."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE notifications SET read = 1 WHERE notification_id = ? AND discord_id = ?",
                (notification_id, discord_id),
            )
            if cursor.rowcount == 0:
                return None
            cursor.execute(
                "SELECT * FROM notifications WHERE notification_id = ?", (notification_id,)
            )
            return self._row_to_dict(cursor.fetchone())

    def delete_expired(self, now: int) -> int:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM notifications WHERE expires_at < ?", (now,))
            return cursor.rowcount
