"""Database operations for in-app notification messages."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now

logger = logging.getLogger(__name__)


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    data["is_read"] = bool(data.get("is_read"))
    return data


class NotificationOperations:
    """Database operations for notification messages."""

    def create_notification_message(
        self,
        user_id: int,
        notification_type: str,
        title: str,
        message: str,
        severity: str,
        channel: str,
        source_type: str | None = None,
        source_id: int | None = None,
    ) -> int | None:
        """Create a new notification message."""
        try:
            db = self.get_db()
            cur = db.execute(
                """
                INSERT INTO NotificationMessage (
                    user_id, notification_type, title, message, severity,
                    channel, source_type, source_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (user_id, notification_type, title, message, severity, channel, source_type, source_id, iso_now()),
            )
            db.commit()
            return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to create notification message: %s", exc)
            return None

    def get_user_notifications(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Get notifications for a user, newest first."""
        try:
            query = "SELECT * FROM NotificationMessage WHERE user_id = ?"
            params: list[Any] = [user_id]
            if unread_only:
                query += " AND is_read = 0"
            query += " ORDER BY created_at DESC, message_id DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            return [_decode(row) for row in self.get_db().execute(query, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("Failed to get user notifications: %s", exc)
            return []

    def mark_notification_read(self, message_id: int, user_id: int) -> bool:
        """Mark one of the user's notifications as read."""
        try:
            db = self.get_db()
            cur = db.execute(
                "UPDATE NotificationMessage SET is_read = 1, read_at = ? WHERE message_id = ? AND user_id = ?",
                (iso_now(), message_id, user_id),
            )
            db.commit()
            return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to mark notification as read: %s", exc)
            return False

    def mark_all_notifications_read(self, user_id: int) -> int:
        """Mark all notifications as read for a user. Returns count updated."""
        try:
            db = self.get_db()
            cur = db.execute(
                "UPDATE NotificationMessage SET is_read = 1, read_at = ? WHERE user_id = ? AND is_read = 0",
                (iso_now(), user_id),
            )
            db.commit()
            return cur.rowcount
        except sqlite3.Error as exc:
            logger.error("Failed to mark all notifications as read: %s", exc)
            return 0

    def get_unread_count(self, user_id: int) -> int:
        try:
            row = (
                self.get_db()
                .execute("SELECT COUNT(*) AS n FROM NotificationMessage WHERE user_id = ? AND is_read = 0", (user_id,))
                .fetchone()
            )
            return int(row["n"]) if row else 0
        except sqlite3.Error as exc:
            logger.error("Failed to count unread notifications: %s", exc)
            return 0
