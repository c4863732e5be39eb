"""Repository for notification-related database operations."""

from __future__ import annotations

from typing import Any

from infrastructure.database.ops.notifications import NotificationOperations


class NotificationRepository:
    """Repository providing typed access to notification messages."""

    def __init__(self, backend: NotificationOperations) -> None:
        self._backend = backend

    def create_message(
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
        return self._backend.create_notification_message(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            severity=severity,
            channel=channel,
            source_type=source_type,
            source_id=source_id,
        )

    def list_messages(
        self, user_id: int, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> list[dict[str, Any]]:
        return self._backend.get_user_notifications(user_id, unread_only=unread_only, limit=limit, offset=offset)

    def mark_read(self, message_id: int, user_id: int) -> bool:
        return self._backend.mark_notification_read(message_id, user_id)

    def mark_all_read(self, user_id: int) -> int:
        return self._backend.mark_all_notifications_read(user_id)

    def unread_count(self, user_id: int) -> int:
        return self._backend.get_unread_count(user_id)
