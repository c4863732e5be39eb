"""
Notification Service
====================

In-app notifications for AgroTrack users, persisted and pushed over
Socket.IO to the user's room.

Creation honours the user's reminder preferences: nothing is created when
reminders are disabled, when in-app delivery is not selected, or during
quiet hours. Email and push are stored as preferences only.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from app.constants import Limits
from app.domain.exceptions import NotFoundError
from app.domain.reminders import Reminder, ReminderPreferences
from app.enums import NotificationChannel, NotificationSeverity, NotificationType
from app.utils.time import iso_now, utc_now

if TYPE_CHECKING:
    from app.utils.emitters import EmitterService
    from infrastructure.database.repositories.notifications import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationsService:
    """
    Notification service for user alerts.

    Supports:
    - In-app notifications via WebSocket (EmitterService)
    - Preference checks and quiet hours
    - Read tracking
    """

    def __init__(
        self,
        notification_repo: "NotificationRepository",
        emitter_service: Optional["EmitterService"] = None,
        preferences_loader: Optional[Callable[[int], ReminderPreferences]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize NotificationsService.

        Args:
            notification_repo: Repository for notification data.
            emitter_service: Optional emitter for WebSocket notifications.
            preferences_loader: Returns a user's ReminderPreferences.
        """
        self._repo = notification_repo
        self._emitter = emitter_service
        self._preferences_loader = preferences_loader
        self._clock = clock

    def _suppressed(self, user_id: int, now: datetime) -> bool:
        if self._preferences_loader is None:
            return False
        preferences = self._preferences_loader(user_id)
        if not preferences.wants(NotificationChannel.IN_APP):
            logger.debug("In-app notifications disabled for user %s", user_id)
            return True
        if preferences.quiet_hours.contains(now):
            logger.debug("In quiet hours for user %s", user_id)
            return True
        return False

    def send_notification(
        self,
        user_id: int,
        notification_type: str,
        title: str,
        message: str,
        severity: str = NotificationSeverity.INFO.value,
        source_type: Optional[str] = None,
        source_id: Optional[int] = None,
        force: bool = False,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        """
        Send a notification to a user.

        Args:
            force: Bypass preferences and quiet hours

        Returns:
            Notification message ID if sent, None otherwise
        """
        now = now or self._clock()
        if not force and self._suppressed(user_id, now):
            return None

        message_id = self._repo.create_message(
            user_id=user_id,
            notification_type=str(notification_type),
            title=title,
            message=message,
            severity=str(severity),
            channel=NotificationChannel.IN_APP.value,
            source_type=source_type,
            source_id=source_id,
        )
        if message_id is None:
            logger.error("Failed to store notification '%s' for user %s", title, user_id)
            return None

        if self._emitter is not None:
            self._emitter.emit_notification(
                user_id,
                {
                    "message_id": message_id,
                    "notification_type": str(notification_type),
                    "title": title,
                    "message": message,
                    "severity": str(severity),
                    "source_type": source_type,
                    "source_id": source_id,
                    "created_at": iso_now(),
                },
            )
        return message_id

    def notify_reminder_due(self, reminder: Reminder, now: Optional[datetime] = None) -> Optional[int]:
        """Announce a reminder that is about to fall due."""
        if reminder.user_id is None:
            return None
        now = now or self._clock()
        minutes = max(0, int((reminder.due_at - now).total_seconds() // 60))
        return self.send_notification(
            user_id=reminder.user_id,
            notification_type=NotificationType.REMINDER_DUE.value,
            title=reminder.title or "Plant care reminder",
            message=f"{reminder.title} is due in {minutes} minutes",
            severity=NotificationSeverity.INFO.value,
            source_type="reminder",
            source_id=reminder.id,
            now=now,
        )

    # --- Reading ---

    def get_notifications(
        self, user_id: int, unread_only: bool = False, limit: int = Limits.NOTIFICATIONS_PAGE, offset: int = 0
    ) -> List[Dict[str, Any]]:
        return self._repo.list_messages(user_id, unread_only=unread_only, limit=limit, offset=offset)

    def mark_as_read(self, user_id: int, message_id: int) -> None:
        if not self._repo.mark_read(message_id, user_id):
            raise NotFoundError(f"Notification {message_id} not found")

    def mark_all_as_read(self, user_id: int) -> int:
        return self._repo.mark_all_read(user_id)

    def get_unread_count(self, user_id: int) -> int:
        return self._repo.unread_count(user_id)
