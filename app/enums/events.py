from enum import Enum
from typing import TypeAlias


class WebSocketEvent(str, Enum):
    """WebSocket event names for real-time communication."""

    # Reminder events (pushed to room user_<id>)
    REMINDER_UPDATED = "reminder_updated"
    REMINDERS_REFRESHED = "reminders_refreshed"

    # Notification events
    NOTIFICATION_CREATED = "notification_created"


class ReminderEvent(str, Enum):
    """Event bus topics published by the reminder service."""

    SNOOZED = "reminder.snoozed"
    COMPLETED = "reminder.completed"
    DISMISSED = "reminder.dismissed"
    REFRESHED = "reminder.refreshed"


class PlantEvent(str, Enum):
    """Event bus topics published by plant and care-log services."""

    PLANT_CREATED = "plant.created"
    PLANT_UPDATED = "plant.updated"
    PLANT_DELETED = "plant.deleted"
    CARE_LOGGED = "plant.care_logged"


EventType: TypeAlias = ReminderEvent | PlantEvent
