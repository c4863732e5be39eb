"""Repository facades exposing typed accessors over the low-level ops mixins."""

from infrastructure.database.repositories.ai import RecommendationRepository
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.database.repositories.care_logs import CareLogRepository
from infrastructure.database.repositories.notifications import NotificationRepository
from infrastructure.database.repositories.plants import PlantRepository
from infrastructure.database.repositories.reminders import ReminderRepository

__all__ = [
    "AuthRepository",
    "CareLogRepository",
    "NotificationRepository",
    "PlantRepository",
    "RecommendationRepository",
    "ReminderRepository",
]
