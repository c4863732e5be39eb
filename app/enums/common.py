"""
Common Enumerations
====================

This module contains the enums shared by the plant, care-log, reminder and
AI recommendation layers.
"""

from enum import Enum


class PlantCategory(str, Enum):
    """
    Plant categories. Each category carries its own default care cadence.
    Used by: reminder engine defaults, plant CRUD
    """
    INDOOR = "indoor"
    OUTDOOR = "outdoor"
    SUCCULENT = "succulent"
    HERB = "herb"
    VEGETABLE = "vegetable"
    FLOWER = "flower"
    TREE = "tree"
    SHRUB = "shrub"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class SunlightRequirement(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    BRIGHT_INDIRECT = "bright_indirect"
    FULL_SUN = "full_sun"

    def __str__(self) -> str:
        return self.value


class PlantHealthStatus(str, Enum):
    """
    Owner-reported plant health.
    Used by: plant CRUD, AI prompts
    """
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class CareType(str, Enum):
    """
    Kinds of care activity a user can log.
    Used by: care logs, reminder generation
    """
    WATERING = "watering"
    FERTILIZING = "fertilizing"
    PRUNING = "pruning"
    REPOTTING = "repotting"
    PEST_CONTROL = "pest_control"
    HEALTH_CHECK = "health_check"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class ReminderPriority(str, Enum):
    """
    Reminder urgency. Ordered: LOW < MEDIUM < HIGH < URGENT.
    Used by: reminder engine, notifications
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    def __str__(self) -> str:
        return self.value


_PRIORITY_RANK = {
    ReminderPriority.LOW: 0,
    ReminderPriority.MEDIUM: 1,
    ReminderPriority.HIGH: 2,
    ReminderPriority.URGENT: 3,
}


class ReminderStatus(str, Enum):
    PENDING = "pending"
    SNOOZED = "snoozed"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value


class NoHistoryPolicy(str, Enum):
    """
    How the first reminder is scheduled for a plant that was never cared for.
    """
    DUE_NOW = "due_now"
    FROM_CREATED = "from_created"

    def __str__(self) -> str:
        return self.value


class NotificationChannel(str, Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"

    def __str__(self) -> str:
        return self.value


class NotificationType(str, Enum):
    REMINDER_DUE = "reminder_due"
    REMINDER_OVERDUE = "reminder_overdue"
    PLANT_HEALTH = "plant_health"
    SYSTEM = "system"

    def __str__(self) -> str:
        return self.value


class NotificationSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class RecommendationKind(str, Enum):
    """
    Kinds of stored AI output.
    Used by: llm_advisor, ai recommendations repository
    """
    DIAGNOSIS = "diagnosis"
    CARE_TIPS = "care_tips"
    CARE_SCHEDULE = "care_schedule"

    def __str__(self) -> str:
        return self.value


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __str__(self) -> str:
        return self.value
