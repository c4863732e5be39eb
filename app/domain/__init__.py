"""
Domain Package
==============
Entities, value objects and the pure reminder engine.

Nothing in this package performs I/O; repositories and services hand it
plain values and persist what it returns.
"""

from .plant import CareLog, Plant
from .reminders import (
    CareSchedule,
    MutationResult,
    PlantReminderSettings,
    QuietHours,
    Reminder,
    ReminderBuckets,
    ReminderEngineConfig,
    ReminderPreferences,
)

__all__ = [
    "CareLog",
    "CareSchedule",
    "MutationResult",
    "Plant",
    "PlantReminderSettings",
    "QuietHours",
    "Reminder",
    "ReminderBuckets",
    "ReminderEngineConfig",
    "ReminderPreferences",
]
