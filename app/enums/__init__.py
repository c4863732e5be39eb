"""
Enums Module
============

This module provides enumeration types for the AgroTrack application.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.common import (
    CareType,
    NoHistoryPolicy,
    NotificationChannel,
    NotificationSeverity,
    NotificationType,
    PlantCategory,
    PlantHealthStatus,
    RecommendationKind,
    ReminderPriority,
    ReminderStatus,
    Severity,
    SunlightRequirement,
)
from app.enums.events import EventType, PlantEvent, ReminderEvent, WebSocketEvent

__all__ = [
    "CareType",
    "EventType",
    "NoHistoryPolicy",
    "NotificationChannel",
    "NotificationSeverity",
    "NotificationType",
    "PlantCategory",
    "PlantEvent",
    "PlantHealthStatus",
    "RecommendationKind",
    "ReminderEvent",
    "ReminderPriority",
    "ReminderStatus",
    "Severity",
    "SunlightRequirement",
    "WebSocketEvent",
]
