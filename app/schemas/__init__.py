"""
Schemas Module
==============

This module provides Pydantic models for request validation and event payloads.
"""

from app.schemas.ai import CareScheduleRequest, CareScheduleSuggestion, CareTipsRequest, Diagnosis, DiagnoseRequest
from app.schemas.auth import LoginRequest, RegisterRequest
from app.schemas.events import CareLoggedPayload, PlantLifecyclePayload, ReminderChangedPayload
from app.schemas.plants import CreateCareLogRequest, CreatePlantRequest, PlantListQuery, UpdatePlantRequest
from app.schemas.reminders import (
    CompleteReminderRequest,
    ReminderListQuery,
    ReminderPreferencesUpdate,
    SnoozeReminderRequest,
    UpcomingQuery,
)

__all__ = [
    "CareLoggedPayload",
    "CareScheduleRequest",
    "CareScheduleSuggestion",
    "CareTipsRequest",
    "CompleteReminderRequest",
    "CreateCareLogRequest",
    "CreatePlantRequest",
    "Diagnosis",
    "DiagnoseRequest",
    "LoginRequest",
    "PlantLifecyclePayload",
    "PlantListQuery",
    "RegisterRequest",
    "ReminderChangedPayload",
    "ReminderListQuery",
    "ReminderPreferencesUpdate",
    "SnoozeReminderRequest",
    "UpcomingQuery",
]
