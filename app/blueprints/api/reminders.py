"""
Reminders API
=============

Care reminders of the current user. Every read regenerates the reminders
from plants and care logs first, so the response always reflects the
latest care history; lifecycle state (snoozes, completions) survives.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import (
    get_reminder_service as _reminder_service,
    get_user_id,
    parse_body,
    parse_query,
    success as _success,
    to_dicts,
)
from app.schemas import (
    CompleteReminderRequest,
    ReminderListQuery,
    ReminderPreferencesUpdate,
    SnoozeReminderRequest,
    UpcomingQuery,
)
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger("reminders_api")

reminders_api = Blueprint("reminders_api", __name__)


@reminders_api.get("")
@api_login_required
@safe_route("Failed to list reminders")
def list_reminders() -> Response:
    """Active reminders, most urgent first. ``?status=completed`` lists history."""
    query = parse_query(ReminderListQuery)
    reminders = _reminder_service().list_reminders(
        get_user_id(),
        status=query.status.value if query.status else None,
        plant_id=query.plant_id,
    )
    return _success({"reminders": to_dicts(reminders), "count": len(reminders)})


@reminders_api.get("/buckets")
@api_login_required
@safe_route("Failed to bucket reminders")
def reminder_buckets() -> Response:
    return _success(_reminder_service().get_buckets(get_user_id()).to_dict())


@reminders_api.get("/stats")
@api_login_required
@safe_route("Failed to load reminder stats")
def reminder_stats() -> Response:
    return _success(_reminder_service().get_stats(get_user_id()))


@reminders_api.get("/upcoming")
@api_login_required
@safe_route("Failed to list upcoming reminders")
def upcoming_reminders() -> Response:
    query = parse_query(UpcomingQuery)
    reminders = _reminder_service().upcoming(get_user_id(), hours=query.hours)
    return _success({"reminders": to_dicts(reminders), "count": len(reminders), "hours": query.hours})


@reminders_api.post("/<int:reminder_id>/snooze")
@api_login_required
@safe_route("Failed to snooze reminder")
def snooze_reminder(reminder_id: int) -> Response:
    body = parse_body(SnoozeReminderRequest)
    reminder = _reminder_service().snooze(get_user_id(), reminder_id, body.hours)
    return _success({"reminder": reminder.to_dict()})


@reminders_api.post("/<int:reminder_id>/complete")
@api_login_required
@safe_route("Failed to complete reminder")
def complete_reminder(reminder_id: int) -> Response:
    body = parse_body(CompleteReminderRequest)
    reminder, care_logged = _reminder_service().complete_and_log(
        get_user_id(), reminder_id, log_care=body.log_care, notes=body.notes
    )
    return _success({"reminder": reminder.to_dict(), "care_logged": care_logged})


@reminders_api.delete("/<int:reminder_id>")
@api_login_required
@safe_route("Failed to dismiss reminder")
def dismiss_reminder(reminder_id: int) -> Response:
    _reminder_service().dismiss(get_user_id(), reminder_id)
    return _success({"dismissed": reminder_id})


@reminders_api.get("/preferences")
@api_login_required
@safe_route("Failed to load reminder preferences")
def get_preferences() -> Response:
    return _success(_reminder_service().get_preferences(get_user_id()).to_dict())


@reminders_api.put("/preferences")
@api_login_required
@safe_route("Failed to save reminder preferences")
def update_preferences() -> Response:
    body = parse_body(ReminderPreferencesUpdate)
    preferences = _reminder_service().update_preferences(get_user_id(), body.model_dump(mode="json", exclude_none=True))
    return _success(preferences.to_dict())
