"""
Reminder Repository
===================

Stores generated reminders so snooze/complete state survives between
regenerations, plus the per-user ``ReminderPreferences`` document.
"""

from __future__ import annotations

from typing import Iterable

from app.domain.reminders import Reminder, ReminderPreferences
from app.utils.time import to_iso
from infrastructure.database.ops.reminders import ReminderOperations

# Fields a lifecycle mutation or refresh may change on an existing row.
_STATE_FIELDS = (
    "plant_name",
    "title",
    "description",
    "due_at",
    "priority",
    "status",
    "frequency_days",
    "last_care_at",
    "snooze_count",
    "snoozed_until",
    "completed_at",
    "no_history",
)


def _row_fields(reminder: Reminder) -> dict:
    data = reminder.to_dict()
    data.pop("id", None)
    data.pop("created_at", None)
    data.pop("updated_at", None)
    return data


class ReminderRepository:
    """Repository providing typed access to reminders and reminder preferences."""

    def __init__(self, backend: ReminderOperations) -> None:
        self._backend = backend

    def create(self, reminder: Reminder) -> int | None:
        return self._backend.insert_reminder(_row_fields(reminder))

    def save_state(self, reminder: Reminder) -> bool:
        """Persist the mutable fields of an existing reminder (last write wins)."""
        if reminder.id is None:
            raise ValueError("save_state requires a persisted reminder")
        data = _row_fields(reminder)
        return self._backend.update_reminder(reminder.id, {k: data[k] for k in _STATE_FIELDS})

    def get(self, reminder_id: int) -> Reminder | None:
        row = self._backend.get_reminder(reminder_id)
        return Reminder.from_dict(row) if row else None

    def get_occurrence(self, reminder: Reminder) -> Reminder | None:
        """The stored row for the same plant, care type and original due date, if any."""
        data = _row_fields(reminder)
        row = self._backend.get_reminder_occurrence(reminder.plant_id, data["care_type"], data["original_due_at"])
        return Reminder.from_dict(row) if row else None

    def list_for_user(self, user_id: int, *, status: str | None = None, plant_id: int | None = None) -> list[Reminder]:
        return [
            Reminder.from_dict(row) for row in self._backend.list_reminders(user_id, status=status, plant_id=plant_id)
        ]

    def list_due_between(self, start, end) -> list[Reminder]:
        return [Reminder.from_dict(row) for row in self._backend.list_reminders_due_between(to_iso(start), to_iso(end))]

    def delete(self, reminder_id: int) -> bool:
        return self._backend.delete_reminder(reminder_id)

    def prune_active(self, user_id: int, keep_ids: Iterable[int]) -> int:
        return self._backend.delete_active_reminders_except(user_id, keep_ids)

    # --- Preferences ---

    def load_preferences(self, user_id: int) -> ReminderPreferences:
        payload = self._backend.get_reminder_preferences(user_id)
        if not payload:
            return ReminderPreferences(user_id=user_id)
        payload["user_id"] = user_id
        return ReminderPreferences.from_dict(payload)

    def save_preferences(self, preferences: ReminderPreferences) -> bool:
        return self._backend.upsert_reminder_preferences(preferences.user_id, preferences.to_dict())
