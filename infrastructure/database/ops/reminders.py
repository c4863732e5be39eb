"""Database operations for Reminder rows and per-user reminder preferences."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable

from app.utils.time import iso_now
from infrastructure.database.sql_safety import build_insert_parts, build_set_clause, safe_columns
from infrastructure.utils.structured_fields import dump_json_field, parse_json_dict

logger = logging.getLogger(__name__)

_REMINDER_COLUMNS: frozenset[str] = frozenset(
    {
        "user_id",
        "plant_id",
        "plant_name",
        "care_type",
        "title",
        "description",
        "due_at",
        "original_due_at",
        "priority",
        "status",
        "frequency_days",
        "last_care_at",
        "snooze_count",
        "snoozed_until",
        "completed_at",
        "no_history",
    }
)

# Identity columns never change once a reminder row exists.
_IMMUTABLE_COLUMNS = frozenset({"user_id", "plant_id", "care_type", "original_due_at"})


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    data["no_history"] = bool(data.get("no_history"))
    return data


class ReminderOperations:
    """Reminder persistence. ``update_reminder`` is last-write-wins."""

    def insert_reminder(self, fields: dict[str, Any]) -> int | None:
        try:
            cols = safe_columns(fields, _REMINDER_COLUMNS, context="insert_reminder")
            cols["no_history"] = 1 if cols.get("no_history") else 0
            now = iso_now()
            cols["created_at"] = now
            cols["updated_at"] = now
            col_sql, ph_sql, values = build_insert_parts(cols)
            with self.connection() as db:
                cur = db.execute(f"INSERT INTO Reminders ({col_sql}) VALUES ({ph_sql})", values)  # nosec B608
                return cur.lastrowid
        except sqlite3.IntegrityError as exc:
            logger.info("Reminder occurrence already stored: %s", exc)
            return None
        except sqlite3.Error as exc:
            logger.error("Failed to insert reminder: %s", exc)
            return None

    def update_reminder(self, reminder_id: int, fields: dict[str, Any]) -> bool:
        try:
            cols = safe_columns(
                fields, _REMINDER_COLUMNS - _IMMUTABLE_COLUMNS, context="update_reminder"
            )
            if "no_history" in cols:
                cols["no_history"] = 1 if cols["no_history"] else 0
            cols["updated_at"] = iso_now()
            set_sql, params = build_set_clause(cols)
            params.append(reminder_id)
            with self.connection() as db:
                cur = db.execute(f"UPDATE Reminders SET {set_sql} WHERE id = ?", params)  # nosec B608
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to update reminder %s: %s", reminder_id, exc)
            return False

    def get_reminder(self, reminder_id: int) -> dict[str, Any] | None:
        try:
            row = self.get_db().execute("SELECT * FROM Reminders WHERE id = ?", (reminder_id,)).fetchone()
            return _decode(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Failed to get reminder %s: %s", reminder_id, exc)
            return None

    def get_reminder_occurrence(self, plant_id: int, care_type: str, original_due_at: str) -> dict[str, Any] | None:
        try:
            row = (
                self.get_db()
                .execute(
                    "SELECT * FROM Reminders WHERE plant_id = ? AND care_type = ? AND original_due_at = ?",
                    (plant_id, care_type, original_due_at),
                )
                .fetchone()
            )
            return _decode(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Failed to look up reminder occurrence for plant %s: %s", plant_id, exc)
            return None

    def list_reminders(
        self,
        user_id: int,
        *,
        status: str | None = None,
        plant_id: int | None = None,
    ) -> list[dict[str, Any]]:
        sql = "SELECT * FROM Reminders WHERE user_id = ?"
        params: list[Any] = [user_id]
        if status:
            sql += " AND status = ?"
            params.append(status)
        if plant_id is not None:
            sql += " AND plant_id = ?"
            params.append(plant_id)
        sql += " ORDER BY due_at ASC"
        try:
            return [_decode(row) for row in self.get_db().execute(sql, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("Failed to list reminders for user %s: %s", user_id, exc)
            return []

    def list_reminders_due_between(self, start: str, end: str) -> list[dict[str, Any]]:
        """Active reminders of every user with ``start <= due_at <= end``."""
        try:
            rows = (
                self.get_db()
                .execute(
                    "SELECT * FROM Reminders WHERE status != 'completed' AND due_at >= ? AND due_at <= ? "
                    "ORDER BY due_at ASC",
                    (start, end),
                )
                .fetchall()
            )
            return [_decode(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("Failed to list reminders due between %s and %s: %s", start, end, exc)
            return []

    def delete_reminder(self, reminder_id: int) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute("DELETE FROM Reminders WHERE id = ?", (reminder_id,))
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to delete reminder %s: %s", reminder_id, exc)
            return False

    def delete_active_reminders_except(self, user_id: int, keep_ids: Iterable[int]) -> int:
        """Drop superseded pending/snoozed reminders; completed rows are history and stay."""
        keep = sorted({int(i) for i in keep_ids})
        sql = "DELETE FROM Reminders WHERE user_id = ? AND status != 'completed'"
        params: list[Any] = [user_id]
        if keep:
            sql += f" AND id NOT IN ({', '.join('?' for _ in keep)})"  # nosec B608
            params.extend(keep)
        try:
            with self.connection() as db:
                return db.execute(sql, params).rowcount
        except sqlite3.Error as exc:
            logger.error("Failed to prune reminders for user %s: %s", user_id, exc)
            return 0

    # --- Preferences ---

    def get_reminder_preferences(self, user_id: int) -> dict[str, Any] | None:
        try:
            row = (
                self.get_db()
                .execute("SELECT payload FROM ReminderPreferences WHERE user_id = ?", (user_id,))
                .fetchone()
            )
            return parse_json_dict(row["payload"]) if row else None
        except sqlite3.Error as exc:
            logger.error("Failed to get reminder preferences for user %s: %s", user_id, exc)
            return None

    def upsert_reminder_preferences(self, user_id: int, payload: dict[str, Any]) -> bool:
        try:
            with self.connection() as db:
                db.execute(
                    """
                    INSERT INTO ReminderPreferences (user_id, payload, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                    """,
                    (user_id, dump_json_field(payload), iso_now()),
                )
            return True
        except sqlite3.Error as exc:
            logger.error("Failed to save reminder preferences for user %s: %s", user_id, exc)
            return False
