"""Database operations for CareLog entities (append-only)."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now
from infrastructure.utils.structured_fields import dump_json_field, parse_json_dict, parse_json_list

logger = logging.getLogger(__name__)


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    data["photos"] = parse_json_list(data.get("photos"))
    data["care_data"] = parse_json_dict(data.get("care_data"))
    return data


class CareLogOperations:
    """Append, list and delete care log rows. Rows are never updated."""

    def insert_care_log(
        self,
        plant_id: int,
        user_id: int,
        care_type: str,
        performed_at: str,
        notes: str | None = None,
        photos: list[str] | None = None,
        care_data: dict[str, Any] | None = None,
    ) -> int | None:
        try:
            with self.connection() as db:
                cur = db.execute(
                    """
                    INSERT INTO CareLogs (
                        plant_id, user_id, care_type, performed_at, notes, photos, care_data, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        plant_id,
                        user_id,
                        care_type,
                        performed_at,
                        notes,
                        dump_json_field(photos or []),
                        dump_json_field(care_data or {}),
                        iso_now(),
                    ),
                )
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to insert care log for plant %s: %s", plant_id, exc)
            return None

    def get_care_log(self, log_id: int) -> dict[str, Any] | None:
        try:
            row = self.get_db().execute("SELECT * FROM CareLogs WHERE id = ?", (log_id,)).fetchone()
            return _decode(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Failed to get care log %s: %s", log_id, exc)
            return None

    def list_care_logs(
        self,
        plant_id: int,
        *,
        care_type: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Newest first."""
        sql = "SELECT * FROM CareLogs WHERE plant_id = ?"
        params: list[Any] = [plant_id]
        if care_type:
            sql += " AND care_type = ?"
            params.append(care_type)
        sql += " ORDER BY performed_at DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        try:
            return [_decode(row) for row in self.get_db().execute(sql, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("Failed to list care logs for plant %s: %s", plant_id, exc)
            return []

    def list_user_care_logs(self, user_id: int, since: str | None = None) -> list[dict[str, Any]]:
        """All of a user's care logs, optionally only those at or after ``since``."""
        sql = "SELECT * FROM CareLogs WHERE user_id = ?"
        params: list[Any] = [user_id]
        if since:
            sql += " AND performed_at >= ?"
            params.append(since)
        sql += " ORDER BY performed_at ASC"
        try:
            return [_decode(row) for row in self.get_db().execute(sql, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("Failed to list care logs for user %s: %s", user_id, exc)
            return []

    def delete_care_log(self, log_id: int) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute("DELETE FROM CareLogs WHERE id = ?", (log_id,))
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to delete care log %s: %s", log_id, exc)
            return False
