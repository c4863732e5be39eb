"""Database operations for Plant entities."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now
from infrastructure.database.sql_safety import build_insert_parts, build_set_clause, safe_columns

logger = logging.getLogger(__name__)

# Columns writable through insert_plant / update_plant.
_PLANT_COLUMNS: frozenset[str] = frozenset(
    {
        "name",
        "species",
        "category",
        "sunlight",
        "watering_every_days",
        "fertilizer_every_weeks",
        "last_watered_at",
        "last_fertilized_at",
        "health_status",
        "location",
        "notes",
    }
)


class PlantOperations:
    """CRUD for the Plants table."""

    def insert_plant(self, user_id: int, fields: dict[str, Any]) -> int | None:
        try:
            fields = dict(fields)
            created_at = fields.pop("created_at", None)
            cols = safe_columns(fields, _PLANT_COLUMNS, context="insert_plant")
            cols["user_id"] = user_id
            cols["created_at"] = created_at or iso_now()
            cols["updated_at"] = cols["created_at"]
            col_sql, ph_sql, values = build_insert_parts(cols)
            with self.connection() as db:
                cur = db.execute(f"INSERT INTO Plants ({col_sql}) VALUES ({ph_sql})", values)  # nosec B608
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to insert plant: %s", exc)
            return None

    def get_plant(self, plant_id: int, user_id: int | None = None) -> dict[str, Any] | None:
        try:
            if user_id is None:
                row = self.get_db().execute("SELECT * FROM Plants WHERE id = ?", (plant_id,)).fetchone()
            else:
                row = (
                    self.get_db()
                    .execute("SELECT * FROM Plants WHERE id = ? AND user_id = ?", (plant_id, user_id))
                    .fetchone()
                )
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Failed to get plant %s: %s", plant_id, exc)
            return None

    def list_plants(
        self,
        user_id: int,
        *,
        category: str | None = None,
        health_status: str | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        clauses = ["user_id = ?"]
        params: list[Any] = [user_id]
        if category:
            clauses.append("category = ?")
            params.append(category)
        if health_status:
            clauses.append("health_status = ?")
            params.append(health_status)
        if search:
            clauses.append("(name LIKE ? OR species LIKE ? OR notes LIKE ?)")
            pattern = f"%{search}%"
            params.extend([pattern, pattern, pattern])
        try:
            rows = (
                self.get_db()
                .execute(
                    f"SELECT * FROM Plants WHERE {' AND '.join(clauses)} ORDER BY name COLLATE NOCASE",  # nosec B608
                    params,
                )
                .fetchall()
            )
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("Failed to list plants for user %s: %s", user_id, exc)
            return []

    def update_plant(self, plant_id: int, fields: dict[str, Any]) -> bool:
        try:
            cols = safe_columns(fields, _PLANT_COLUMNS, context="update_plant")
            if not cols:
                return True
            cols["updated_at"] = iso_now()
            set_sql, params = build_set_clause(cols)
            params.append(plant_id)
            with self.connection() as db:
                cur = db.execute(f"UPDATE Plants SET {set_sql} WHERE id = ?", params)  # nosec B608
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to update plant %s: %s", plant_id, exc)
            return False

    def delete_plant(self, plant_id: int) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute("DELETE FROM Plants WHERE id = ?", (plant_id,))
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to delete plant %s: %s", plant_id, exc)
            return False

    def advance_last_care(self, plant_id: int, column: str, performed_at: str) -> bool:
        """Move ``last_watered_at`` / ``last_fertilized_at`` forward, never back."""
        if column not in {"last_watered_at", "last_fertilized_at"}:
            raise ValueError(f"Unsupported last-care column: {column}")
        try:
            with self.connection() as db:
                db.execute(
                    f"UPDATE Plants SET {column} = ?, updated_at = ? "  # nosec B608
                    f"WHERE id = ? AND ({column} IS NULL OR {column} < ?)",
                    (performed_at, iso_now(), plant_id, performed_at),
                )
            return True
        except sqlite3.Error as exc:
            logger.error("Failed to advance %s for plant %s: %s", column, plant_id, exc)
            return False
