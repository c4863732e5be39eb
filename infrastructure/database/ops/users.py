"""Database operations for user accounts."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now

logger = logging.getLogger(__name__)


class UserOperations:
    """Insert and look up users."""

    def insert_user(self, username: str, password_hash: str, email: str | None = None) -> int | None:
        """Inserts a new user into the Users table and returns its id."""
        try:
            with self.connection() as conn:
                cur = conn.execute(
                    "INSERT INTO Users (username, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                    (username, email, password_hash, iso_now()),
                )
                return cur.lastrowid
        except sqlite3.IntegrityError:
            logger.info("User %s already exists", username)
            return None
        except sqlite3.Error as exc:
            logger.error("Error inserting user: %s", exc)
            raise

    def get_user_by_username(self, username: str) -> dict[str, Any] | None:
        """Fetches a user by username."""
        try:
            row = self.get_db().execute("SELECT * FROM Users WHERE username = ?", (username,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Error fetching user: %s", exc)
            return None

    def get_user_by_id(self, user_id: int) -> dict[str, Any] | None:
        try:
            row = self.get_db().execute("SELECT * FROM Users WHERE id = ?", (user_id,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Error fetching user %s: %s", user_id, exc)
            return None

    def list_user_ids(self) -> list[int]:
        """Ids of every user that owns at least one plant."""
        try:
            rows = self.get_db().execute("SELECT DISTINCT user_id FROM Plants ORDER BY user_id").fetchall()
            return [int(row["user_id"]) for row in rows]
        except sqlite3.Error as exc:
            logger.error("Error listing plant owners: %s", exc)
            return []
