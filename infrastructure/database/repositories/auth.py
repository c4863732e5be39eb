"""
Auth Repository
===============

User account lookups for ``UserAuthManager``. Password hashing stays in the
service; this layer only stores and fetches hashes.
"""

from __future__ import annotations

from typing import Any

from infrastructure.database.ops.users import UserOperations


class AuthRepository:
    """Repository for user-authentication database operations."""

    def __init__(self, backend: UserOperations) -> None:
        self._backend = backend

    def create_user(self, username: str, password_hash: str, email: str | None = None) -> int | None:
        """Create a user account. Returns the new id, or None when the name is taken."""
        return self._backend.insert_user(username.strip(), password_hash, email=email)

    def get_user_auth_by_username(self, username: str) -> dict[str, Any] | None:
        """Return ``{id, username, email, password_hash}`` or None."""
        row = self._backend.get_user_by_username(username.strip())
        if not row:
            return None
        return {
            "id": row["id"],
            "username": row["username"],
            "email": row.get("email"),
            "password_hash": row["password_hash"],
        }

    def get_user(self, user_id: int) -> dict[str, Any] | None:
        """Public user fields (never the hash)."""
        row = self._backend.get_user_by_id(user_id)
        if not row:
            return None
        return {
            "id": row["id"],
            "username": row["username"],
            "email": row.get("email"),
            "created_at": row.get("created_at"),
        }

    def list_user_ids(self) -> list[int]:
        return self._backend.list_user_ids()
