"""
User Authentication Service
===========================
Manages user accounts with bcrypt hashing and audit logging.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import bcrypt

from app.domain.exceptions import AuthenticationError, ConflictError, ValidationError
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass
class UserAuthManager:
    """
    Manages user authentication with bcrypt hashing and audit logging.
    """

    database_handler: Any
    audit_logger: Optional[AuditLogger] = None
    # Optional injection for tests/composition; lazily initialized from database_handler.
    auth_repo: Optional[AuthRepository] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.auth_repo is None and self.database_handler is not None:
            self.auth_repo = AuthRepository(self.database_handler)

    def _repo(self) -> AuthRepository:
        if self.auth_repo is None:
            raise RuntimeError("AuthRepository is not configured")
        return self.auth_repo

    def _audit(self, actor: str, action: str, outcome: str, **meta: Any) -> None:
        if self.audit_logger:
            self.audit_logger.log_event(actor=actor, action=action, resource="user", outcome=outcome, **meta)

    def hash_password(self, password: str) -> str:
        """Hash the provided password using bcrypt."""
        salt = bcrypt.gensalt()
        hashed_password = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed_password.decode("utf-8")

    def check_password(self, stored_password: str, provided_password: str) -> bool:
        """Validate a plaintext password against the stored hash."""
        return bcrypt.checkpw(provided_password.encode("utf-8"), stored_password.encode("utf-8"))

    def register_user(self, username: str, password: str, email: Optional[str] = None) -> Dict[str, Any]:
        """Create an account and return its public fields.

        Raises:
            ValidationError: password too short
            ConflictError: username or email already taken
        """
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        user_id = self._repo().create_user(username, self.hash_password(password), email=email)
        if not user_id:
            logger.warning("Registration rejected for user '%s': already exists", username)
            self._audit(username, "register", "conflict")
            raise ConflictError("Username or email is already registered")

        logger.info("User '%s' registered successfully.", username)
        self._audit(username, "register", "success", user_id=user_id)
        return self._repo().get_user(user_id) or {"id": user_id, "username": username, "email": email}

    def authenticate_user(self, username: str, password: str) -> Dict[str, Any]:
        """Return the user's public fields when the credentials match.

        Raises:
            AuthenticationError: unknown user or wrong password
        """
        user = self._repo().get_user_auth_by_username(username)
        if not user:
            logger.warning("Authentication failed for user '%s': user not found.", username)
            self._audit(username, "login", "not_found")
            raise AuthenticationError("Invalid username or password")

        if not self.check_password(user["password_hash"], password):
            logger.warning("Authentication failed for user '%s': invalid credentials.", username)
            self._audit(username, "login", "denied")
            raise AuthenticationError("Invalid username or password")

        logger.info("User '%s' authenticated successfully.", username)
        self._audit(username, "login", "success", user_id=user["id"])
        return {"id": user["id"], "username": user["username"], "email": user.get("email")}

    def logout(self, username: Optional[str]) -> None:
        if username:
            self._audit(username, "logout", "success")

    def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get user by ID."""
        return self._repo().get_user(user_id)

    def list_user_ids(self) -> list[int]:
        return self._repo().list_user_ids()
