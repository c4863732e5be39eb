"""
Reminder Stores
===============

Backing stores a :class:`~app.clients.board.ReminderBoard` persists through.
Every store raises an :class:`~app.domain.exceptions.AgroTrackError`
subclass when a read or write is rejected; the board reverts on any of them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

import requests

from app.domain.exceptions import (
    AgroTrackError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from app.domain.reminders import Reminder

if TYPE_CHECKING:
    from app.services.application.reminder_service import ReminderService

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[AgroTrackError]] = {
    400: ValidationError,
    404: NotFoundError,
    409: ConflictError,
}


class ReminderStore(ABC):
    """Persistence collaborator of the reminder board."""

    @abstractmethod
    def fetch(self) -> list[Reminder]:
        """Return the current active reminders."""

    @abstractmethod
    def snooze(self, reminder_id: int, hours: float) -> Reminder:
        """Persist a snooze and return the stored reminder."""

    @abstractmethod
    def complete(self, reminder_id: int, log_care: bool = True) -> Reminder:
        """Persist a completion and return the stored reminder."""


class ServiceReminderStore(ReminderStore):
    """In-process store backed by :class:`ReminderService` for one user."""

    def __init__(self, reminder_service: "ReminderService", user_id: int):
        self.reminder_service = reminder_service
        self.user_id = user_id

    def fetch(self) -> list[Reminder]:
        return self.reminder_service.list_reminders(self.user_id)

    def snooze(self, reminder_id: int, hours: float) -> Reminder:
        return self.reminder_service.snooze(self.user_id, reminder_id, hours)

    def complete(self, reminder_id: int, log_care: bool = True) -> Reminder:
        return self.reminder_service.complete(self.user_id, reminder_id, log_care=log_care)


class RemoteReminderStore(ReminderStore):
    """
    Store that talks to the AgroTrack REST API.

    Args:
        base_url: Server root, e.g. ``http://localhost:5000``
        session: A ``requests.Session`` carrying the login cookie
        timeout: Per-request timeout in seconds
    """

    API_PREFIX = "/api/v1/reminders"

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{self.API_PREFIX}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Reminder API %s %s failed: %s", method, url, e)
            raise ExternalServiceError(f"Reminder service unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.ok and isinstance(body, dict) and body.get("ok"):
            return body.get("data")

        message = "Reminder service error"
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            message = body["error"].get("message") or message
        error_cls = _STATUS_ERRORS.get(response.status_code, ExternalServiceError)
        raise error_cls(message, detail={"status": response.status_code})

    @staticmethod
    def _decode(item: Any) -> Reminder:
        try:
            return Reminder.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceError(f"Malformed reminder in response: {e}") from e

    def _reminder_from(self, data: Any) -> Reminder:
        if not isinstance(data, dict) or not isinstance(data.get("reminder"), dict):
            raise ExternalServiceError("Response carried no reminder")
        return self._decode(data["reminder"])

    def fetch(self) -> list[Reminder]:
        data = self._request("GET", "") or {}
        items = data.get("reminders", []) if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ExternalServiceError("Response carried no reminder list")
        return [self._decode(item) for item in items]

    def snooze(self, reminder_id: int, hours: float) -> Reminder:
        return self._reminder_from(self._request("POST", f"/{reminder_id}/snooze", json={"hours": hours}))

    def complete(self, reminder_id: int, log_care: bool = True) -> Reminder:
        return self._reminder_from(self._request("POST", f"/{reminder_id}/complete", json={"log_care": log_care}))
