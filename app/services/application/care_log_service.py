"""
Care Log Service
================
Append-only care history for plants.

Logging a watering or fertilizing event moves the plant's matching
``last_*_at`` timestamp forward and publishes ``PlantEvent.CARE_LOGGED`` so
the reminder service regenerates that user's reminders.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from app.constants import Limits
from app.domain.exceptions import NotFoundError, RepositoryError, ValidationError
from app.domain.plant import CareLog
from app.domain.reminder_engine import historical_frequency
from app.enums.common import CareType
from app.enums.events import PlantEvent
from app.schemas.events import CareLoggedPayload
from app.utils.time import coerce_datetime, to_iso, utc_now

if TYPE_CHECKING:
    from app.utils.event_bus import EventBus
    from infrastructure.database.repositories.care_logs import CareLogRepository
    from infrastructure.database.repositories.plants import PlantRepository

logger = logging.getLogger(__name__)

_LAST_CARE_COLUMNS = {
    CareType.WATERING: "last_watered_at",
    CareType.FERTILIZING: "last_fertilized_at",
}

# Tolerate small clock differences between client and server
_FUTURE_TOLERANCE = timedelta(minutes=5)


class CareLogService:
    def __init__(
        self,
        care_log_repo: "CareLogRepository",
        plant_repo: "PlantRepository",
        event_bus: Optional["EventBus"] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.care_log_repo = care_log_repo
        self.plant_repo = plant_repo
        self.event_bus = event_bus
        self._clock = clock

    def _require_plant(self, user_id: int, plant_id: int) -> None:
        if self.plant_repo.get(plant_id, user_id=user_id) is None:
            raise NotFoundError(f"Plant {plant_id} not found")

    def log_care(
        self,
        user_id: int,
        plant_id: int,
        care_type: CareType | str,
        performed_at: datetime | str | None = None,
        notes: Optional[str] = None,
        photos: Optional[List[str]] = None,
        care_data: Optional[Dict[str, Any]] = None,
    ) -> CareLog:
        """
        Append a care event.

        Raises:
            NotFoundError: plant missing or owned by someone else
            ValidationError: bad care type or a timestamp in the future
            RepositoryError: the insert failed
        """
        self._require_plant(user_id, plant_id)
        try:
            care_type = CareType(care_type)
        except ValueError:
            raise ValidationError(f"Unknown care type: {care_type}") from None

        now = self._clock()
        when = coerce_datetime(performed_at) if performed_at is not None else now
        if when is None:
            raise ValidationError("performed_at must be an ISO-8601 datetime")
        if when > now + _FUTURE_TOLERANCE:
            raise ValidationError("performed_at cannot be in the future")

        performed_iso = to_iso(when)
        log_id = self.care_log_repo.append(
            plant_id=plant_id,
            user_id=user_id,
            care_type=care_type.value,
            performed_at=performed_iso,
            notes=notes,
            photos=photos,
            care_data=care_data,
        )
        if not log_id:
            raise RepositoryError(f"Failed to log {care_type.value} for plant {plant_id}")

        column = _LAST_CARE_COLUMNS.get(care_type)
        if column and not self.plant_repo.advance_last_care(plant_id, column, performed_iso):
            logger.warning("Care log %s saved but %s of plant %s was not advanced", log_id, column, plant_id)

        logger.info("Logged %s for plant %s (log %s)", care_type.value, plant_id, log_id)
        if self.event_bus is not None:
            self.event_bus.publish(
                PlantEvent.CARE_LOGGED,
                CareLoggedPayload(
                    user_id=user_id,
                    plant_id=plant_id,
                    care_type=care_type.value,
                    performed_at=performed_iso,
                    log_id=log_id,
                ),
            )
        return CareLog(
            id=log_id,
            plant_id=plant_id,
            user_id=user_id,
            care_type=care_type,
            performed_at=when,
            notes=notes,
            photos=list(photos or []),
            care_data=dict(care_data or {}),
        )

    def list_logs(
        self,
        user_id: int,
        plant_id: int,
        *,
        care_type: Optional[str] = None,
        limit: int = Limits.CARE_LOGS_PAGE,
        offset: int = 0,
    ) -> List[CareLog]:
        self._require_plant(user_id, plant_id)
        return self.care_log_repo.list_for_plant(plant_id, care_type=care_type, limit=limit, offset=offset)

    def delete_log(self, user_id: int, plant_id: int, log_id: int) -> None:
        """Remove a mistaken entry. The plant's last-care timestamps are left as they are."""
        self._require_plant(user_id, plant_id)
        log = self.care_log_repo.get(log_id)
        if log is None or log.plant_id != plant_id:
            raise NotFoundError(f"Care log {log_id} not found")
        if not self.care_log_repo.delete(log_id):
            raise RepositoryError(f"Failed to delete care log {log_id}")

    def care_history(self, user_id: int, plant_id: int) -> Dict[str, Dict[str, Any]]:
        """Per care type: how often it was logged, when last, and the recent cadence."""
        self._require_plant(user_id, plant_id)
        now = self._clock()
        logs = self.care_log_repo.list_for_plant(plant_id, limit=10_000)
        summary: Dict[str, Dict[str, Any]] = {}
        for care_type in CareType:
            entries = [log for log in logs if log.care_type == care_type]
            if not entries:
                continue
            summary[care_type.value] = {
                "count": len(entries),
                "last_performed_at": to_iso(max(log.performed_at for log in entries)),
                "frequency_days": historical_frequency(entries, care_type, now),
            }
        return summary
