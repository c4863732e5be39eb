"""
Plant Service
=============
Application-level service for a user's plants.

Responsibilities:
- Plant CRUD scoped to the owning user
- Normalizing timestamps before they reach the repository
- Publishing plant lifecycle events so reminders can be refreshed
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, RepositoryError, ValidationError
from app.domain.plant import Plant
from app.enums.events import PlantEvent
from app.schemas.events import PlantLifecyclePayload
from app.utils.time import coerce_datetime, to_iso

if TYPE_CHECKING:
    from app.utils.event_bus import EventBus
    from infrastructure.database.repositories.plants import PlantRepository
    from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS = ("last_watered_at", "last_fertilized_at")
_ENUM_FIELDS = ("category", "sunlight", "health_status")


def _normalize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Render enums as values and timestamps as UTC ISO strings."""
    normalized = dict(fields)
    for key in _ENUM_FIELDS:
        value = normalized.get(key)
        if value is not None and hasattr(value, "value"):
            normalized[key] = value.value
    for key in _TIMESTAMP_FIELDS:
        if key in normalized and normalized[key] is not None:
            parsed = coerce_datetime(normalized[key])
            if parsed is None:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            normalized[key] = to_iso(parsed)
    return normalized


class PlantService:
    """Plant CRUD for one user at a time."""

    def __init__(
        self,
        plant_repo: "PlantRepository",
        event_bus: Optional["EventBus"] = None,
        audit_logger: Optional["AuditLogger"] = None,
    ):
        self.plant_repo = plant_repo
        self.event_bus = event_bus
        self.audit_logger = audit_logger

    def _publish(self, event: PlantEvent, plant: Plant) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(event, PlantLifecyclePayload(user_id=plant.user_id, plant_id=plant.id, name=plant.name))

    def list_plants(
        self,
        user_id: int,
        *,
        category: Optional[str] = None,
        health_status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Plant]:
        return self.plant_repo.list_for_user(user_id, category=category, health_status=health_status, search=search)

    def get_plant(self, user_id: int, plant_id: int) -> Plant:
        """Return the plant, or raise NotFoundError when it is missing or not the user's."""
        plant = self.plant_repo.get(plant_id, user_id=user_id)
        if plant is None:
            raise NotFoundError(f"Plant {plant_id} not found")
        return plant

    def create_plant(self, user_id: int, fields: Dict[str, Any]) -> Plant:
        plant_id = self.plant_repo.create(user_id, _normalize_fields(fields))
        if not plant_id:
            raise RepositoryError("Failed to create plant")
        plant = self.get_plant(user_id, plant_id)
        logger.info("Created plant %s (%s) for user %s", plant.id, plant.name, user_id)
        if self.audit_logger:
            self.audit_logger.log_event(str(user_id), "create", f"plant:{plant.id}", "success")
        self._publish(PlantEvent.PLANT_CREATED, plant)
        return plant

    def update_plant(self, user_id: int, plant_id: int, fields: Dict[str, Any]) -> Plant:
        self.get_plant(user_id, plant_id)
        if fields:
            if not self.plant_repo.update(plant_id, _normalize_fields(fields)):
                raise RepositoryError(f"Failed to update plant {plant_id}")
        plant = self.get_plant(user_id, plant_id)
        self._publish(PlantEvent.PLANT_UPDATED, plant)
        return plant

    def delete_plant(self, user_id: int, plant_id: int) -> None:
        """Hard delete; care logs and reminders go with it."""
        plant = self.get_plant(user_id, plant_id)
        if not self.plant_repo.delete(plant_id):
            raise RepositoryError(f"Failed to delete plant {plant_id}")
        logger.info("Deleted plant %s for user %s", plant_id, user_id)
        if self.audit_logger:
            self.audit_logger.log_event(str(user_id), "delete", f"plant:{plant_id}", "success")
        self._publish(PlantEvent.PLANT_DELETED, plant)
