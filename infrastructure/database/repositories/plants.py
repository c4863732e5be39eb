"""Repository for plants."""

from __future__ import annotations

from typing import Any

from app.domain.plant import Plant
from infrastructure.database.ops.plants import PlantOperations


class PlantRepository:
    """Typed access to the Plants table."""

    def __init__(self, backend: PlantOperations) -> None:
        self._backend = backend

    def create(self, user_id: int, fields: dict[str, Any]) -> int | None:
        return self._backend.insert_plant(user_id, fields)

    def get(self, plant_id: int, user_id: int | None = None) -> Plant | None:
        row = self._backend.get_plant(plant_id, user_id=user_id)
        return Plant.from_row(row) if row else None

    def list_for_user(
        self,
        user_id: int,
        *,
        category: str | None = None,
        health_status: str | None = None,
        search: str | None = None,
    ) -> list[Plant]:
        rows = self._backend.list_plants(user_id, category=category, health_status=health_status, search=search)
        return [Plant.from_row(row) for row in rows]

    def update(self, plant_id: int, fields: dict[str, Any]) -> bool:
        return self._backend.update_plant(plant_id, fields)

    def delete(self, plant_id: int) -> bool:
        return self._backend.delete_plant(plant_id)

    def advance_last_care(self, plant_id: int, column: str, performed_at: str) -> bool:
        return self._backend.advance_last_care(plant_id, column, performed_at)
