"""Repository for the append-only care log."""

from __future__ import annotations

from typing import Any

from app.domain.plant import CareLog
from infrastructure.database.ops.care_logs import CareLogOperations


class CareLogRepository:
    def __init__(self, backend: CareLogOperations) -> None:
        self._backend = backend

    def append(
        self,
        plant_id: int,
        user_id: int,
        care_type: str,
        performed_at: str,
        notes: str | None = None,
        photos: list[str] | None = None,
        care_data: dict[str, Any] | None = None,
    ) -> int | None:
        return self._backend.insert_care_log(
            plant_id=plant_id,
            user_id=user_id,
            care_type=care_type,
            performed_at=performed_at,
            notes=notes,
            photos=photos,
            care_data=care_data,
        )

    def get(self, log_id: int) -> CareLog | None:
        row = self._backend.get_care_log(log_id)
        return CareLog.from_row(row) if row else None

    def list_for_plant(
        self, plant_id: int, *, care_type: str | None = None, limit: int = 100, offset: int = 0
    ) -> list[CareLog]:
        rows = self._backend.list_care_logs(plant_id, care_type=care_type, limit=limit, offset=offset)
        return [CareLog.from_row(row) for row in rows]

    def list_for_user(self, user_id: int, since: str | None = None) -> list[CareLog]:
        return [CareLog.from_row(row) for row in self._backend.list_user_care_logs(user_id, since=since)]

    def delete(self, log_id: int) -> bool:
        return self._backend.delete_care_log(log_id)
