"""Repository for stored AI recommendations."""

from __future__ import annotations

from typing import Any

from infrastructure.database.ops.recommendations import RecommendationOperations


class RecommendationRepository:
    def __init__(self, backend: RecommendationOperations) -> None:
        self._backend = backend

    def save(self, user_id: int, kind: str, **fields: Any) -> int | None:
        return self._backend.insert_recommendation(user_id, kind, **fields)

    def history(
        self, user_id: int, *, plant_id: int | None = None, kind: str | None = None, limit: int = 50
    ) -> list[dict[str, Any]]:
        return self._backend.list_recommendations(user_id, plant_id=plant_id, kind=kind, limit=limit)
