"""
Plant Advice Service
====================
Connects the LLM advisor to a user's plants and keeps a history of the
structured answers (diagnoses and care schedules) as AI recommendations.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from app.constants import Limits
from app.domain.plant import Plant
from app.enums.common import RecommendationKind
from app.services.ai.llm_advisor import CareScheduleResult, CareTipsResult, DiagnosisResult
from app.utils.time import to_iso

if TYPE_CHECKING:
    from app.services.ai.llm_advisor import PlantCareAdvisor
    from app.services.application.plant_service import PlantService
    from infrastructure.database.repositories.ai import RecommendationRepository

logger = logging.getLogger(__name__)


def _plant_context(plant: Plant) -> Dict[str, Any]:
    return {
        "category": plant.category.value,
        "sunlight": plant.sunlight.value,
        "health_status": plant.health_status.value,
        "location": plant.location,
        "watering_every_days": plant.watering_every_days,
        "last_watered_at": to_iso(plant.last_watered_at),
    }


class PlantAdviceService:
    def __init__(
        self,
        advisor: "PlantCareAdvisor",
        plant_service: "PlantService",
        recommendation_repo: "RecommendationRepository",
    ):
        self.advisor = advisor
        self.plant_service = plant_service
        self.recommendation_repo = recommendation_repo

    def status(self) -> Dict[str, Any]:
        return self.advisor.status()

    def care_tips(
        self,
        user_id: int,
        *,
        plant_id: Optional[int] = None,
        plant_name: Optional[str] = None,
        species: Optional[str] = None,
        question: Optional[str] = None,
    ) -> CareTipsResult:
        context: Dict[str, Any] = {}
        if plant_id is not None:
            plant = self.plant_service.get_plant(user_id, plant_id)
            plant_name, species, context = plant.name, plant.species or species, _plant_context(plant)
        return self.advisor.care_tips(plant_name, species, question=question, context=context)

    def diagnose(
        self,
        user_id: int,
        symptoms: str,
        *,
        plant_id: Optional[int] = None,
        species: Optional[str] = None,
    ) -> tuple[DiagnosisResult, Optional[int]]:
        """Diagnose and store the result. Returns the result and the stored id."""
        plant_name = None
        context: Dict[str, Any] = {}
        if plant_id is not None:
            plant = self.plant_service.get_plant(user_id, plant_id)
            plant_name, species, context = plant.name, plant.species or species, _plant_context(plant)

        result = self.advisor.diagnose(symptoms, plant_name=plant_name, species=species, context=context)
        diagnosis = result.diagnosis
        record_id = self.recommendation_repo.save(
            user_id,
            RecommendationKind.DIAGNOSIS.value,
            plant_id=plant_id,
            disease_detected=diagnosis.disease_detected,
            disease_name=diagnosis.disease_name,
            severity=diagnosis.severity.value,
            confidence=diagnosis.confidence,
            symptoms=diagnosis.symptoms or [symptoms],
            treatments=diagnosis.treatments,
            prevention=diagnosis.prevention,
            payload={"source": result.source, "input": symptoms},
            raw_text=result.raw_text or None,
            provider=self.advisor.provider_name,
        )
        if record_id is None:
            logger.warning("Diagnosis for user %s was not stored", user_id)
        return result, record_id

    def care_schedule(self, user_id: int, plant_id: int) -> tuple[CareScheduleResult, Optional[int]]:
        plant = self.plant_service.get_plant(user_id, plant_id)
        result = self.advisor.care_schedule(plant.name, plant.species, context=_plant_context(plant))
        record_id = None
        if result.source == "llm":
            record_id = self.recommendation_repo.save(
                user_id,
                RecommendationKind.CARE_SCHEDULE.value,
                plant_id=plant_id,
                payload=result.schedule.model_dump(mode="json"),
                raw_text=result.raw_text or None,
                provider=self.advisor.provider_name,
            )
        return result, record_id

    def history(
        self,
        user_id: int,
        *,
        plant_id: Optional[int] = None,
        kind: Optional[str] = None,
        limit: int = Limits.RECOMMENDATION_HISTORY,
    ) -> List[Dict[str, Any]]:
        return self.recommendation_repo.history(user_id, plant_id=plant_id, kind=kind, limit=limit)
