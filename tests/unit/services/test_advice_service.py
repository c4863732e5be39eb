"""
Tests for PlantAdviceService: plant context, persistence and history.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from app.domain.exceptions import NotFoundError
from app.services.ai.llm_advisor import PlantCareAdvisor
from app.services.ai.llm_backends import LLMResponse
from app.services.application.advice_service import PlantAdviceService

DIAGNOSIS_REPLY = {
    "disease_detected": True,
    "disease_name": "Root rot",
    "severity": "high",
    "confidence": 0.8,
    "treatments": ["Repot into fresh mix"],
}


def _backend(*replies):
    backend = MagicMock()
    backend.is_available = True
    backend.name = "fake"
    backend.model = "fake-model"
    backend.generate.side_effect = [LLMResponse(text=reply, model="fake-model") for reply in replies]
    return backend


def _prompt(backend, call=0):
    return backend.generate.call_args_list[call].kwargs["user_prompt"]


@pytest.fixture()
def make_service(plant_service, recommendation_repo):
    def _make(*replies):
        backend = _backend(*replies)
        service = PlantAdviceService(PlantCareAdvisor(backend), plant_service, recommendation_repo)
        return service, backend

    return _make


class TestDiagnose:
    def test_stores_diagnosis_with_plant_context(self, make_service, seed):
        plant_id = seed.create_plant("Monstera", last_watered_days_ago=2)
        service, backend = make_service(json.dumps(DIAGNOSIS_REPLY))

        result, record_id = service.diagnose(1, "yellow leaves", plant_id=plant_id)

        assert result.source == "llm"
        assert record_id is not None
        assert "Plant: Monstera" in _prompt(backend)
        assert "Category: indoor" in _prompt(backend)

        history = service.history(1)
        assert len(history) == 1
        assert history[0]["kind"] == "diagnosis"
        assert history[0]["disease_name"] == "Root rot"
        assert history[0]["disease_detected"] is True
        assert history[0]["provider"] == "fake"
        assert history[0]["payload"]["source"] == "llm"

    def test_fallback_is_stored_with_input_symptoms(self, make_service):
        service, _ = make_service("no idea")

        result, record_id = service.diagnose(1, "white powder on leaves")

        assert result.source == "fallback"
        stored = service.history(1)[0]
        assert stored["id"] == record_id
        assert stored["confidence"] == 0.5
        assert stored["symptoms"] == ["white powder on leaves"]

    def test_foreign_plant(self, make_service, seed):
        plant_id = seed.create_plant("Fern", user_id=2)
        service, backend = make_service(json.dumps(DIAGNOSIS_REPLY))

        with pytest.raises(NotFoundError):
            service.diagnose(1, "spots", plant_id=plant_id)
        backend.generate.assert_not_called()


class TestCareSchedule:
    def test_llm_schedule_is_stored(self, make_service, seed):
        plant_id = seed.create_plant("Basil", category="herb")
        service, _ = make_service(json.dumps({"watering_every_days": 3, "sunlight": "full_sun"}))

        result, record_id = service.care_schedule(1, plant_id)

        assert result.schedule.watering_every_days == 3
        stored = service.history(1, kind="care_schedule")
        assert [r["id"] for r in stored] == [record_id]
        assert stored[0]["payload"]["sunlight"] == "full_sun"

    def test_fallback_schedule_is_not_stored(self, make_service, seed):
        plant_id = seed.create_plant("Basil")
        service, _ = make_service("sorry")

        result, record_id = service.care_schedule(1, plant_id)

        assert result.source == "fallback"
        assert record_id is None
        assert service.history(1) == []


class TestHistory:
    def test_filters_by_plant(self, make_service, seed):
        first = seed.create_plant("Fern")
        second = seed.create_plant("Cactus")
        service, _ = make_service(json.dumps(DIAGNOSIS_REPLY), json.dumps(DIAGNOSIS_REPLY))
        service.diagnose(1, "spots", plant_id=first)
        service.diagnose(1, "spots", plant_id=second)

        assert [r["plant_id"] for r in service.history(1, plant_id=second)] == [second]
        assert service.history(2) == []

    def test_care_tips_uses_stored_plant(self, make_service, seed):
        plant_id = seed.create_plant("Pothos")
        service, backend = make_service("Keep it out of direct sun.")

        result = service.care_tips(1, plant_id=plant_id, question="Leggy growth?")

        assert result.text == "Keep it out of direct sun."
        assert "Plant: Pothos" in _prompt(backend)
