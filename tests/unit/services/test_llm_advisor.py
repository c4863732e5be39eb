"""
Tests for the LLM plant care advisor and its backends.

Covers:
- Backend factory: disabled, unknown and key-less providers
- Care tips, diagnosis and care schedule parsing
- Fallbacks on transport errors, bad JSON and invalid payloads
- FeatureUnavailableError when no backend is configured
"""

from __future__ import annotations

import json

import pytest

from app.domain.exceptions import FeatureUnavailableError
from app.enums.common import Severity
from app.schemas.ai import Diagnosis
from app.services.ai.llm_advisor import (
    AI_DISABLED_MESSAGE,
    FALLBACK_CARE_TIPS,
    FALLBACK_TREATMENTS,
    PlantCareAdvisor,
    parse_json_reply,
    strip_fences,
)
from app.services.ai.llm_backends import LLMBackend, LLMResponse, create_backend


class FakeBackend(LLMBackend):
    """Replays canned replies; an Exception instance in the queue is raised."""

    name = "fake"

    def __init__(self, *replies):
        super().__init__(api_key="test-key", model="fake-model")
        self.replies = list(replies)
        self.calls = []
        self.initialize()

    def _build_client(self):
        return object()

    def _complete(self, system_prompt, user_prompt, max_tokens, temperature, json_mode):
        self.calls.append({"system": system_prompt, "user": user_prompt, "json_mode": json_mode})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(text=reply, model=self.model, usage={"total_tokens": 42})


DIAGNOSIS_REPLY = {
    "disease_detected": True,
    "disease_name": "Root rot",
    "severity": "HIGH",
    "confidence": 0.82,
    "symptoms": ["yellow leaves", "soggy soil"],
    "treatments": ["Repot into fresh mix", "Trim black roots"],
    "prevention": "Water only when the top inch is dry",
}


# ========================== Backends ========================================


class TestCreateBackend:
    def test_none_provider_disables_ai(self):
        assert create_backend("none") is None
        assert create_backend("") is None

    def test_unknown_provider(self):
        assert create_backend("watson", api_key="k") is None

    def test_missing_api_key(self):
        assert create_backend("openai", api_key="") is None

    def test_generate_reports_latency(self):
        backend = FakeBackend("hello")
        response = backend.generate("sys", "user")

        assert response.text == "hello"
        assert response.latency_ms >= 0
        assert backend.is_available


# ========================== Reply parsing ===================================


class TestReplyParsing:
    def test_strip_fences(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_fences('  {"a": 1} ') == '{"a": 1}'

    def test_parse_rejects_non_objects(self):
        assert parse_json_reply("[1, 2]") is None
        assert parse_json_reply("not json") is None
        assert parse_json_reply('{"ok": true}') == {"ok": True}


class TestDiagnosisSchema:
    @pytest.mark.parametrize("value", [1.7, -0.2, "high", None, float("nan")])
    def test_bad_confidence_is_reset(self, value):
        assert Diagnosis.model_validate({"confidence": value}).confidence == 0.5

    def test_unknown_severity_defaults_to_medium(self):
        assert Diagnosis.model_validate({"severity": "catastrophic"}).severity == Severity.MEDIUM

    def test_string_lists_are_wrapped(self):
        diagnosis = Diagnosis.model_validate({"symptoms": "wilting", "treatments": ""})
        assert diagnosis.symptoms == ["wilting"]
        assert diagnosis.treatments == []


# ========================== Advisor =========================================


class TestAdvisorDisabled:
    def test_status(self):
        assert PlantCareAdvisor().status() == {"available": False, "provider": "none", "model": None}

    @pytest.mark.parametrize("call", ["care_tips", "diagnose", "care_schedule"])
    def test_operations_raise(self, call):
        advisor = PlantCareAdvisor()
        with pytest.raises(FeatureUnavailableError, match=AI_DISABLED_MESSAGE):
            getattr(advisor, call)("Fern")


class TestCareTips:
    def test_returns_model_text(self):
        backend = FakeBackend("  Water weekly and mist the leaves.  ")
        advisor = PlantCareAdvisor(backend)

        result = advisor.care_tips("Fern", species="Nephrolepis", question="Brown tips?")

        assert result.source == "llm"
        assert result.text == "Water weekly and mist the leaves."
        assert result.model == "fake-model"
        assert "Question: Brown tips?" in backend.calls[0]["user"]
        assert backend.calls[0]["json_mode"] is False

    def test_empty_reply_falls_back(self):
        result = PlantCareAdvisor(FakeBackend("   ")).care_tips("Fern")
        assert result.source == "fallback"
        assert result.text == FALLBACK_CARE_TIPS

    def test_transport_error_falls_back(self):
        result = PlantCareAdvisor(FakeBackend(TimeoutError("slow"))).care_tips("Fern")
        assert result.source == "fallback"


class TestDiagnose:
    def test_parses_fenced_json(self):
        reply = "```json\n" + json.dumps(DIAGNOSIS_REPLY) + "\n```"
        backend = FakeBackend(reply)

        result = PlantCareAdvisor(backend).diagnose("yellow leaves", plant_name="Monstera")

        assert result.source == "llm"
        assert result.diagnosis.disease_name == "Root rot"
        assert result.diagnosis.severity == Severity.HIGH
        assert result.diagnosis.confidence == pytest.approx(0.82)
        assert result.diagnosis.prevention == ["Water only when the top inch is dry"]
        assert result.usage == {"total_tokens": 42}
        assert backend.calls[0]["json_mode"] is True
        assert "Symptoms: yellow leaves" in backend.calls[0]["user"]

    def test_out_of_range_confidence_is_clamped(self):
        reply = json.dumps({**DIAGNOSIS_REPLY, "confidence": 1.7})
        result = PlantCareAdvisor(FakeBackend(reply)).diagnose("spots")
        assert result.source == "llm"
        assert result.diagnosis.confidence == 0.5

    def test_missing_treatments_get_defaults(self):
        reply = json.dumps({"disease_detected": False, "disease_name": "Healthy", "treatments": []})
        result = PlantCareAdvisor(FakeBackend(reply)).diagnose("looks fine")
        assert result.diagnosis.treatments == FALLBACK_TREATMENTS

    def test_invalid_json_falls_back(self):
        result = PlantCareAdvisor(FakeBackend("The plant looks thirsty.")).diagnose("droopy")

        assert result.source == "fallback"
        assert result.diagnosis.disease_name == "Unable to determine"
        assert result.diagnosis.confidence == 0.5
        assert result.diagnosis.severity == Severity.MEDIUM
        assert result.raw_text == "The plant looks thirsty."

    def test_transport_error_falls_back(self):
        result = PlantCareAdvisor(FakeBackend(ConnectionError("down"))).diagnose("droopy")
        assert result.source == "fallback"
        assert result.diagnosis.treatments == FALLBACK_TREATMENTS

    def test_to_dict_includes_source(self):
        payload = PlantCareAdvisor(FakeBackend(json.dumps(DIAGNOSIS_REPLY))).diagnose("spots").to_dict()
        assert payload["source"] == "llm"
        assert payload["severity"] == "high"


class TestCareSchedule:
    def test_parses_schedule(self):
        reply = json.dumps({"watering_every_days": 6.6, "fertilizer_every_weeks": 4, "notes": "Bright spot"})
        result = PlantCareAdvisor(FakeBackend(reply)).care_schedule("Basil", context={"category": "herb"})

        assert result.source == "llm"
        assert result.schedule.watering_every_days == 7
        assert result.schedule.fertilizer_every_weeks == 4
        assert result.schedule.notes == ["Bright spot"]

    def test_out_of_range_interval_falls_back(self):
        reply = json.dumps({"watering_every_days": 1000})
        result = PlantCareAdvisor(FakeBackend(reply)).care_schedule("Basil")
        assert result.source == "fallback"

    def test_bad_json_falls_back(self):
        result = PlantCareAdvisor(FakeBackend("every few days")).care_schedule("Basil")
        assert result.source == "fallback"
        assert result.schedule.watering_every_days is None
