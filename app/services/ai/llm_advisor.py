"""
Plant Care Advisor
==================
Prompts a hosted LLM for care tips, symptom diagnoses and care schedules,
and turns its replies into validated payloads.

Model output is untrusted: replies are stripped of markdown fences, parsed
as JSON and validated with the schemas in ``app.schemas.ai``. Anything that
fails along the way degrades to a fixed fallback payload; only a missing
backend is reported to the caller (``FeatureUnavailableError``).

Usage
-----
::

    advisor = PlantCareAdvisor(backend=create_backend("openai", api_key=key))
    result = advisor.diagnose("yellow leaves, soggy soil", plant_name="Monstera")
    result.diagnosis.severity, result.source
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from app.domain.exceptions import FeatureUnavailableError
from app.schemas.ai import CareScheduleSuggestion, Diagnosis

if TYPE_CHECKING:
    from app.services.ai.llm_backends import LLMBackend

logger = logging.getLogger(__name__)

AI_DISABLED_MESSAGE = "AI features are disabled"

FALLBACK_TREATMENTS = [
    "Monitor the plant closely over the next few days",
    "Check soil moisture before watering again",
    "Make sure the plant gets suitable light",
]
FALLBACK_CARE_TIPS = "Sorry, care tips could not be generated at the moment."


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class AdvisorResult:
    """One advisor answer. ``source`` is "llm" or "fallback"."""

    source: str
    raw_text: str = ""
    model: str = ""
    usage: dict[str, int] = field(default_factory=dict)


@dataclass
class CareTipsResult(AdvisorResult):
    text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "source": self.source, "model": self.model}


@dataclass
class DiagnosisResult(AdvisorResult):
    diagnosis: Diagnosis = field(default_factory=Diagnosis)

    def to_dict(self) -> dict[str, Any]:
        return {**self.diagnosis.model_dump(mode="json"), "source": self.source, "model": self.model}


@dataclass
class CareScheduleResult(AdvisorResult):
    schedule: CareScheduleSuggestion = field(default_factory=CareScheduleSuggestion)

    def to_dict(self) -> dict[str, Any]:
        return {**self.schedule.model_dump(mode="json"), "source": self.source, "model": self.model}


def fallback_diagnosis() -> Diagnosis:
    return Diagnosis(
        disease_detected=False,
        disease_name="Unable to determine",
        severity="medium",
        confidence=0.5,
        treatments=list(FALLBACK_TREATMENTS),
    )


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_CARE_TIPS_SYSTEM_PROMPT = """\
You are AgroTrack's plant-care assistant. Give practical, specific care tips \
for home gardeners. Cover likely causes, what to do now, and how to prevent \
the problem. Keep it under 250 words. Plain text, no markdown headings."""

_DIAGNOSIS_SYSTEM_PROMPT = """\
You are a plant pathologist helping home gardeners. Diagnose the plant from \
the symptoms given. When unsure, say so and keep confidence low.

Response format (JSON):
{
  "disease_detected": <true|false>,
  "disease_name": "<name, or 'Healthy', or 'Unable to determine'>",
  "severity": "low" | "medium" | "high",
  "confidence": <0.0-1.0>,
  "symptoms": ["<observed symptom>", ...],
  "treatments": ["<3-5 specific steps>", ...],
  "prevention": ["<tip>", ...]
}

Respond ONLY with valid JSON. No markdown fences."""

_SCHEDULE_SYSTEM_PROMPT = """\
You are a plant-care planner. Suggest a care cadence for the plant described.

Response format (JSON):
{
  "watering_every_days": <integer>,
  "fertilizer_every_weeks": <integer>,
  "sunlight": "low" | "medium" | "bright_indirect" | "full_sun",
  "notes": ["<short tip>", ...]
}

Respond ONLY with valid JSON. No markdown fences."""


def strip_fences(text: str) -> str:
    """Remove markdown code fences a model may wrap around JSON."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = [ln for ln in cleaned.split("\n") if not ln.strip().startswith("```")]
        cleaned = "\n".join(lines).strip()
    return cleaned


def parse_json_reply(text: str) -> dict[str, Any] | None:
    """Decode a model reply into a dict, or None when it is not a JSON object."""
    try:
        data = json.loads(strip_fences(text))
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def _describe_plant(plant_name: str | None, species: str | None, context: dict[str, Any] | None) -> str:
    parts = [f"Plant: {plant_name or 'unknown'}"]
    if species:
        parts.append(f"Species: {species}")
    for key, value in (context or {}).items():
        if value not in (None, "", [], {}):
            parts.append(f"{key.replace('_', ' ').capitalize()}: {value}")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class PlantCareAdvisor:
    """
    LLM-backed advice. Never raises on model failures; a missing backend
    raises ``FeatureUnavailableError``.

    Parameters
    ----------
    backend:
        An initialised :class:`LLMBackend`, or ``None`` when AI is disabled.
    """

    def __init__(
        self,
        backend: "LLMBackend" | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
    ):
        self._backend = backend
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def is_available(self) -> bool:
        return self._backend is not None and self._backend.is_available

    @property
    def provider_name(self) -> str:
        return self._backend.name if self._backend is not None else "none"

    def status(self) -> dict[str, Any]:
        return {
            "available": self.is_available,
            "provider": self.provider_name,
            "model": self._backend.model if self._backend is not None else None,
        }

    def _require_backend(self) -> "LLMBackend":
        if not self.is_available:
            raise FeatureUnavailableError(AI_DISABLED_MESSAGE)
        return self._backend  # type: ignore[return-value]

    def _generate(self, system_prompt: str, user_prompt: str, *, json_mode: bool):
        backend = self._require_backend()
        try:
            return backend.generate(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                json_mode=json_mode,
            )
        except Exception as exc:
            logger.error("LLM request failed (%s): %s", backend.name, exc, exc_info=True)
            return None

    # -- public API ---------------------------------------------------------

    def care_tips(
        self,
        plant_name: str | None,
        species: str | None = None,
        question: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> CareTipsResult:
        prompt = _describe_plant(plant_name, species, context)
        prompt += f"\nQuestion: {question or 'What care does this plant need right now?'}"
        response = self._generate(_CARE_TIPS_SYSTEM_PROMPT, prompt, json_mode=False)
        if response is None or not response.text.strip():
            return CareTipsResult(source="fallback", text=FALLBACK_CARE_TIPS)
        return CareTipsResult(
            source="llm",
            text=response.text.strip(),
            raw_text=response.text,
            model=response.model,
            usage=response.usage,
        )

    def diagnose(
        self,
        symptoms: str,
        plant_name: str | None = None,
        species: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> DiagnosisResult:
        prompt = _describe_plant(plant_name, species, context) + f"\nSymptoms: {symptoms}"
        response = self._generate(_DIAGNOSIS_SYSTEM_PROMPT, prompt, json_mode=True)
        if response is None:
            return DiagnosisResult(source="fallback", diagnosis=fallback_diagnosis())

        data = parse_json_reply(response.text)
        if data is None:
            logger.warning("Diagnosis reply was not a JSON object; using fallback")
            return DiagnosisResult(source="fallback", diagnosis=fallback_diagnosis(), raw_text=response.text)
        try:
            diagnosis = Diagnosis.model_validate(data)
        except PydanticValidationError as exc:
            logger.warning("Diagnosis reply failed validation: %s", exc)
            return DiagnosisResult(source="fallback", diagnosis=fallback_diagnosis(), raw_text=response.text)
        if not diagnosis.treatments:
            diagnosis.treatments = list(FALLBACK_TREATMENTS)
        return DiagnosisResult(
            source="llm",
            diagnosis=diagnosis,
            raw_text=response.text,
            model=response.model,
            usage=response.usage,
        )

    def care_schedule(
        self,
        plant_name: str | None,
        species: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> CareScheduleResult:
        prompt = _describe_plant(plant_name, species, context)
        response = self._generate(_SCHEDULE_SYSTEM_PROMPT, prompt, json_mode=True)
        data = parse_json_reply(response.text) if response is not None else None
        if data is None:
            return CareScheduleResult(source="fallback", raw_text=response.text if response else "")
        try:
            schedule = CareScheduleSuggestion.model_validate(data)
        except PydanticValidationError as exc:
            logger.warning("Care schedule reply failed validation: %s", exc)
            return CareScheduleResult(source="fallback", raw_text=response.text)
        return CareScheduleResult(
            source="llm",
            schedule=schedule,
            raw_text=response.text,
            model=response.model,
            usage=response.usage,
        )
