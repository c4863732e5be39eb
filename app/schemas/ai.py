"""
AI Schemas
==========

Request schemas for the LLM-backed advice endpoints, plus the normalized
diagnosis payload stored as an AI recommendation.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.enums.common import Severity


class CareTipsRequest(BaseModel):
    plant_id: int | None = Field(default=None, gt=0)
    plant_name: str | None = Field(default=None, max_length=100)
    species: str | None = Field(default=None, max_length=200)
    question: str | None = Field(default=None, max_length=1000)


class DiagnoseRequest(BaseModel):
    plant_id: int | None = Field(default=None, gt=0)
    species: str | None = Field(default=None, max_length=200)
    symptoms: str = Field(..., min_length=3, max_length=2000, description="What the user observed")


class CareScheduleRequest(BaseModel):
    plant_id: int = Field(..., gt=0)


class Diagnosis(BaseModel):
    """Normalized diagnosis. Model output is coerced into this shape."""

    disease_detected: bool = False
    disease_name: str = "Unable to determine"
    severity: Severity = Severity.MEDIUM
    confidence: float = 0.5
    symptoms: list[str] = Field(default_factory=list)
    treatments: list[str] = Field(default_factory=list)
    prevention: list[str] = Field(default_factory=list)

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in {s.value for s in Severity}:
            return v.strip().lower()
        return Severity.MEDIUM

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.5
        if value != value or value < 0.0 or value > 1.0:  # NaN or out of range
            return 0.5
        return value

    @field_validator("symptoms", "treatments", "prevention", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v if str(item).strip()]
        return []


class CareScheduleSuggestion(BaseModel):
    watering_every_days: int | None = Field(default=None, ge=1, le=365)
    fertilizer_every_weeks: int | None = Field(default=None, ge=1, le=52)
    sunlight: str | None = None
    notes: list[str] = Field(default_factory=list)

    @field_validator("watering_every_days", "fertilizer_every_weeks", mode="before")
    @classmethod
    def coerce_interval(cls, v: Any) -> int | None:
        try:
            value = int(round(float(v)))
        except (TypeError, ValueError):
            return None
        return value if value >= 1 else None

    @field_validator("notes", mode="before")
    @classmethod
    def coerce_notes(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [v]
        return [str(item) for item in (v or [])]
