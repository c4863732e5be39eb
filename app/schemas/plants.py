"""
Plant Schemas
=============

Request schemas for plant and care-log endpoints.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.enums.common import CareType, PlantCategory, PlantHealthStatus, SunlightRequirement


class CreatePlantRequest(BaseModel):
    """Request schema for adding a plant."""

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    species: str | None = Field(default=None, max_length=200)
    category: PlantCategory = Field(default=PlantCategory.INDOOR)
    sunlight: SunlightRequirement = Field(default=SunlightRequirement.MEDIUM)
    watering_every_days: int | None = Field(default=None, ge=1, le=365, description="Watering interval in days")
    fertilizer_every_weeks: int | None = Field(default=None, ge=1, le=52, description="Fertilizing interval in weeks")
    last_watered_at: datetime | None = None
    last_fertilized_at: datetime | None = None
    health_status: PlantHealthStatus = Field(default=PlantHealthStatus.GOOD)
    location: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class UpdatePlantRequest(BaseModel):
    """Partial update; only the fields sent are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    species: str | None = Field(default=None, max_length=200)
    category: PlantCategory | None = None
    sunlight: SunlightRequirement | None = None
    watering_every_days: int | None = Field(default=None, ge=1, le=365)
    fertilizer_every_weeks: int | None = Field(default=None, ge=1, le=52)
    last_watered_at: datetime | None = None
    last_fertilized_at: datetime | None = None
    health_status: PlantHealthStatus | None = None
    location: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)


class PlantListQuery(BaseModel):
    category: PlantCategory | None = None
    health_status: PlantHealthStatus | None = None
    search: str | None = Field(default=None, max_length=100)


class CreateCareLogRequest(BaseModel):
    """Request schema for logging a care activity."""

    care_type: CareType
    performed_at: datetime | None = Field(default=None, description="Defaults to now")
    notes: str | None = Field(default=None, max_length=2000)
    photos: list[str] = Field(default_factory=list, max_length=10)
    care_data: dict[str, Any] = Field(default_factory=dict)
