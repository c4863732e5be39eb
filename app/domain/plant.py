"""
Plant and Care Log Domain Entities
==================================
Plain records read from the repositories and handed to the reminder engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.enums.common import CareType, PlantCategory, PlantHealthStatus, SunlightRequirement
from app.utils.time import coerce_datetime, to_iso


def _coerce_enum(enum_cls, value, default):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(slots=True)
class Plant:
    """A user's plant with its care cadence and last-care timestamps."""

    id: int
    user_id: int
    name: str
    category: PlantCategory = PlantCategory.INDOOR
    species: str | None = None
    sunlight: SunlightRequirement = SunlightRequirement.MEDIUM
    watering_every_days: int | None = None
    fertilizer_every_weeks: int | None = None
    last_watered_at: datetime | None = None
    last_fertilized_at: datetime | None = None
    health_status: PlantHealthStatus = PlantHealthStatus.GOOD
    location: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def explicit_frequency_days(self, care_type: CareType) -> int | None:
        """Interval the owner set on the plant itself, if any."""
        if care_type == CareType.WATERING and self.watering_every_days:
            return int(self.watering_every_days)
        if care_type == CareType.FERTILIZING and self.fertilizer_every_weeks:
            return int(self.fertilizer_every_weeks) * 7
        return None

    def last_care_on_record(self, care_type: CareType) -> datetime | None:
        if care_type == CareType.WATERING:
            return self.last_watered_at
        if care_type == CareType.FERTILIZING:
            return self.last_fertilized_at
        return None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Plant":
        return cls(
            id=int(row["id"]),
            user_id=int(row.get("user_id") or 1),
            name=row.get("name") or f"Plant {row['id']}",
            category=_coerce_enum(PlantCategory, row.get("category"), PlantCategory.OTHER),
            species=row.get("species"),
            sunlight=_coerce_enum(SunlightRequirement, row.get("sunlight"), SunlightRequirement.MEDIUM),
            watering_every_days=_optional_int(row.get("watering_every_days")),
            fertilizer_every_weeks=_optional_int(row.get("fertilizer_every_weeks")),
            last_watered_at=coerce_datetime(row.get("last_watered_at")),
            last_fertilized_at=coerce_datetime(row.get("last_fertilized_at")),
            health_status=_coerce_enum(PlantHealthStatus, row.get("health_status"), PlantHealthStatus.GOOD),
            location=row.get("location"),
            notes=row.get("notes"),
            created_at=coerce_datetime(row.get("created_at")),
            updated_at=coerce_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "category": self.category.value,
            "species": self.species,
            "sunlight": self.sunlight.value,
            "watering_every_days": self.watering_every_days,
            "fertilizer_every_weeks": self.fertilizer_every_weeks,
            "last_watered_at": to_iso(self.last_watered_at),
            "last_fertilized_at": to_iso(self.last_fertilized_at),
            "health_status": self.health_status.value,
            "location": self.location,
            "notes": self.notes,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


@dataclass(slots=True)
class CareLog:
    """One immutable care event."""

    plant_id: int
    care_type: CareType
    performed_at: datetime
    id: int | None = None
    user_id: int | None = None
    notes: str | None = None
    photos: list[str] = field(default_factory=list)
    care_data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.care_type, str):
            self.care_type = CareType(self.care_type)
        parsed = coerce_datetime(self.performed_at)
        if parsed is None:
            raise ValueError("performed_at must be a valid ISO-8601 datetime")
        self.performed_at = parsed

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CareLog":
        return cls(
            id=row.get("id"),
            plant_id=int(row["plant_id"]),
            user_id=row.get("user_id"),
            care_type=_coerce_enum(CareType, row.get("care_type"), CareType.OTHER),
            performed_at=row.get("performed_at"),
            notes=row.get("notes"),
            photos=list(row.get("photos") or []),
            care_data=dict(row.get("care_data") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "plant_id": self.plant_id,
            "user_id": self.user_id,
            "care_type": self.care_type.value,
            "performed_at": to_iso(self.performed_at),
            "notes": self.notes,
            "photos": list(self.photos),
            "care_data": dict(self.care_data),
        }
