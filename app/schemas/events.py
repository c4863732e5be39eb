"""Event-bus payloads published by the application services."""

from pydantic import BaseModel, Field


class CareLoggedPayload(BaseModel):
    user_id: int
    plant_id: int
    care_type: str
    performed_at: str
    log_id: int | None = None


class PlantLifecyclePayload(BaseModel):
    user_id: int
    plant_id: int
    name: str | None = None


class ReminderChangedPayload(BaseModel):
    user_id: int
    reminder_id: int | None = None
    plant_id: int
    care_type: str
    status: str
    action: str
    counts: dict[str, int] = Field(default_factory=dict)
