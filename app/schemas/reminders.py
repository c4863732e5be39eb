"""
Reminder Schemas
================

Request schemas for reminder lifecycle actions and reminder preferences.
"""

from pydantic import BaseModel, Field, field_validator

from app.constants import ReminderDefaults
from app.enums.common import NotificationChannel, ReminderStatus
from app.utils.time import parse_hhmm


class SnoozeReminderRequest(BaseModel):
    hours: float = Field(
        default=ReminderDefaults.DEFAULT_SNOOZE_HOURS,
        gt=0,
        le=ReminderDefaults.MAX_SNOOZE_HOURS,
        description="Hours from now until the reminder is due again",
    )


class CompleteReminderRequest(BaseModel):
    log_care: bool = Field(default=True, description="Also append a care log for this reminder")
    notes: str | None = Field(default=None, max_length=2000)


class ReminderListQuery(BaseModel):
    status: ReminderStatus | None = None
    plant_id: int | None = Field(default=None, gt=0)


class UpcomingQuery(BaseModel):
    hours: float = Field(default=24, gt=0, le=24 * 30)


class QuietHoursSchema(BaseModel):
    enabled: bool = False
    start: str = ReminderDefaults.QUIET_HOURS_START
    end: str = ReminderDefaults.QUIET_HOURS_END

    @field_validator("start", "end")
    @classmethod
    def validate_clock(cls, v: str) -> str:
        parse_hhmm(v)
        return v


class PlantReminderSettingsSchema(BaseModel):
    enabled: bool = True
    custom_frequency: dict[str, int] = Field(default_factory=dict)

    @field_validator("custom_frequency")
    @classmethod
    def validate_frequency(cls, v: dict[str, int]) -> dict[str, int]:
        for care_type, days in v.items():
            if days < 1 or days > 365:
                raise ValueError(f"custom frequency for {care_type} must be between 1 and 365 days")
        return v


class ReminderPreferencesUpdate(BaseModel):
    """Partial update of a user's reminder preferences."""

    enabled: bool | None = None
    notification_methods: list[NotificationChannel] | None = None
    advance_notice_days: int | None = Field(default=None, ge=0, le=30)
    max_reminders_per_day: int | None = Field(default=None, ge=1, le=100)
    quiet_hours: QuietHoursSchema | None = None
    plant_settings: dict[int, PlantReminderSettingsSchema] | None = None
