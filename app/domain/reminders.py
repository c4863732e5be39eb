"""
Reminder Domain Objects
=======================

Value types shared by the reminder engine, the reminder service and the
REST layer:

- ``Reminder``: one scheduled care occurrence for a plant.
- ``CareSchedule``: the engine's input tuple (plant, last care, frequency).
- ``ReminderPreferences``: per-user settings, always passed explicitly.
- ``ReminderEngineConfig``: thresholds and policies for generation.
- ``ReminderBuckets``: today / overdue / upcoming partition.
- ``MutationResult``: outcome of an optimistic lifecycle mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import TYPE_CHECKING, Any

from app.constants import CareDefaults, ReminderDefaults, SeasonalMultipliers
from app.enums.common import CareType, NoHistoryPolicy, NotificationChannel, ReminderPriority, ReminderStatus
from app.utils.time import coerce_datetime, parse_hhmm, to_iso, within_window

if TYPE_CHECKING:
    from app.config import AppConfig


@dataclass(slots=True)
class Reminder:
    """A care reminder for one plant and one care type."""

    plant_id: int
    care_type: CareType
    due_at: datetime
    priority: ReminderPriority
    frequency_days: float
    status: ReminderStatus = ReminderStatus.PENDING
    id: int | None = None
    user_id: int | None = None
    plant_name: str = ""
    title: str = ""
    description: str = ""
    original_due_at: datetime | None = None
    last_care_at: datetime | None = None
    snooze_count: int = 0
    snoozed_until: datetime | None = None
    completed_at: datetime | None = None
    no_history: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if isinstance(self.care_type, str):
            self.care_type = CareType(self.care_type)
        if isinstance(self.priority, str):
            self.priority = ReminderPriority(self.priority)
        if isinstance(self.status, str):
            self.status = ReminderStatus(self.status)
        if self.original_due_at is None:
            self.original_due_at = self.due_at

    @property
    def occurrence_key(self) -> tuple[int, str, str | None]:
        """Identifies one generated occurrence across regenerations."""
        return (self.plant_id, self.care_type.value, to_iso(self.original_due_at))

    @property
    def is_active(self) -> bool:
        return self.status != ReminderStatus.COMPLETED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reminder":
        """Create a reminder from a repository row or API payload."""
        due_at = coerce_datetime(data.get("due_at"))
        if due_at is None:
            raise ValueError("due_at must be a valid ISO-8601 datetime")
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            plant_id=int(data["plant_id"]),
            plant_name=data.get("plant_name") or "",
            care_type=data["care_type"],
            title=data.get("title") or "",
            description=data.get("description") or "",
            due_at=due_at,
            original_due_at=coerce_datetime(data.get("original_due_at")),
            priority=data.get("priority") or ReminderPriority.LOW,
            status=data.get("status") or ReminderStatus.PENDING,
            frequency_days=float(data.get("frequency_days") or 0.0),
            last_care_at=coerce_datetime(data.get("last_care_at")),
            snooze_count=int(data.get("snooze_count") or 0),
            snoozed_until=coerce_datetime(data.get("snoozed_until")),
            completed_at=coerce_datetime(data.get("completed_at")),
            no_history=bool(data.get("no_history", False)),
            created_at=coerce_datetime(data.get("created_at")),
            updated_at=coerce_datetime(data.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "plant_id": self.plant_id,
            "plant_name": self.plant_name,
            "care_type": self.care_type.value,
            "title": self.title,
            "description": self.description,
            "due_at": to_iso(self.due_at),
            "original_due_at": to_iso(self.original_due_at),
            "priority": self.priority.value,
            "status": self.status.value,
            "frequency_days": self.frequency_days,
            "last_care_at": to_iso(self.last_care_at),
            "snooze_count": self.snooze_count,
            "snoozed_until": to_iso(self.snoozed_until),
            "completed_at": to_iso(self.completed_at),
            "no_history": self.no_history,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


@dataclass(frozen=True, slots=True)
class CareSchedule:
    """Engine input: when a plant was last cared for and how often it needs it."""

    plant_id: int
    care_type: CareType
    last_care_at: datetime | None
    frequency_days: float
    plant_name: str = ""
    user_id: int | None = None
    plant_created_at: datetime | None = None
    frequency_source: str = "default"


@dataclass
class QuietHours:
    enabled: bool = False
    start: str = ReminderDefaults.QUIET_HOURS_START
    end: str = ReminderDefaults.QUIET_HOURS_END

    def __post_init__(self) -> None:
        # Validate eagerly so bad values never reach the database
        parse_hhmm(self.start)
        parse_hhmm(self.end)

    def contains(self, moment: datetime | time) -> bool:
        if not self.enabled:
            return False
        clock = moment.timetz().replace(tzinfo=None) if isinstance(moment, datetime) else moment
        return within_window(clock, parse_hhmm(self.start), parse_hhmm(self.end))

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "start": self.start, "end": self.end}


@dataclass
class PlantReminderSettings:
    """Per-plant override: opt out entirely or pin a custom frequency per care type."""

    enabled: bool = True
    custom_frequency: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "custom_frequency": dict(self.custom_frequency)}


@dataclass
class ReminderPreferences:
    """User reminder preferences."""

    user_id: int = 1
    enabled: bool = True
    notification_methods: list[NotificationChannel] = field(default_factory=lambda: [NotificationChannel.IN_APP])
    advance_notice_days: int = ReminderDefaults.ADVANCE_NOTICE_DAYS
    max_reminders_per_day: int = ReminderDefaults.MAX_REMINDERS_PER_DAY
    quiet_hours: QuietHours = field(default_factory=QuietHours)
    plant_settings: dict[int, PlantReminderSettings] = field(default_factory=dict)

    def is_plant_enabled(self, plant_id: int) -> bool:
        settings = self.plant_settings.get(plant_id)
        return settings.enabled if settings else True

    def custom_frequency(self, plant_id: int, care_type: CareType) -> int | None:
        settings = self.plant_settings.get(plant_id)
        if not settings:
            return None
        value = settings.custom_frequency.get(care_type.value)
        return int(value) if value else None

    def wants(self, channel: NotificationChannel) -> bool:
        return self.enabled and channel in self.notification_methods

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReminderPreferences":
        """Create preferences from dictionary."""
        quiet = data.get("quiet_hours") or {}
        plant_settings = {}
        for plant_id, raw in (data.get("plant_settings") or {}).items():
            plant_settings[int(plant_id)] = PlantReminderSettings(
                enabled=bool(raw.get("enabled", True)),
                custom_frequency={
                    str(care_type): int(days) for care_type, days in (raw.get("custom_frequency") or {}).items()
                },
            )
        methods = data.get("notification_methods")
        return cls(
            user_id=int(data.get("user_id", 1)),
            enabled=bool(data.get("enabled", True)),
            notification_methods=(
                [NotificationChannel(m) for m in methods] if methods is not None else [NotificationChannel.IN_APP]
            ),
            advance_notice_days=int(data.get("advance_notice_days", ReminderDefaults.ADVANCE_NOTICE_DAYS)),
            max_reminders_per_day=int(data.get("max_reminders_per_day", ReminderDefaults.MAX_REMINDERS_PER_DAY)),
            quiet_hours=QuietHours(
                enabled=bool(quiet.get("enabled", False)),
                start=quiet.get("start") or ReminderDefaults.QUIET_HOURS_START,
                end=quiet.get("end") or ReminderDefaults.QUIET_HOURS_END,
            ),
            plant_settings=plant_settings,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for database storage."""
        return {
            "user_id": self.user_id,
            "enabled": self.enabled,
            "notification_methods": [m.value for m in self.notification_methods],
            "advance_notice_days": self.advance_notice_days,
            "max_reminders_per_day": self.max_reminders_per_day,
            "quiet_hours": self.quiet_hours.to_dict(),
            "plant_settings": {str(pid): s.to_dict() for pid, s in self.plant_settings.items()},
        }


@dataclass
class ReminderEngineConfig:
    """Thresholds and policies for reminder generation and the lifecycle."""

    no_history_policy: NoHistoryPolicy = NoHistoryPolicy.DUE_NOW
    urgent_multiple: float = ReminderDefaults.URGENT_MULTIPLE
    medium_lookahead_days: float = ReminderDefaults.MEDIUM_LOOKAHEAD_DAYS
    max_snoozes: int = ReminderDefaults.MAX_SNOOZES
    tracked_care_types: tuple[CareType, ...] = (CareType.WATERING, CareType.FERTILIZING)
    southern_hemisphere: bool = False
    monthly_multipliers: dict[int, float] = field(default_factory=lambda: dict(SeasonalMultipliers.BY_MONTH))
    seasonal_care_types: frozenset[str] = SeasonalMultipliers.SEASONAL_CARE_TYPES
    category_defaults: dict[str, dict[str, int]] = field(default_factory=lambda: dict(CareDefaults.BY_CATEGORY))

    def __post_init__(self) -> None:
        self.no_history_policy = NoHistoryPolicy(self.no_history_policy)
        self.tracked_care_types = tuple(CareType(c) for c in self.tracked_care_types)
        if self.urgent_multiple <= 0:
            raise ValueError("urgent_multiple must be positive")
        if self.medium_lookahead_days < 0:
            raise ValueError("medium_lookahead_days must not be negative")
        missing = set(range(1, 13)) - set(self.monthly_multipliers)
        if missing:
            raise ValueError(f"monthly_multipliers missing months: {sorted(missing)}")

    @classmethod
    def from_app_config(cls, config: "AppConfig") -> "ReminderEngineConfig":
        return cls(
            no_history_policy=NoHistoryPolicy(config.reminder_no_history_policy),
            urgent_multiple=config.reminder_urgent_multiple,
            medium_lookahead_days=config.reminder_medium_lookahead_days,
            max_snoozes=config.reminder_max_snoozes,
            tracked_care_types=tuple(CareType(c) for c in config.reminder_tracked_care_types),
            southern_hemisphere=config.southern_hemisphere,
        )


@dataclass
class ReminderBuckets:
    today: list[Reminder] = field(default_factory=list)
    overdue: list[Reminder] = field(default_factory=list)
    upcoming: list[Reminder] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.today) + len(self.overdue) + len(self.upcoming)

    def to_dict(self) -> dict[str, Any]:
        return {
            "today": [r.to_dict() for r in self.today],
            "overdue": [r.to_dict() for r in self.overdue],
            "upcoming": [r.to_dict() for r in self.upcoming],
            "counts": {
                "today": len(self.today),
                "overdue": len(self.overdue),
                "upcoming": len(self.upcoming),
            },
        }


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a lifecycle mutation: the new reminder, or why it failed."""

    ok: bool
    reminder: Reminder | None = None
    error: str | None = None

    @classmethod
    def success(cls, reminder: Reminder) -> "MutationResult":
        return cls(ok=True, reminder=reminder)

    @classmethod
    def failure(cls, error: str, reminder: Reminder | None = None) -> "MutationResult":
        return cls(ok=False, reminder=reminder, error=error)
