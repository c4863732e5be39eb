"""
Reminder Engine
===============

Pure functions that turn plants and care history into care reminders,
partition them by calendar day, and move them through their lifecycle.

Nothing here touches the database, the clock or global state: every function
takes ``now`` explicitly, and preferences/config are passed in. The reminder
service wires these to the repositories.

Generation
----------
For each plant and tracked care type::

    due_at = last_care_at + frequency_days * seasonal_multiplier(month of last care)

Priority by days overdue (``(now - due_at) / 1 day``)::

    urgent  days_overdue >= urgent_multiple * frequency_days
    high    days_overdue >  0
    medium  due within medium_lookahead_days
    low     otherwise

Lifecycle
---------
::

    pending ──snooze──▶ snoozed ──snooze──▶ snoozed
       ▲                   │
       └──────wake─────────┘
    pending | snoozed ──complete──▶ completed (terminal)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from app.constants import CareDefaults, ReminderDefaults
from app.domain.exceptions import InvalidTransitionError, ValidationError
from app.domain.plant import CareLog, Plant
from app.domain.reminders import (
    CareSchedule,
    Reminder,
    ReminderBuckets,
    ReminderEngineConfig,
    ReminderPreferences,
)
from app.enums.common import CareType, NoHistoryPolicy, ReminderPriority, ReminderStatus
from app.utils.time import as_timezone_of, local_day_bounds

logger = logging.getLogger(__name__)

_DAY = timedelta(days=1)


# ---------------------------------------------------------------------------
# Frequency and due date
# ---------------------------------------------------------------------------


def seasonal_multiplier(care_type: CareType, month: int, config: ReminderEngineConfig | None = None) -> float:
    """Interval scale for ``care_type`` in calendar ``month`` (1-12)."""
    config = config or ReminderEngineConfig()
    if care_type.value not in config.seasonal_care_types:
        return 1.0
    if config.southern_hemisphere:
        month = (month + 5) % 12 + 1
    return float(config.monthly_multipliers[month])


def historical_frequency(
    care_logs: Iterable[CareLog],
    care_type: CareType,
    now: datetime,
    window_days: int = CareDefaults.HISTORY_WINDOW_DAYS,
) -> int | None:
    """Mean interval between recent care events of one type, rounded to days.

    Returns None with fewer than two events in the window or when the mean
    falls outside the trusted range.
    """
    cutoff = now - timedelta(days=window_days)
    dates = sorted(log.performed_at for log in care_logs if log.care_type == care_type and log.performed_at >= cutoff)
    if len(dates) < 2:
        return None
    intervals = [(later - earlier) / _DAY for earlier, later in zip(dates, dates[1:])]
    mean = round(sum(intervals) / len(intervals))
    if CareDefaults.HISTORY_MIN_DAYS <= mean <= CareDefaults.HISTORY_MAX_DAYS:
        return mean
    return None


def resolve_frequency(
    plant: Plant,
    care_type: CareType,
    care_logs: Sequence[CareLog],
    preferences: ReminderPreferences,
    now: datetime,
    config: ReminderEngineConfig | None = None,
) -> tuple[int, str]:
    """Pick the care interval for one plant and care type.

    Order: user override, the plant's own interval, recent history, the
    category default, the global fallback. Returns ``(days, source)``.
    """
    config = config or ReminderEngineConfig()

    custom = preferences.custom_frequency(plant.id, care_type)
    if custom:
        return custom, "preference"

    explicit = plant.explicit_frequency_days(care_type)
    if explicit:
        return explicit, "plant"

    history = historical_frequency(care_logs, care_type, now)
    if history:
        return history, "history"

    category_table = config.category_defaults.get(plant.category.value, {})
    if care_type.value in category_table:
        return int(category_table[care_type.value]), "category"

    return CareDefaults.FALLBACK_DAYS, "default"


def last_care_at(plant: Plant, care_type: CareType, care_logs: Iterable[CareLog]) -> datetime | None:
    """Latest care of ``care_type``: from the logs, or the plant's own timestamp."""
    latest = None
    for log in care_logs:
        if log.care_type == care_type and (latest is None or log.performed_at > latest):
            latest = log.performed_at
    on_record = plant.last_care_on_record(care_type)
    if on_record is not None and (latest is None or on_record > latest):
        latest = on_record
    return latest


def calculate_due_date(last_care: datetime, frequency_days: float, multiplier: float = 1.0) -> datetime:
    """``last_care + frequency_days * multiplier`` as an exact time delta."""
    if frequency_days <= 0:
        raise ValidationError("frequency_days must be positive")
    return last_care + timedelta(days=frequency_days * multiplier)


def schedule_due_date(
    schedule: CareSchedule, now: datetime, config: ReminderEngineConfig | None = None
) -> tuple[datetime, bool]:
    """Due date for one schedule; the flag is True when no care was ever logged."""
    config = config or ReminderEngineConfig()
    if schedule.last_care_at is not None:
        multiplier = seasonal_multiplier(schedule.care_type, schedule.last_care_at.month, config)
        return calculate_due_date(schedule.last_care_at, schedule.frequency_days, multiplier), False

    if config.no_history_policy == NoHistoryPolicy.FROM_CREATED and schedule.plant_created_at is not None:
        anchor = schedule.plant_created_at
        multiplier = seasonal_multiplier(schedule.care_type, anchor.month, config)
        return calculate_due_date(anchor, schedule.frequency_days, multiplier), False

    return now, True


# ---------------------------------------------------------------------------
# Priority and wording
# ---------------------------------------------------------------------------


def days_overdue(due_at: datetime, now: datetime) -> float:
    """Positive once ``due_at`` has passed, negative before."""
    return (now - due_at) / _DAY


def calculate_priority(
    due_at: datetime,
    now: datetime,
    frequency_days: float,
    config: ReminderEngineConfig | None = None,
) -> ReminderPriority:
    config = config or ReminderEngineConfig()
    overdue = days_overdue(due_at, now)
    if frequency_days > 0 and overdue >= config.urgent_multiple * frequency_days:
        return ReminderPriority.URGENT
    if overdue > 0:
        return ReminderPriority.HIGH
    if -overdue <= config.medium_lookahead_days:
        return ReminderPriority.MEDIUM
    return ReminderPriority.LOW


def describe_due(due_at: datetime, now: datetime) -> str:
    """Human wording by calendar day in ``now``'s timezone."""
    delta = (as_timezone_of(due_at, now).date() - now.date()).days
    if delta < 0:
        days = -delta
        return f"{days} day{'s' if days != 1 else ''} overdue"
    if delta == 0:
        return "Due today"
    if delta == 1:
        return "Due tomorrow"
    return f"Due in {delta} days"


def reminder_title(care_type: CareType, plant_name: str) -> str:
    verb = ReminderDefaults.TITLE_VERBS.get(care_type.value, "Care for")
    return f"{verb} {plant_name}".strip()


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def build_schedules(
    plants: Iterable[Plant],
    care_logs: Iterable[CareLog],
    preferences: ReminderPreferences,
    now: datetime,
    config: ReminderEngineConfig | None = None,
) -> list[CareSchedule]:
    """Resolve last-care and frequency for every enabled (plant, care type)."""
    config = config or ReminderEngineConfig()
    logs_by_plant: dict[int, list[CareLog]] = {}
    for log in care_logs:
        logs_by_plant.setdefault(log.plant_id, []).append(log)

    schedules: list[CareSchedule] = []
    for plant in plants:
        if not preferences.is_plant_enabled(plant.id):
            continue
        plant_logs = logs_by_plant.get(plant.id, [])
        for care_type in config.tracked_care_types:
            frequency, source = resolve_frequency(plant, care_type, plant_logs, preferences, now, config)
            schedules.append(
                CareSchedule(
                    plant_id=plant.id,
                    care_type=care_type,
                    last_care_at=last_care_at(plant, care_type, plant_logs),
                    frequency_days=frequency,
                    plant_name=plant.name,
                    user_id=plant.user_id,
                    plant_created_at=plant.created_at,
                    frequency_source=source,
                )
            )
    return schedules


def build_reminder(schedule: CareSchedule, now: datetime, config: ReminderEngineConfig | None = None) -> Reminder:
    """Turn one schedule into a pending reminder."""
    config = config or ReminderEngineConfig()
    due_at, no_history = schedule_due_date(schedule, now, config)
    return Reminder(
        user_id=schedule.user_id,
        plant_id=schedule.plant_id,
        plant_name=schedule.plant_name,
        care_type=schedule.care_type,
        title=reminder_title(schedule.care_type, schedule.plant_name),
        description=describe_due(due_at, now),
        due_at=due_at,
        original_due_at=due_at,
        priority=calculate_priority(due_at, now, schedule.frequency_days, config),
        status=ReminderStatus.PENDING,
        frequency_days=schedule.frequency_days,
        last_care_at=schedule.last_care_at,
        no_history=no_history,
    )


def generate_from_schedules(
    schedules: Iterable[CareSchedule],
    now: datetime,
    config: ReminderEngineConfig | None = None,
) -> list[Reminder]:
    """Engine boundary: schedules plus a clock in, reminders out (unfiltered)."""
    config = config or ReminderEngineConfig()
    return [build_reminder(schedule, now, config) for schedule in schedules]


def generate_reminders(
    plants: Iterable[Plant],
    care_logs: Iterable[CareLog],
    preferences: ReminderPreferences,
    now: datetime,
    config: ReminderEngineConfig | None = None,
) -> list[Reminder]:
    """Reminders due within the user's advance-notice window, most urgent first.

    Disabled preferences yield nothing. The result is capped at
    ``max_reminders_per_day``.
    """
    config = config or ReminderEngineConfig()
    if not preferences.enabled:
        return []

    horizon = now + timedelta(days=preferences.advance_notice_days)
    schedules = build_schedules(plants, care_logs, preferences, now, config)
    reminders = [r for r in generate_from_schedules(schedules, now, config) if r.due_at <= horizon]
    reminders = sort_reminders(reminders)

    if preferences.max_reminders_per_day and len(reminders) > preferences.max_reminders_per_day:
        logger.debug(
            "Capping %s reminders to %s for user %s",
            len(reminders),
            preferences.max_reminders_per_day,
            preferences.user_id,
        )
        reminders = reminders[: preferences.max_reminders_per_day]
    return reminders


# ---------------------------------------------------------------------------
# Ordering and bucketing
# ---------------------------------------------------------------------------


def sort_reminders(reminders: Iterable[Reminder]) -> list[Reminder]:
    """Priority descending, then due date ascending."""
    return sorted(reminders, key=lambda r: (-r.priority.rank, r.due_at))


def bucket_reminders(reminders: Iterable[Reminder], now: datetime) -> ReminderBuckets:
    """Partition active reminders into today / overdue / upcoming.

    Day boundaries come from ``now``'s timezone. A due date exactly at
    midnight belongs to that day. Completed reminders are left out.
    """
    start_today, start_tomorrow = local_day_bounds(now)
    buckets = ReminderBuckets()
    for reminder in reminders:
        if not reminder.is_active:
            continue
        due = as_timezone_of(reminder.due_at, now)
        if due < start_today:
            buckets.overdue.append(reminder)
        elif due < start_tomorrow:
            buckets.today.append(reminder)
        else:
            buckets.upcoming.append(reminder)

    buckets.today = sort_reminders(buckets.today)
    buckets.overdue = sort_reminders(buckets.overdue)
    buckets.upcoming = sort_reminders(buckets.upcoming)
    return buckets


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def refresh_priority(reminder: Reminder, now: datetime, config: ReminderEngineConfig | None = None) -> Reminder:
    """Recompute priority and wording against ``now``."""
    config = config or ReminderEngineConfig()
    return replace(
        reminder,
        priority=calculate_priority(reminder.due_at, now, reminder.frequency_days, config),
        description=describe_due(reminder.due_at, now),
    )


def snooze_reminder(
    reminder: Reminder,
    now: datetime,
    hours: float = ReminderDefaults.DEFAULT_SNOOZE_HOURS,
    config: ReminderEngineConfig | None = None,
) -> Reminder:
    """Push the due date to ``now + hours``.

    Raises:
        ValidationError: ``hours`` is not positive or exceeds the maximum
        InvalidTransitionError: the reminder is completed or out of snoozes
    """
    config = config or ReminderEngineConfig()
    if hours <= 0 or hours > ReminderDefaults.MAX_SNOOZE_HOURS:
        raise ValidationError(f"Snooze hours must be between 0 and {ReminderDefaults.MAX_SNOOZE_HOURS}")
    if reminder.status == ReminderStatus.COMPLETED:
        raise InvalidTransitionError(reminder.status.value, "snooze")
    if config.max_snoozes and reminder.snooze_count >= config.max_snoozes:
        raise InvalidTransitionError(
            reminder.status.value,
            "snooze",
            f"Reminder was already snoozed {reminder.snooze_count} times (limit {config.max_snoozes})",
        )

    until = now + timedelta(hours=hours)
    snoozed = replace(
        reminder,
        status=ReminderStatus.SNOOZED,
        due_at=until,
        snoozed_until=until,
        snooze_count=reminder.snooze_count + 1,
        updated_at=now,
    )
    return refresh_priority(snoozed, now, config)


def wake_reminder(reminder: Reminder, now: datetime, config: ReminderEngineConfig | None = None) -> Reminder:
    """Return a snoozed reminder to pending once its snooze has elapsed."""
    if reminder.status != ReminderStatus.SNOOZED:
        return reminder
    if reminder.snoozed_until is not None and now < reminder.snoozed_until:
        return reminder
    woken = replace(reminder, status=ReminderStatus.PENDING, snoozed_until=None, updated_at=now)
    return refresh_priority(woken, now, config)


def complete_reminder(reminder: Reminder, now: datetime) -> Reminder:
    """Mark the occurrence done. Allowed from pending and snoozed."""
    if reminder.status == ReminderStatus.COMPLETED:
        raise InvalidTransitionError(reminder.status.value, "complete")
    return replace(
        reminder,
        status=ReminderStatus.COMPLETED,
        completed_at=now,
        snoozed_until=None,
        updated_at=now,
    )
