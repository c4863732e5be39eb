"""
Scheduled Tasks: background task definitions for the UnifiedScheduler.

Tasks by namespace:
- reminders.refresh: regenerate every user's reminders and push fresh counts
- reminders.upcoming_notice: notify users shortly before a reminder falls due

Usage:
    from app.workers.scheduled_tasks import configure_scheduler

    configure_scheduler(container.scheduler, container)
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime, timedelta
from functools import wraps
from typing import TYPE_CHECKING, Any

from app.constants import Limits
from app.domain.exceptions import AgroTrackError
from app.domain.reminder_engine import bucket_reminders
from app.utils.time import utc_now

if TYPE_CHECKING:
    from app.services.container import ServiceContainer
    from app.workers.unified_scheduler import UnifiedScheduler

logger = logging.getLogger(__name__)

REMINDER_REFRESH_TASK = "reminders.refresh"
UPCOMING_CARE_TASK = "reminders.upcoming_notice"


class NotifiedReminders:
    """Bounded record of reminder occurrences already announced (oldest evicted first)."""

    def __init__(self, max_size: int = Limits.NOTIFIED_REMINDER_IDS):
        self._max_size = max_size
        self._seen: OrderedDict[tuple, None] = OrderedDict()
        self._lock = threading.Lock()

    def add(self, key: tuple) -> bool:
        """Record ``key``; returns False when it was already recorded."""
        with self._lock:
            if key in self._seen:
                return False
            self._seen[key] = None
            while len(self._seen) > self._max_size:
                self._seen.popitem(last=False)
            return True

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, key: tuple) -> bool:
        return key in self._seen


# ==================== Reminder Namespace Tasks ====================


def reminder_refresh_task(container: "ServiceContainer", now: datetime | None = None) -> dict[str, Any]:
    """
    Regenerate reminders for every user and push the new counts.

    Task name: reminders.refresh
    """
    now = now or utc_now()
    user_ids = container.auth_manager.list_user_ids()
    refreshed = container.reminder_service.refresh_all(user_ids, now)

    for user_id, reminders in refreshed.items():
        buckets = bucket_reminders(reminders, now)
        container.emitter_service.emit_reminders_refreshed(user_id, buckets.to_dict()["counts"])

    logger.debug("Refreshed reminders for %d/%d users", len(refreshed), len(user_ids))
    return {"users": len(user_ids), "refreshed": len(refreshed), "reminders": sum(len(r) for r in refreshed.values())}


def upcoming_care_notice_task(
    container: "ServiceContainer",
    notified: NotifiedReminders,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Notify owners of reminders falling due within the notice window.

    Each occurrence is announced once; snoozing moves ``due_at`` and so
    earns a fresh notice.

    Task name: reminders.upcoming_notice
    """
    now = now or utc_now()
    config = container.config
    start = now + timedelta(minutes=config.upcoming_notice_min_minutes)
    end = now + timedelta(minutes=config.upcoming_notice_max_minutes)

    sent = 0
    skipped = 0
    for reminder in container.reminder_service.due_between(start, end):
        key = (reminder.id, reminder.due_at.isoformat())
        if key in notified:
            skipped += 1
            continue
        try:
            message_id = container.notifications_service.notify_reminder_due(reminder, now)
        except AgroTrackError as exc:
            logger.warning("Upcoming notice for reminder %s failed: %s", reminder.id, exc)
            continue
        notified.add(key)
        if message_id:
            sent += 1

    return {"sent": sent, "already_notified": skipped}


# ==================== Task Registration ====================


def register_all_tasks(scheduler: "UnifiedScheduler", container: "ServiceContainer") -> None:
    """
    Register all tasks with the scheduler.

    Args:
        scheduler: UnifiedScheduler instance
        container: ServiceContainer with all services
    """

    def bind_noargs(task_fn: Callable[..., dict[str, Any]], *extra: Any) -> Callable[[], dict[str, Any]]:
        @wraps(task_fn)
        def bound_task() -> dict[str, Any]:
            try:
                return task_fn(container, *extra)
            except Exception as e:
                logger.exception("Scheduled task %s raised: %s", task_fn.__name__, e)
                # Re-raise so the scheduler records the failure in its history
                raise

        return bound_task

    scheduler.register_task(REMINDER_REFRESH_TASK, bind_noargs(reminder_refresh_task))
    scheduler.register_task(UPCOMING_CARE_TASK, bind_noargs(upcoming_care_notice_task, NotifiedReminders()))
    logger.info("Registered scheduled tasks: %s, %s", REMINDER_REFRESH_TASK, UPCOMING_CARE_TASK)


def schedule_default_jobs(scheduler: "UnifiedScheduler", container: "ServiceContainer") -> None:
    """Schedule the default jobs using the intervals from the app config."""
    config = container.config

    scheduler.schedule_interval(
        REMINDER_REFRESH_TASK,
        interval_seconds=config.reminder_refresh_interval_seconds,
        job_id="reminders_refresh",
        start_immediately=True,
    )
    scheduler.schedule_interval(
        UPCOMING_CARE_TASK,
        interval_seconds=config.upcoming_notice_interval_seconds,
        job_id="reminders_upcoming_notice",
    )

    for job in scheduler.get_jobs():
        logger.debug("  - %s: %s (%s)", job.job_id, job.schedule_type.value, job.namespace)


def configure_scheduler(
    scheduler: "UnifiedScheduler",
    container: "ServiceContainer",
    *,
    reset_jobs: bool = True,
    start: bool = True,
) -> None:
    """Register tasks, apply default schedules, and optionally start the scheduler."""
    if reset_jobs:
        scheduler.clear_jobs()

    register_all_tasks(scheduler, container)
    schedule_default_jobs(scheduler, container)

    if start:
        scheduler.start()
