"""
Tests for the reminder background tasks.

The tasks only touch a handful of container attributes, so a namespace
with the real services stands in for the full ServiceContainer.
"""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.domain.exceptions import RepositoryError
from app.workers.scheduled_tasks import (
    REMINDER_REFRESH_TASK,
    UPCOMING_CARE_TASK,
    NotifiedReminders,
    configure_scheduler,
    reminder_refresh_task,
    upcoming_care_notice_task,
)
from app.workers.unified_scheduler import UnifiedScheduler

# Watered almost a week ago on a 7-day cadence: due in half an hour
DUE_IN_HALF_HOUR = 7 - 30 / (24 * 60)


@pytest.fixture()
def task_container(reminder_service, notifications_service, mock_emitter):
    auth_manager = MagicMock()
    auth_manager.list_user_ids.return_value = [1, 2]
    return SimpleNamespace(
        auth_manager=auth_manager,
        reminder_service=reminder_service,
        notifications_service=notifications_service,
        emitter_service=mock_emitter,
        config=SimpleNamespace(
            upcoming_notice_min_minutes=5,
            upcoming_notice_max_minutes=65,
            reminder_refresh_interval_seconds=900,
            upcoming_notice_interval_seconds=300,
        ),
    )


class TestNotifiedReminders:
    def test_add_once(self):
        notified = NotifiedReminders()
        assert notified.add((1, "2026-04-15T12:00:00+00:00"))
        assert not notified.add((1, "2026-04-15T12:00:00+00:00"))
        assert (1, "2026-04-15T12:00:00+00:00") in notified

    def test_oldest_evicted(self):
        notified = NotifiedReminders(max_size=2)
        for key in [(1, "a"), (2, "b"), (3, "c")]:
            notified.add(key)

        assert len(notified) == 2
        assert (1, "a") not in notified


class TestReminderRefreshTask:
    def test_refreshes_every_user(self, task_container, seed, mock_emitter, now):
        seed.create_plant("Fern", last_watered_days_ago=10)
        seed.create_plant("Cactus", user_id=2, last_watered_days_ago=1)

        result = reminder_refresh_task(task_container, now)

        assert result == {"users": 2, "refreshed": 2, "reminders": 1}
        counts = {c.args[0]: c.args[1] for c in mock_emitter.emit_reminders_refreshed.call_args_list}
        assert counts[1] == {"today": 0, "overdue": 1, "upcoming": 0}
        assert counts[2] == {"today": 0, "overdue": 0, "upcoming": 0}

    def test_failing_user_is_skipped(self, task_container, seed, monkeypatch, now):
        seed.create_plant("Fern", last_watered_days_ago=10)
        refresh = task_container.reminder_service.refresh

        def flaky_refresh(user_id, now=None):
            if user_id == 2:
                raise RepositoryError("disk full")
            return refresh(user_id, now)

        monkeypatch.setattr(task_container.reminder_service, "refresh", flaky_refresh)

        result = reminder_refresh_task(task_container, now)

        assert result["refreshed"] == 1


class TestUpcomingCareNoticeTask:
    def test_notifies_once_per_occurrence(self, task_container, seed, notifications_service, now):
        seed.create_plant("Fern", last_watered_days_ago=DUE_IN_HALF_HOUR)
        task_container.reminder_service.refresh(1, now)
        notified = NotifiedReminders()

        first = upcoming_care_notice_task(task_container, notified, now)
        second = upcoming_care_notice_task(task_container, notified, now + timedelta(minutes=5))

        assert first == {"sent": 1, "already_notified": 0}
        assert second == {"sent": 0, "already_notified": 1}
        [message] = notifications_service.get_notifications(1)
        assert message["notification_type"] == "reminder_due"
        assert "Water Fern is due in" in message["message"]

    def test_reminders_outside_window_are_ignored(self, task_container, seed, now):
        seed.create_plant("Fern", last_watered_days_ago=5)
        task_container.reminder_service.refresh(1, now)

        result = upcoming_care_notice_task(task_container, NotifiedReminders(), now)

        assert result == {"sent": 0, "already_notified": 0}

    def test_quiet_hours_still_mark_notified(self, task_container, seed, reminder_service, now):
        seed.create_plant("Fern", last_watered_days_ago=DUE_IN_HALF_HOUR)
        reminder_service.update_preferences(1, {"quiet_hours": {"enabled": True, "start": "11:00", "end": "13:00"}})
        reminder_service.refresh(1, now)
        notified = NotifiedReminders()

        result = upcoming_care_notice_task(task_container, notified, now)

        assert result == {"sent": 0, "already_notified": 0}
        assert len(notified) == 1


class TestConfigureScheduler:
    def test_registers_and_schedules(self, task_container):
        scheduler = UnifiedScheduler()

        configure_scheduler(scheduler, task_container, start=False)

        assert scheduler.has_task(REMINDER_REFRESH_TASK)
        assert scheduler.has_task(UPCOMING_CARE_TASK)
        assert scheduler.get_job("reminders_refresh").interval_seconds == 900
        assert scheduler.get_job("reminders_upcoming_notice").interval_seconds == 300
        assert not scheduler.is_running()

    def test_bound_task_runs_through_scheduler(self, task_container, seed):
        seed.create_plant("Fern", last_watered_days_ago=10)
        scheduler = UnifiedScheduler()
        configure_scheduler(scheduler, task_container, start=False)

        result = scheduler.run_now(REMINDER_REFRESH_TASK)

        assert result.success
        assert result.result["users"] == 2
