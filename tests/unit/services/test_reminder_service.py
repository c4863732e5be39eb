"""ReminderService: regeneration, reconciliation with stored rows, lifecycle."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.domain.exceptions import InvalidTransitionError, NotFoundError, RepositoryError, ValidationError
from app.domain.reminders import ReminderEngineConfig
from app.enums.common import CareType, NoHistoryPolicy, ReminderPriority, ReminderStatus
from app.services.application.reminder_service import ReminderService
from tests.conftest import NOW


def test_refresh_creates_overdue_reminder(seed, reminder_service, reminder_repo):
    plant_id = seed.create_plant("Monstera", watering_every_days=7, last_watered_days_ago=10)

    reminders = reminder_service.refresh(1)

    assert len(reminders) == 1
    reminder = reminders[0]
    assert reminder.id is not None
    assert reminder.plant_id == plant_id
    assert reminder.status == ReminderStatus.PENDING
    assert reminder.priority == ReminderPriority.HIGH
    assert reminder.due_at == NOW - timedelta(days=3)
    assert reminder_repo.get(reminder.id) is not None


def test_refresh_is_idempotent(seed, reminder_service, reminder_repo):
    seed.create_plant(last_watered_days_ago=10)

    first = reminder_service.refresh(1)
    second = reminder_service.refresh(1)

    assert [r.id for r in first] == [r.id for r in second]
    assert len(reminder_repo.list_for_user(1)) == 1


def test_plant_without_history_is_due_now_and_keeps_its_row(seed, reminder_service):
    seed.create_plant("Fern", watering_every_days=5)

    first = reminder_service.refresh(1)
    later = reminder_service.refresh(1, NOW + timedelta(hours=3))

    assert len(first) == 1
    assert first[0].no_history is True
    assert first[0].due_at == NOW
    assert [r.id for r in later] == [first[0].id]


def test_snooze_survives_refresh(seed, reminder_service):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    snoozed = reminder_service.snooze(1, reminder.id, 24)
    refreshed = reminder_service.refresh(1)

    assert snoozed.status == ReminderStatus.SNOOZED
    assert snoozed.due_at == NOW + timedelta(hours=24)
    assert len(refreshed) == 1
    assert refreshed[0].id == reminder.id
    assert refreshed[0].status == ReminderStatus.SNOOZED
    assert refreshed[0].due_at == NOW + timedelta(hours=24)


def test_expired_snooze_wakes_up_on_refresh(seed, reminder_service):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]
    reminder_service.snooze(1, reminder.id, 1)

    refreshed = reminder_service.refresh(1, NOW + timedelta(hours=2))

    assert refreshed[0].id == reminder.id
    assert refreshed[0].status == ReminderStatus.PENDING
    assert refreshed[0].snoozed_until is None


def test_snooze_notifies_connected_clients(seed, reminder_service, mock_emitter):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    reminder_service.snooze(1, reminder.id, 4)

    user_id, payload, action = mock_emitter.emit_reminder_updated.call_args.args
    assert user_id == 1
    assert action == "snoozed"
    assert payload["id"] == reminder.id
    assert payload["status"] == "snoozed"


def test_complete_logs_care_and_clears_active_reminders(seed, reminder_service, care_log_repo, plant_repo):
    plant_id = seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    completed = reminder_service.complete(1, reminder.id)

    assert completed.status == ReminderStatus.COMPLETED
    assert completed.completed_at == NOW
    logs = care_log_repo.list_for_plant(plant_id)
    assert len(logs) == 1
    assert logs[0].care_data == {"reminder_id": reminder.id}
    assert plant_repo.get(plant_id).last_watered_at == NOW
    assert reminder_service.refresh(1) == []
    history = reminder_service.list_reminders(1, status="completed")
    assert [r.id for r in history] == [reminder.id]


def test_complete_without_logging_does_not_regenerate_the_occurrence(seed, reminder_service, care_log_repo):
    plant_id = seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    reminder_service.complete(1, reminder.id, log_care=False)

    assert care_log_repo.list_for_plant(plant_id) == []
    assert reminder_service.refresh(1) == []


def test_complete_and_log_reports_the_care_log(seed, reminder_service):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    completed, care_logged = reminder_service.complete_and_log(1, reminder.id)

    assert completed.status == ReminderStatus.COMPLETED
    assert care_logged is True


def test_completion_stands_when_care_log_fails(seed, reminder_service, reminder_repo, care_log_service, monkeypatch):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    def reject(*args, **kwargs):
        raise ValidationError("performed_at cannot be in the future")

    monkeypatch.setattr(care_log_service, "log_care", reject)

    completed, care_logged = reminder_service.complete_and_log(1, reminder.id)

    assert care_logged is False
    assert completed.status == ReminderStatus.COMPLETED
    assert reminder_repo.get(reminder.id).status == ReminderStatus.COMPLETED


def test_completing_twice_is_rejected(seed, reminder_service):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]
    reminder_service.complete(1, reminder.id, log_care=False)

    with pytest.raises(InvalidTransitionError):
        reminder_service.complete(1, reminder.id)


def test_snoozing_a_completed_reminder_is_rejected(seed, reminder_service):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]
    reminder_service.complete(1, reminder.id, log_care=False)

    with pytest.raises(InvalidTransitionError):
        reminder_service.snooze(1, reminder.id, 2)


def test_dismiss_completes_then_deletes(seed, reminder_service, reminder_repo, care_log_repo):
    plant_id = seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    reminder_service.dismiss(1, reminder.id)
    assert reminder_repo.get(reminder.id).status == ReminderStatus.COMPLETED
    assert care_log_repo.list_for_plant(plant_id) == []

    reminder_service.dismiss(1, reminder.id)
    assert reminder_repo.get(reminder.id) is None


def test_other_users_reminders_are_not_found(seed, reminder_service):
    seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    with pytest.raises(NotFoundError):
        reminder_service.snooze(2, reminder.id, 2)


def test_superseded_active_reminder_is_pruned(seed, reminder_service, reminder_repo, plant_repo):
    plant_id = seed.create_plant(last_watered_days_ago=10)
    reminder = reminder_service.refresh(1)[0]

    # Care recorded outside the reminder flow
    plant_repo.update(plant_id, {"last_watered_at": NOW.isoformat()})

    assert reminder_service.refresh(1) == []
    assert reminder_repo.get(reminder.id) is None


def test_disabled_preferences_remove_active_reminders(seed, reminder_service, reminder_repo):
    seed.create_plant(last_watered_days_ago=10)
    reminder_service.refresh(1)

    reminder_service.update_preferences(1, {"enabled": False})

    assert reminder_service.refresh(1) == []
    assert reminder_repo.list_for_user(1) == []


def test_update_preferences_merges_plant_settings(seed, reminder_service):
    plant_id = seed.create_plant(watering_every_days=7, last_watered_days_ago=3)
    assert reminder_service.refresh(1) == []

    prefs = reminder_service.update_preferences(
        1, {"plant_settings": {str(plant_id): {"enabled": True, "custom_frequency": {"watering": 2}}}}
    )
    reminders = reminder_service.refresh(1)

    assert prefs.custom_frequency(plant_id, reminders[0].care_type) == 2
    assert reminders[0].frequency_days == 2
    assert reminders[0].due_at == NOW - timedelta(days=1)
    # Unrelated keys keep their previous values
    assert reminder_service.update_preferences(1, {"advance_notice_days": 5}).custom_frequency(
        plant_id, reminders[0].care_type
    ) == 2


def test_upcoming_window(seed, reminder_service):
    seed.create_plant(watering_every_days=7, last_watered_days_ago=6)

    assert len(reminder_service.upcoming(1, hours=48)) == 1
    assert reminder_service.upcoming(1, hours=12) == []


def test_buckets_and_stats(seed, reminder_service):
    seed.create_plant("Overdue", watering_every_days=7, last_watered_days_ago=10)
    seed.create_plant("Tomorrow", watering_every_days=7, last_watered_days_ago=6)

    buckets = reminder_service.get_buckets(1)
    stats = reminder_service.get_stats(1)

    assert len(buckets.overdue) == 1
    assert len(buckets.upcoming) == 1
    assert buckets.today == []
    assert stats["total_active"] == 2
    assert stats["by_status"]["pending"] == 2
    assert stats["by_priority"]["high"] == 1
    assert stats["by_priority"]["medium"] == 1
    assert stats["buckets"] == {"today": 0, "overdue": 1, "upcoming": 1}


def test_failed_insert_raises_repository_error(seed, reminder_service, reminder_repo, monkeypatch):
    seed.create_plant(last_watered_days_ago=10)
    monkeypatch.setattr(reminder_repo, "create", lambda reminder: None)

    with pytest.raises(RepositoryError):
        reminder_service.refresh(1)


def test_refresh_all_skips_failing_users(seed, reminder_service, monkeypatch):
    seed.create_plant(user_id=1, last_watered_days_ago=10)
    seed.create_plant(user_id=2, last_watered_days_ago=10)
    original = reminder_service.refresh

    def flaky_refresh(user_id, now=None):
        if user_id == 2:
            raise RepositoryError("disk full")
        return original(user_id, now)

    monkeypatch.setattr(reminder_service, "refresh", flaky_refresh)

    results = reminder_service.refresh_all([1, 2])

    assert list(results) == [1]
    assert len(results[1]) == 1


def test_care_logged_event_refreshes_reminders(
    seed, plant_repo, care_log_repo, reminder_repo, care_log_service, event_bus, clock
):
    plant_id = seed.create_plant(watering_every_days=7, last_watered_days_ago=3)
    service = ReminderService(plant_repo, care_log_repo, reminder_repo, event_bus=event_bus, clock=clock)
    service.subscribe_to_events()
    try:
        # Fertilizing is tracked by default; the event triggers generation for the whole user
        care_log_service.log_care(1, plant_id, "pruning")
        assert reminder_repo.list_for_user(1) != []
    finally:
        service.unsubscribe_from_events()


def test_refresh_overlapping_another_refresh_reuses_its_row(seed, reminder_service, reminder_repo, monkeypatch):
    seed.create_plant(last_watered_days_ago=10)
    list_for_user = reminder_repo.list_for_user
    overlapped = []
    started = []

    def list_then_refresh(user_id, **filters):
        rows = list_for_user(user_id, **filters)
        if not filters and not started:
            started.append(user_id)
            # A second refresh stores the occurrence after this read
            overlapped.append(reminder_service.refresh(user_id))
        return rows

    monkeypatch.setattr(reminder_repo, "list_for_user", list_then_refresh)

    reminders = reminder_service.refresh(1)

    [inner] = overlapped
    assert [r.id for r in reminders] == [r.id for r in inner]
    assert len(list_for_user(1)) == 1


class TestCountFromCreation:
    @pytest.fixture()
    def service(self, plant_repo, care_log_repo, reminder_repo, clock):
        config = ReminderEngineConfig(
            no_history_policy=NoHistoryPolicy.FROM_CREATED,
            tracked_care_types=(CareType.WATERING,),
        )
        return ReminderService(plant_repo, care_log_repo, reminder_repo, engine_config=config, clock=clock)

    def test_old_plant_without_care_is_overdue(self, seed, service, reminder_repo):
        plant_id = seed.create_plant("Fern", watering_every_days=7, created_days_ago=10)

        [reminder] = service.refresh(1)

        assert reminder.plant_id == plant_id
        assert reminder.no_history is False
        assert reminder.due_at == NOW - timedelta(days=3)
        assert reminder.priority == ReminderPriority.HIGH
        assert reminder_repo.get(reminder.id).original_due_at == NOW - timedelta(days=3)

    def test_new_plant_is_not_due_yet(self, seed, service, reminder_repo):
        seed.create_plant("Fern", watering_every_days=7, created_days_ago=3)

        assert service.refresh(1) == []
        assert reminder_repo.list_for_user(1) == []
