"""
Tests for ReminderRepository against the in-memory SQLite schema.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

from app.domain.reminders import PlantReminderSettings, QuietHours, Reminder, ReminderPreferences
from app.enums.common import NotificationChannel, ReminderStatus


def _reminder(plant_id: int, due_at, **overrides) -> Reminder:
    fields = {
        "user_id": 1,
        "plant_id": plant_id,
        "plant_name": "Fern",
        "care_type": "watering",
        "title": "Water Fern",
        "due_at": due_at,
        "priority": "medium",
        "frequency_days": 7.0,
    }
    fields.update(overrides)
    return Reminder(**fields)


class TestReminderRows:
    def test_create_and_get(self, reminder_repo, seed, now):
        plant_id = seed.create_plant("Fern")

        reminder_id = reminder_repo.create(_reminder(plant_id, now + timedelta(hours=3)))
        stored = reminder_repo.get(reminder_id)

        assert stored.id == reminder_id
        assert stored.due_at == now + timedelta(hours=3)
        assert stored.original_due_at == stored.due_at
        assert stored.status == ReminderStatus.PENDING

    def test_duplicate_occurrence_is_rejected(self, reminder_repo, seed, now):
        plant_id = seed.create_plant("Fern")
        reminder_repo.create(_reminder(plant_id, now))

        assert reminder_repo.create(_reminder(plant_id, now)) is None

    def test_save_state_keeps_original_due(self, reminder_repo, seed, now):
        plant_id = seed.create_plant("Fern")
        reminder_id = reminder_repo.create(_reminder(plant_id, now))
        snoozed = replace(
            reminder_repo.get(reminder_id),
            status=ReminderStatus.SNOOZED,
            due_at=now + timedelta(hours=4),
            snoozed_until=now + timedelta(hours=4),
            snooze_count=1,
        )

        assert reminder_repo.save_state(snoozed)
        stored = reminder_repo.get(reminder_id)
        assert stored.status == ReminderStatus.SNOOZED
        assert stored.original_due_at == now
        assert stored.snooze_count == 1

    def test_due_between_skips_completed(self, reminder_repo, seed, now):
        plant_id = seed.create_plant("Fern")
        other_id = seed.create_plant("Cactus", user_id=2)
        reminder_repo.create(_reminder(plant_id, now + timedelta(minutes=30)))
        reminder_repo.create(_reminder(other_id, now + timedelta(minutes=45), user_id=2))
        reminder_repo.create(_reminder(plant_id, now + timedelta(minutes=40), status="completed", completed_at=now))
        reminder_repo.create(_reminder(plant_id, now + timedelta(hours=5)))

        due = reminder_repo.list_due_between(now, now + timedelta(hours=1))

        assert [(r.plant_id, r.user_id) for r in due] == [(plant_id, 1), (other_id, 2)]

    def test_prune_active_keeps_completed(self, reminder_repo, seed, now):
        plant_id = seed.create_plant("Fern")
        keep = reminder_repo.create(_reminder(plant_id, now))
        reminder_repo.create(_reminder(plant_id, now + timedelta(days=1)))
        done = reminder_repo.create(_reminder(plant_id, now - timedelta(days=7), status="completed"))

        assert reminder_repo.prune_active(1, [keep]) == 1
        assert sorted(r.id for r in reminder_repo.list_for_user(1)) == sorted([keep, done])

    def test_plant_delete_cascades(self, reminder_repo, plant_repo, seed, now):
        plant_id = seed.create_plant("Fern")
        reminder_id = reminder_repo.create(_reminder(plant_id, now))

        plant_repo.delete(plant_id)

        assert reminder_repo.get(reminder_id) is None


class TestPreferences:
    def test_defaults_when_missing(self, reminder_repo):
        preferences = reminder_repo.load_preferences(5)
        assert preferences.user_id == 5
        assert preferences.enabled
        assert preferences.notification_methods == [NotificationChannel.IN_APP]

    def test_round_trip(self, reminder_repo):
        preferences = ReminderPreferences(
            user_id=2,
            notification_methods=[NotificationChannel.EMAIL],
            advance_notice_days=5,
            quiet_hours=QuietHours(enabled=True, start="22:00", end="07:30"),
            plant_settings={9: PlantReminderSettings(enabled=False, custom_frequency={"watering": 3})},
        )

        assert reminder_repo.save_preferences(preferences)
        loaded = reminder_repo.load_preferences(2)

        assert loaded.advance_notice_days == 5
        assert loaded.quiet_hours.start == "22:00"
        assert not loaded.is_plant_enabled(9)
        assert loaded.plant_settings[9].custom_frequency == {"watering": 3}
        assert loaded.wants(NotificationChannel.EMAIL)
        assert not loaded.wants(NotificationChannel.IN_APP)
