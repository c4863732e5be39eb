"""
Reminders API tests: listing, buckets, lifecycle actions and preferences.

The app runs on the real clock, so plants are seeded far enough in the past
that seasonal scaling cannot change which bucket a reminder lands in.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

REMINDERS = "/api/v1/reminders"


def _iso_days_ago(days: float) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def _watering(reminders):
    return [r for r in reminders if r["care_type"] == "watering"]


@pytest.fixture()
def overdue_plant(client):
    response = client.post(
        "/api/v1/plants",
        json={"name": "Fern", "watering_every_days": 7, "last_watered_at": _iso_days_ago(30)},
    )
    assert response.status_code == 201
    return response.get_json()["data"]


@pytest.fixture()
def watering_reminder(client, overdue_plant):
    reminders = client.get(REMINDERS).get_json()["data"]["reminders"]
    [reminder] = _watering(reminders)
    return reminder


class TestListing:
    def test_overdue_plant_gets_reminder(self, client, watering_reminder, overdue_plant):
        assert watering_reminder["plant_id"] == overdue_plant["id"]
        assert watering_reminder["title"] == "Water Fern"
        assert watering_reminder["status"] == "pending"
        assert watering_reminder["priority"] in ("high", "urgent")

    def test_listing_is_stable(self, client, watering_reminder):
        again = _watering(client.get(REMINDERS).get_json()["data"]["reminders"])
        assert [r["id"] for r in again] == [watering_reminder["id"]]

    def test_filter_by_plant(self, client, overdue_plant):
        other = client.get(f"{REMINDERS}?plant_id={overdue_plant['id'] + 100}").get_json()["data"]
        assert other == {"reminders": [], "count": 0}

    def test_bad_status_filter(self, client):
        assert client.get(f"{REMINDERS}?status=forgotten").status_code == 400

    def test_buckets_and_stats(self, client, watering_reminder):
        buckets = client.get(f"{REMINDERS}/buckets").get_json()["data"]
        stats = client.get(f"{REMINDERS}/stats").get_json()["data"]

        assert watering_reminder["id"] in [r["id"] for r in buckets["overdue"]]
        assert set(buckets["counts"]) == {"today", "overdue", "upcoming"}
        assert stats["total_active"] >= 1
        assert stats["by_status"]["pending"] >= 1

    def test_upcoming_validation(self, client):
        assert client.get(f"{REMINDERS}/upcoming?hours=0").status_code == 400
        body = client.get(f"{REMINDERS}/upcoming?hours=48").get_json()["data"]
        assert body["hours"] == 48


class TestLifecycle:
    def test_snooze(self, client, watering_reminder):
        response = client.post(f"{REMINDERS}/{watering_reminder['id']}/snooze", json={"hours": 2})

        reminder = response.get_json()["data"]["reminder"]
        assert response.status_code == 200
        assert reminder["status"] == "snoozed"
        assert reminder["snooze_count"] == 1
        assert reminder["original_due_at"] == watering_reminder["original_due_at"]

        listed = _watering(client.get(REMINDERS).get_json()["data"]["reminders"])
        assert listed[0]["status"] == "snoozed"

    def test_snooze_rejects_bad_hours(self, client, watering_reminder):
        response = client.post(f"{REMINDERS}/{watering_reminder['id']}/snooze", json={"hours": -1})

        assert response.status_code == 400
        assert response.get_json()["details"]["errors"][0]["field"] == "hours"

    def test_complete_logs_care(self, client, watering_reminder, overdue_plant):
        response = client.post(f"{REMINDERS}/{watering_reminder['id']}/complete", json={"notes": "Done"})

        data = response.get_json()["data"]
        assert response.status_code == 200
        assert data["care_logged"] is True
        assert data["reminder"]["status"] == "completed"

        logs = client.get(f"/api/v1/plants/{overdue_plant['id']}/care-logs").get_json()["data"]["care_logs"]
        assert [log["care_type"] for log in logs] == ["watering"]

        completed = client.get(f"{REMINDERS}?status=completed").get_json()["data"]["reminders"]
        assert watering_reminder["id"] in [r["id"] for r in completed]

    def test_complete_twice_conflicts(self, client, watering_reminder):
        url = f"{REMINDERS}/{watering_reminder['id']}/complete"
        client.post(url, json={"log_care": False})

        response = client.post(url, json={})

        assert response.status_code == 409
        assert response.get_json()["ok"] is False

    def test_dismiss(self, client, watering_reminder):
        response = client.delete(f"{REMINDERS}/{watering_reminder['id']}")

        assert response.get_json()["data"] == {"dismissed": watering_reminder["id"]}
        active = _watering(client.get(REMINDERS).get_json()["data"]["reminders"])
        assert watering_reminder["id"] not in [r["id"] for r in active]

    def test_unknown_reminder(self, client):
        assert client.post(f"{REMINDERS}/999/snooze", json={}).status_code == 404
        assert client.delete(f"{REMINDERS}/999").status_code == 404


class TestPreferences:
    def test_defaults(self, client):
        prefs = client.get(f"{REMINDERS}/preferences").get_json()["data"]

        assert prefs["enabled"] is True
        assert prefs["notification_methods"] == ["in_app"]
        assert prefs["advance_notice_days"] == 3
        assert prefs["max_reminders_per_day"] == 10

    def test_partial_update(self, client, overdue_plant):
        response = client.put(
            f"{REMINDERS}/preferences",
            json={
                "advance_notice_days": 5,
                "quiet_hours": {"enabled": True, "start": "22:00", "end": "07:00"},
                "plant_settings": {str(overdue_plant["id"]): {"custom_frequency": {"watering": 3}}},
            },
        )

        prefs = response.get_json()["data"]
        assert response.status_code == 200
        assert prefs["advance_notice_days"] == 5
        assert prefs["max_reminders_per_day"] == 10
        assert prefs["quiet_hours"] == {"enabled": True, "start": "22:00", "end": "07:00"}
        assert prefs["plant_settings"][str(overdue_plant["id"])]["custom_frequency"] == {"watering": 3}

    def test_disabling_plant_removes_its_reminders(self, client, watering_reminder, overdue_plant):
        client.put(
            f"{REMINDERS}/preferences",
            json={"plant_settings": {str(overdue_plant["id"]): {"enabled": False}}},
        )

        assert client.get(REMINDERS).get_json()["data"]["count"] == 0

    def test_invalid_quiet_hours(self, client):
        response = client.put(f"{REMINDERS}/preferences", json={"quiet_hours": {"start": "25:99"}})
        assert response.status_code == 400


class TestLegacyPaths:
    def test_unversioned_api_path_is_rewritten(self, client, overdue_plant):
        response = client.get("/api/reminders")

        assert response.status_code == 200
        assert response.get_json()["data"]["count"] >= 1
