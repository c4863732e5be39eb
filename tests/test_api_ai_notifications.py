"""
AI and notifications API tests.

The test app runs without an LLM provider, so the AI endpoints report the
feature as unavailable; the advisor itself is covered by the unit tests.
"""

from __future__ import annotations

import pytest

AI = "/api/v1/ai"
NOTIFICATIONS = "/api/v1/notifications"


class TestAiDisabled:
    def test_status(self, client):
        response = client.get(f"{AI}/status")

        assert response.status_code == 200
        assert response.get_json()["data"] == {"available": False, "provider": "none", "model": None}

    @pytest.mark.parametrize(
        "path, body",
        [
            ("/care-tips", {"plant_name": "Fern"}),
            ("/diagnose", {"symptoms": "yellow leaves"}),
        ],
    )
    def test_operations_return_503(self, client, path, body):
        response = client.post(f"{AI}{path}", json=body)

        assert response.status_code == 503
        assert response.get_json()["error"]["message"] == "AI features are disabled"

    def test_care_tips_needs_a_plant(self, client):
        response = client.post(f"{AI}/care-tips", json={"question": "How much light?"})
        assert response.status_code == 400

    def test_diagnose_validates_symptoms(self, client):
        assert client.post(f"{AI}/diagnose", json={"symptoms": "x"}).status_code == 400

    def test_recommendations(self, client):
        assert client.get(f"{AI}/recommendations").get_json()["data"] == {"recommendations": [], "count": 0}
        assert client.get(f"{AI}/recommendations?kind=horoscope").status_code == 400


class TestNotificationsApi:
    @pytest.fixture()
    def messages(self, container):
        service = container.notifications_service
        return [
            service.send_notification(1, "reminder_due", f"Water plant {i}", f"Plant {i} is thirsty", force=True)
            for i in range(3)
        ]

    def test_list(self, client, messages):
        data = client.get(NOTIFICATIONS).get_json()["data"]

        assert data["count"] == 3
        assert data["unread_count"] == 3
        assert {m["message_id"] for m in data["notifications"]} == set(messages)

    def test_paging(self, client, messages):
        data = client.get(f"{NOTIFICATIONS}?limit=2&offset=2").get_json()["data"]
        assert data["count"] == 1

    def test_mark_read(self, client, messages):
        response = client.post(f"{NOTIFICATIONS}/{messages[0]}/read")

        assert response.get_json()["data"] == {"message_id": messages[0], "is_read": True}
        assert client.get(f"{NOTIFICATIONS}/unread-count").get_json()["data"] == {"unread_count": 2}
        unread = client.get(f"{NOTIFICATIONS}?unread_only=true").get_json()["data"]
        assert messages[0] not in [m["message_id"] for m in unread["notifications"]]

    def test_mark_all_read(self, client, messages):
        assert client.post(f"{NOTIFICATIONS}/read-all").get_json()["data"] == {"marked": 3}
        assert client.get(f"{NOTIFICATIONS}/unread-count").get_json()["data"]["unread_count"] == 0

    def test_unknown_message(self, client):
        assert client.post(f"{NOTIFICATIONS}/999/read").status_code == 404
