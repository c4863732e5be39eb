"""
Plants API tests: CRUD, filters and care logs through the Flask test client.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

PLANTS = "/api/v1/plants"


def _iso_days_ago(days: float) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def _create(client, **fields):
    body = {"name": "Fern", "watering_every_days": 7, **fields}
    response = client.post(PLANTS, json=body)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]


class TestPlantCrud:
    def test_create_and_get(self, client):
        plant = _create(client, name="  Monstera  ", category="indoor", sunlight="bright_indirect")

        assert plant["name"] == "Monstera"
        assert plant["user_id"] == 1

        response = client.get(f"{PLANTS}/{plant['id']}")
        body = response.get_json()
        assert response.status_code == 200
        assert body["ok"] is True
        assert body["data"]["sunlight"] == "bright_indirect"

    def test_create_validation_error(self, client):
        response = client.post(PLANTS, json={"name": "   ", "watering_every_days": 0})

        assert response.status_code == 400
        body = response.get_json()
        assert body["ok"] is False
        fields = {err["field"] for err in body["details"]["errors"]}
        assert {"name", "watering_every_days"} <= fields

    def test_list_with_filters(self, client):
        _create(client, name="Basil", category="herb")
        _create(client, name="Aloe", category="succulent", health_status="poor")

        all_plants = client.get(PLANTS).get_json()["data"]
        herbs = client.get(f"{PLANTS}?category=herb").get_json()["data"]
        poor = client.get(f"{PLANTS}?health_status=poor").get_json()["data"]
        search = client.get(f"{PLANTS}?search=alo").get_json()["data"]

        assert all_plants["count"] == 2
        assert [p["name"] for p in herbs["plants"]] == ["Basil"]
        assert [p["name"] for p in poor["plants"]] == ["Aloe"]
        assert [p["name"] for p in search["plants"]] == ["Aloe"]

    def test_unknown_category_filter(self, client):
        assert client.get(f"{PLANTS}?category=cactus").status_code == 400

    def test_partial_update(self, client):
        plant = _create(client, location="Kitchen")

        response = client.put(f"{PLANTS}/{plant['id']}", json={"watering_every_days": 4, "name": None})

        updated = response.get_json()["data"]
        assert response.status_code == 200
        assert updated["watering_every_days"] == 4
        assert updated["name"] == "Fern"
        assert updated["location"] == "Kitchen"

    def test_delete(self, client):
        plant = _create(client)

        assert client.delete(f"{PLANTS}/{plant['id']}").get_json()["data"] == {"deleted": plant["id"]}
        assert client.get(f"{PLANTS}/{plant['id']}").status_code == 404

    def test_missing_plant(self, client):
        response = client.get(f"{PLANTS}/999")
        assert response.status_code == 404
        assert response.get_json()["error"]["message"] == "Plant 999 not found"


class TestCareLogs:
    def test_log_care_advances_last_watered(self, client):
        plant = _create(client, last_watered_at=_iso_days_ago(5))
        performed_at = _iso_days_ago(1)

        response = client.post(
            f"{PLANTS}/{plant['id']}/care-logs",
            json={"care_type": "watering", "performed_at": performed_at, "notes": "Deep soak"},
        )

        assert response.status_code == 201
        log = response.get_json()["data"]
        assert log["care_type"] == "watering"
        assert log["notes"] == "Deep soak"

        refreshed = client.get(f"{PLANTS}/{plant['id']}").get_json()["data"]
        assert refreshed["last_watered_at"][:16] == performed_at[:16]

    def test_unknown_care_type(self, client):
        plant = _create(client)
        response = client.post(f"{PLANTS}/{plant['id']}/care-logs", json={"care_type": "singing"})
        assert response.status_code == 400

    def test_future_care_log_rejected(self, client):
        plant = _create(client)
        future = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()

        response = client.post(
            f"{PLANTS}/{plant['id']}/care-logs", json={"care_type": "watering", "performed_at": future}
        )

        assert response.status_code == 400

    def test_list_filter_delete_and_history(self, client):
        plant = _create(client)
        url = f"{PLANTS}/{plant['id']}/care-logs"
        for days in (9, 5, 1):
            client.post(url, json={"care_type": "watering", "performed_at": _iso_days_ago(days)})
        fed = client.post(url, json={"care_type": "fertilizing", "performed_at": _iso_days_ago(2)}).get_json()

        watering = client.get(f"{url}?care_type=watering").get_json()["data"]
        assert watering["count"] == 3

        history = client.get(f"{PLANTS}/{plant['id']}/care-history").get_json()["data"]["history"]
        assert history["watering"]["count"] == 3
        assert history["fertilizing"]["count"] == 1

        assert client.delete(f"{url}/{fed['data']['id']}").status_code == 200
        assert client.get(url).get_json()["data"]["count"] == 3

    def test_bad_paging_argument(self, client):
        plant = _create(client)
        response = client.get(f"{PLANTS}/{plant['id']}/care-logs?limit=abc")
        assert response.status_code == 400
