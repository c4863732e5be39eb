"""CareLogService: appending care, advancing last-care timestamps, history summaries."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.domain.exceptions import NotFoundError, ValidationError
from app.enums.common import CareType
from app.enums.events import PlantEvent
from tests.conftest import NOW


def test_log_watering_advances_plant_and_publishes(seed, care_log_service, plant_repo, event_bus):
    plant_id = seed.create_plant(last_watered_days_ago=10)
    received = []
    event_bus.subscribe(PlantEvent.CARE_LOGGED, received.append)

    log = care_log_service.log_care(1, plant_id, "watering", notes="deep soak")

    assert log.id is not None
    assert log.care_type == CareType.WATERING
    assert log.performed_at == NOW
    assert plant_repo.get(plant_id).last_watered_at == NOW
    assert received == [
        {
            "user_id": 1,
            "plant_id": plant_id,
            "care_type": "watering",
            "performed_at": NOW.isoformat(),
            "log_id": log.id,
        }
    ]


def test_backdated_log_never_moves_last_care_backwards(seed, care_log_service, plant_repo):
    plant_id = seed.create_plant(last_watered_days_ago=1)

    care_log_service.log_care(1, plant_id, CareType.WATERING, performed_at=NOW - timedelta(days=5))

    assert plant_repo.get(plant_id).last_watered_at == NOW - timedelta(days=1)


def test_future_timestamp_is_rejected(seed, care_log_service):
    plant_id = seed.create_plant()

    with pytest.raises(ValidationError):
        care_log_service.log_care(1, plant_id, "watering", performed_at=NOW + timedelta(hours=2))


def test_unknown_care_type_is_rejected(seed, care_log_service):
    plant_id = seed.create_plant()

    with pytest.raises(ValidationError):
        care_log_service.log_care(1, plant_id, "singing")


def test_foreign_plant_is_not_found(seed, care_log_service):
    plant_id = seed.create_plant(user_id=2)

    with pytest.raises(NotFoundError):
        care_log_service.log_care(1, plant_id, "watering")


def test_list_and_delete_logs(seed, care_log_service):
    plant_id = seed.create_plant()
    watering = seed.log_care(plant_id, "watering", days_ago=2)
    seed.log_care(plant_id, "pruning", days_ago=1)

    assert len(care_log_service.list_logs(1, plant_id)) == 2
    assert [log.id for log in care_log_service.list_logs(1, plant_id, care_type="watering")] == [watering]

    care_log_service.delete_log(1, plant_id, watering)
    assert [log.care_type for log in care_log_service.list_logs(1, plant_id)] == [CareType.PRUNING]

    with pytest.raises(NotFoundError):
        care_log_service.delete_log(1, plant_id, watering)


def test_care_history_summary(seed, care_log_service):
    plant_id = seed.create_plant()
    for days_ago in (12, 8, 4):
        seed.log_care(plant_id, "watering", days_ago=days_ago)
    seed.log_care(plant_id, "fertilizing", days_ago=3)

    history = care_log_service.care_history(1, plant_id)

    assert history["watering"] == {
        "count": 3,
        "last_performed_at": (NOW - timedelta(days=4)).isoformat(),
        "frequency_days": 4,
    }
    assert history["fertilizing"]["count"] == 1
    assert history["fertilizing"]["frequency_days"] is None
    assert "pruning" not in history
