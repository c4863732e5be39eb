"""PlantService: user-scoped CRUD and lifecycle events."""

from __future__ import annotations

import pytest

from app.domain.exceptions import NotFoundError, ValidationError
from app.enums.common import PlantCategory
from app.enums.events import PlantEvent


def test_create_normalizes_and_publishes(plant_service, event_bus, mock_audit_logger):
    created = []
    event_bus.subscribe(PlantEvent.PLANT_CREATED, created.append)

    plant = plant_service.create_plant(
        1,
        {"name": "Basil", "category": PlantCategory.HERB, "last_watered_at": "2026-04-14T08:00:00Z"},
    )

    assert plant.id is not None
    assert plant.category == PlantCategory.HERB
    assert plant.last_watered_at.isoformat() == "2026-04-14T08:00:00+00:00"
    assert created == [{"user_id": 1, "plant_id": plant.id, "name": "Basil"}]
    mock_audit_logger.log_event.assert_called_once()


def test_bad_timestamp_is_rejected(plant_service):
    with pytest.raises(ValidationError):
        plant_service.create_plant(1, {"name": "Basil", "last_watered_at": "yesterday"})


def test_plants_are_scoped_to_their_owner(plant_service):
    plant = plant_service.create_plant(1, {"name": "Fern"})

    with pytest.raises(NotFoundError):
        plant_service.get_plant(2, plant.id)
    assert plant_service.list_plants(2) == []


def test_update_and_filter(plant_service):
    plant = plant_service.create_plant(1, {"name": "Fern"})
    plant_service.create_plant(1, {"name": "Aloe", "category": "succulent"})

    updated = plant_service.update_plant(1, plant.id, {"health_status": "poor", "watering_every_days": 4})

    assert updated.watering_every_days == 4
    assert [p.name for p in plant_service.list_plants(1, health_status="poor")] == ["Fern"]
    assert [p.name for p in plant_service.list_plants(1, category="succulent")] == ["Aloe"]
    assert [p.name for p in plant_service.list_plants(1, search="alo")] == ["Aloe"]


def test_delete_cascades_to_care_logs(plant_service, seed, care_log_repo):
    plant_id = seed.create_plant()
    seed.log_care(plant_id, "watering", days_ago=1)

    plant_service.delete_plant(1, plant_id)

    with pytest.raises(NotFoundError):
        plant_service.get_plant(1, plant_id)
    assert care_log_repo.list_for_plant(plant_id) == []
