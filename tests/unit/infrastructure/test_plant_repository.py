"""
Tests for PlantRepository column handling.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from app.utils.time import to_iso


def test_create_keeps_explicit_created_at_without_warnings(plant_repo, now, caplog):
    created_at = now - timedelta(days=12)

    with caplog.at_level(logging.WARNING, logger="infrastructure.database.sql_safety"):
        plant_id = plant_repo.create(1, {"name": "Fern", "created_at": to_iso(created_at)})

    plant = plant_repo.get(plant_id)
    assert plant.created_at == created_at
    assert plant.updated_at == created_at
    assert caplog.records == []


def test_create_drops_unknown_columns(plant_repo, caplog):
    with caplog.at_level(logging.WARNING, logger="infrastructure.database.sql_safety"):
        plant_id = plant_repo.create(1, {"name": "Fern", "owner": "mallory"})

    assert plant_repo.get(plant_id).name == "Fern"
    assert "owner" in caplog.text
