"""
Plant CRUD Operations
=====================

Endpoints for creating, reading, updating, and deleting the current user's plants.
"""

from __future__ import annotations

import logging

from flask import Response

from app.blueprints.api._common import (
    get_plant_service as _plant_service,
    get_user_id,
    parse_body,
    parse_query,
    success as _success,
    to_dicts,
)
from app.schemas import CreatePlantRequest, PlantListQuery, UpdatePlantRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

from . import plants_api

logger = logging.getLogger("plants_api.crud")

_NOT_NULL_FIELDS = ("name", "category", "sunlight", "health_status")


@plants_api.get("")
@api_login_required
@safe_route("Failed to list plants")
def list_plants() -> Response:
    """List the user's plants (``category``, ``health_status`` and ``search`` filters)."""
    query = parse_query(PlantListQuery)
    plants = _plant_service().list_plants(
        get_user_id(),
        category=query.category.value if query.category else None,
        health_status=query.health_status.value if query.health_status else None,
        search=query.search,
    )
    return _success({"plants": to_dicts(plants), "count": len(plants)})


@plants_api.post("")
@api_login_required
@safe_route("Failed to add plant")
def create_plant() -> Response:
    body = parse_body(CreatePlantRequest)
    plant = _plant_service().create_plant(get_user_id(), body.model_dump(exclude_none=True))
    return _success(plant.to_dict(), 201)


@plants_api.get("/<int:plant_id>")
@api_login_required
@safe_route("Failed to get plant")
def get_plant(plant_id: int) -> Response:
    plant = _plant_service().get_plant(get_user_id(), plant_id)
    return _success(plant.to_dict())


@plants_api.put("/<int:plant_id>")
@api_login_required
@safe_route("Failed to update plant")
def update_plant(plant_id: int) -> Response:
    """Partial update; fields left out of the body are unchanged."""
    body = parse_body(UpdatePlantRequest)
    fields = body.model_dump(exclude_unset=True)
    # Required columns cannot be cleared
    for key in _NOT_NULL_FIELDS:
        if key in fields and fields[key] is None:
            del fields[key]
    plant = _plant_service().update_plant(get_user_id(), plant_id, fields)
    logger.info("Updated plant %s", plant_id)
    return _success(plant.to_dict())


@plants_api.delete("/<int:plant_id>")
@api_login_required
@safe_route("Failed to delete plant")
def delete_plant(plant_id: int) -> Response:
    _plant_service().delete_plant(get_user_id(), plant_id)
    return _success({"deleted": plant_id})
