"""
Plant Care Logs
===============

Append-only care history of a plant: list, append, delete, and a per-type
summary used by the reminder screens.
"""

from __future__ import annotations

import logging

from flask import Response, request

from app.blueprints.api._common import (
    get_care_log_service as _care_log_service,
    get_user_id,
    parse_body,
    success as _success,
    to_dicts,
)
from app.constants import Limits
from app.domain.exceptions import ValidationError
from app.schemas import CreateCareLogRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

from . import plants_api

logger = logging.getLogger("plants_api.care_logs")


def _int_arg(name: str, default: int, *, minimum: int = 0, maximum: int | None = None) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer") from None
    if value < minimum or (maximum is not None and value > maximum):
        raise ValidationError(f"{name} is out of range")
    return value


@plants_api.get("/<int:plant_id>/care-logs")
@api_login_required
@safe_route("Failed to list care logs")
def list_care_logs(plant_id: int) -> Response:
    logs = _care_log_service().list_logs(
        get_user_id(),
        plant_id,
        care_type=request.args.get("care_type") or None,
        limit=_int_arg("limit", Limits.CARE_LOGS_PAGE, minimum=1, maximum=1000),
        offset=_int_arg("offset", 0),
    )
    return _success({"care_logs": to_dicts(logs), "count": len(logs)})


@plants_api.post("/<int:plant_id>/care-logs")
@api_login_required
@safe_route("Failed to log care")
def create_care_log(plant_id: int) -> Response:
    body = parse_body(CreateCareLogRequest)
    log = _care_log_service().log_care(
        get_user_id(),
        plant_id,
        body.care_type,
        performed_at=body.performed_at,
        notes=body.notes,
        photos=body.photos,
        care_data=body.care_data,
    )
    return _success(log.to_dict(), 201)


@plants_api.delete("/<int:plant_id>/care-logs/<int:log_id>")
@api_login_required
@safe_route("Failed to delete care log")
def delete_care_log(plant_id: int, log_id: int) -> Response:
    _care_log_service().delete_log(get_user_id(), plant_id, log_id)
    return _success({"deleted": log_id})


@plants_api.get("/<int:plant_id>/care-history")
@api_login_required
@safe_route("Failed to load care history")
def care_history(plant_id: int) -> Response:
    """Per care type: count, last performed date and recent cadence in days."""
    return _success({"plant_id": plant_id, "history": _care_log_service().care_history(get_user_id(), plant_id)})
