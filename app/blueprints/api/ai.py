"""
AI Advice API
=============

LLM-backed plant-care advice. When no provider is configured every advice
endpoint answers 503 "AI features are disabled"; ``/status`` always works.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, request

from app.blueprints.api._common import (
    get_advice_service as _advice_service,
    get_user_id,
    parse_body,
    success as _success,
)
from app.constants import Limits
from app.enums.common import RecommendationKind
from app.domain.exceptions import ValidationError
from app.schemas import CareScheduleRequest, CareTipsRequest, DiagnoseRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger("ai_api")

ai_api = Blueprint("ai_api", __name__)


@ai_api.get("/status")
@safe_route("Failed to read AI status")
def ai_status() -> Response:
    return _success(_advice_service().status())


@ai_api.post("/care-tips")
@api_login_required
@safe_route("Failed to generate care tips")
def care_tips() -> Response:
    body = parse_body(CareTipsRequest)
    if body.plant_id is None and not body.plant_name:
        raise ValidationError("plant_id or plant_name is required")
    result = _advice_service().care_tips(
        get_user_id(),
        plant_id=body.plant_id,
        plant_name=body.plant_name,
        species=body.species,
        question=body.question,
    )
    return _success(result.to_dict())


@ai_api.post("/diagnose")
@api_login_required
@safe_route("Failed to diagnose plant")
def diagnose() -> Response:
    body = parse_body(DiagnoseRequest)
    result, record_id = _advice_service().diagnose(
        get_user_id(),
        body.symptoms,
        plant_id=body.plant_id,
        species=body.species,
    )
    return _success({**result.to_dict(), "recommendation_id": record_id})


@ai_api.post("/care-schedule")
@api_login_required
@safe_route("Failed to suggest a care schedule")
def care_schedule() -> Response:
    body = parse_body(CareScheduleRequest)
    result, record_id = _advice_service().care_schedule(get_user_id(), body.plant_id)
    return _success({**result.to_dict(), "recommendation_id": record_id})


@ai_api.get("/recommendations")
@api_login_required
@safe_route("Failed to load recommendations")
def recommendations() -> Response:
    kind = request.args.get("kind") or None
    if kind is not None and kind not in {k.value for k in RecommendationKind}:
        raise ValidationError(f"Unknown recommendation kind: {kind}")
    history = _advice_service().history(
        get_user_id(),
        plant_id=request.args.get("plant_id", type=int),
        kind=kind,
        limit=min(request.args.get("limit", Limits.RECOMMENDATION_HISTORY, type=int), 200),
    )
    return _success({"recommendations": history, "count": len(history)})
