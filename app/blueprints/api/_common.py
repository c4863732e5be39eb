"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from app.blueprints.api._common import (
        get_container, get_json, success, fail, get_user_id,
        get_reminder_service, ...
    )
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from flask import current_app, request
from pydantic import BaseModel

from app.domain.exceptions import AuthenticationError
from app.security.auth import current_user_id
from app.utils.http import error_response, success_response

logger = logging.getLogger("api._common")

M = TypeVar("M", bound=BaseModel)

# ============================================================================
# User Session Utilities
# ============================================================================


def get_user_id() -> int:
    """Current user id. Raises AuthenticationError for anonymous requests."""
    user_id = current_user_id()
    if user_id is None:
        raise AuthenticationError("Authentication required")
    return user_id


# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_plant_service():
    return get_container().plant_service


def get_care_log_service():
    return get_container().care_log_service


def get_reminder_service():
    return get_container().reminder_service


def get_notifications_service():
    return get_container().notifications_service


def get_advice_service():
    return get_container().advice_service


def get_auth_manager():
    return get_container().auth_manager


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """Get JSON request body with silent failure (empty dict when absent)."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def parse_body(model: type[M]) -> M:
    """Validate the JSON body; pydantic errors are turned into a 400 by ``safe_route``."""
    return model.model_validate(get_json())


def parse_query(model: type[M]) -> M:
    """Validate query-string arguments (blank values are dropped)."""
    args = {k: v for k, v in request.args.items() if v not in ("", None)}
    return model.model_validate(args)


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """
    Standard error response wrapper.

    Returns:
        Flask Response with format: {"ok": false, "data": null, "error": {...}}
    """
    return error_response(message, status, details=details)


def to_dicts(items: list[Any]) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]
