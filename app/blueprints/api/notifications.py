"""
Notifications API
=================

In-app notifications of the current user.
"""

from __future__ import annotations

from flask import Blueprint, Response, request

from app.blueprints.api._common import get_notifications_service as _notifications, get_user_id, success as _success
from app.constants import Limits
from app.security.auth import api_login_required
from app.utils.http import safe_route

notifications_api = Blueprint("notifications_api", __name__)


@notifications_api.get("")
@api_login_required
@safe_route("Failed to list notifications")
def list_notifications() -> Response:
    unread_only = request.args.get("unread_only", "").lower() in {"1", "true", "yes"}
    limit = min(request.args.get("limit", Limits.NOTIFICATIONS_PAGE, type=int), Limits.NOTIFICATIONS_PAGE * 4)
    offset = max(request.args.get("offset", 0, type=int), 0)
    user_id = get_user_id()
    service = _notifications()
    messages = service.get_notifications(user_id, unread_only=unread_only, limit=max(limit, 1), offset=offset)
    return _success(
        {"notifications": messages, "count": len(messages), "unread_count": service.get_unread_count(user_id)}
    )


@notifications_api.get("/unread-count")
@api_login_required
@safe_route("Failed to count notifications")
def unread_count() -> Response:
    return _success({"unread_count": _notifications().get_unread_count(get_user_id())})


@notifications_api.post("/<int:message_id>/read")
@api_login_required
@safe_route("Failed to mark notification as read")
def mark_read(message_id: int) -> Response:
    _notifications().mark_as_read(get_user_id(), message_id)
    return _success({"message_id": message_id, "is_read": True})


@notifications_api.post("/read-all")
@api_login_required
@safe_route("Failed to mark notifications as read")
def mark_all_read() -> Response:
    return _success({"marked": _notifications().mark_all_as_read(get_user_id())})
