"""app.socketio.reminder_handlers

Socket.IO namespace handlers for reminder and notification pushes.

Namespaces:
- /reminders: ``reminder_updated`` and ``reminders_refreshed`` events
- /notifications: ``notification_created`` events

Connected clients are placed in their owner's room ``user_<id>``; the
emitter (``app.utils.emitters``) targets that room. Anonymous connections
are refused unless login is disabled.
"""

import logging

from flask import request
from flask_socketio import join_room, leave_room

from app.extensions import socketio
from app.security.auth import current_user_id
from app.utils.emitters import SOCKETIO_NAMESPACE_NOTIFICATIONS, SOCKETIO_NAMESPACE_REMINDERS, user_room

logger = logging.getLogger(__name__)


def _join_user_room(namespace_label: str) -> bool:
    user_id = current_user_id()
    if user_id is None:
        logger.info("Refusing anonymous Socket.IO client %s on %s", request.sid, namespace_label)
        return False
    join_room(user_room(user_id))
    logger.debug("Client %s joined %s (%s)", request.sid, user_room(user_id), namespace_label)
    return True


# ==================== /reminders ====================


@socketio.on("connect", namespace=SOCKETIO_NAMESPACE_REMINDERS)
def handle_reminders_connect(auth=None):
    return _join_user_room(SOCKETIO_NAMESPACE_REMINDERS)


@socketio.on("disconnect", namespace=SOCKETIO_NAMESPACE_REMINDERS)
def handle_reminders_disconnect(*_args):
    logger.debug("Client %s disconnected from %s", request.sid, SOCKETIO_NAMESPACE_REMINDERS)


@socketio.on("subscribe", namespace=SOCKETIO_NAMESPACE_REMINDERS)
def handle_reminders_subscribe(_data=None):
    """Re-join the user room, e.g. after the session changed user."""
    if _join_user_room(SOCKETIO_NAMESPACE_REMINDERS):
        return {"ok": True, "room": user_room(current_user_id())}
    return {"ok": False, "error": "Authentication required"}


@socketio.on("unsubscribe", namespace=SOCKETIO_NAMESPACE_REMINDERS)
def handle_reminders_unsubscribe(_data=None):
    user_id = current_user_id()
    if user_id is not None:
        leave_room(user_room(user_id))
    return {"ok": True}


# ==================== /notifications ====================


@socketio.on("connect", namespace=SOCKETIO_NAMESPACE_NOTIFICATIONS)
def handle_notifications_connect(auth=None):
    return _join_user_room(SOCKETIO_NAMESPACE_NOTIFICATIONS)


@socketio.on("disconnect", namespace=SOCKETIO_NAMESPACE_NOTIFICATIONS)
def handle_notifications_disconnect(*_args):
    logger.debug("Client %s disconnected from %s", request.sid, SOCKETIO_NAMESPACE_NOTIFICATIONS)
