"""
WebSocket Emitters
==================

Centralized Socket.IO emitter. Reminder and notification changes are pushed
to the owner's room ``user_<id>`` so connected clients can reconcile without
waiting for their next poll.

Usage:
    emitter = EmitterService(socketio)
    emitter.emit_reminder_updated(user_id, reminder.to_dict(), action="snoozed")
"""

import logging
from typing import Any

from flask_socketio import SocketIO

from app.enums.events import WebSocketEvent

logger = logging.getLogger("emitters")

# Socket.IO Namespace Constants
SOCKETIO_NAMESPACE_REMINDERS = "/reminders"
SOCKETIO_NAMESPACE_NOTIFICATIONS = "/notifications"


def user_room(user_id: int) -> str:
    return f"user_{user_id}"


class EmitterService:
    """
    Centralized WebSocket Emitter Service.

    Attributes:
        sio: The Socket.IO SocketIO instance for emitting events.
    """

    def __init__(self, sio: SocketIO | None):
        self.sio = sio

    def emit(
        self,
        event: str,
        payload: dict,
        room: str | None = None,
        namespace: str = "/",
    ) -> bool:
        """
        Emit a Socket.IO event. Failures are logged, never raised: a push is
        a hint to connected clients and polling remains the fallback.
        """
        if self.sio is None:
            return False
        try:
            self.sio.emit(event, payload, to=room, namespace=namespace)
            logger.debug("Emitted event='%s' namespace='%s' room='%s'", event, namespace, room or "broadcast")
            return True
        except Exception as e:
            logger.exception("[Emitter] Failed to emit event '%s' to room '%s': %s", event, room, e)
            return False

    def emit_to_user(self, user_id: int, event: str, payload: dict, namespace: str = "/") -> bool:
        """Emit an event to a specific user's room (``user_<user_id>``)."""
        return self.emit(event=event, payload=payload, room=user_room(user_id), namespace=namespace)

    def emit_reminder_updated(self, user_id: int, reminder: dict[str, Any], action: str) -> bool:
        return self.emit_to_user(
            user_id,
            WebSocketEvent.REMINDER_UPDATED.value,
            {"action": action, "reminder": reminder},
            namespace=SOCKETIO_NAMESPACE_REMINDERS,
        )

    def emit_reminders_refreshed(self, user_id: int, counts: dict[str, int]) -> bool:
        return self.emit_to_user(
            user_id,
            WebSocketEvent.REMINDERS_REFRESHED.value,
            {"user_id": user_id, "counts": counts},
            namespace=SOCKETIO_NAMESPACE_REMINDERS,
        )

    def emit_notification(self, user_id: int, notification: dict[str, Any]) -> bool:
        return self.emit_to_user(
            user_id,
            WebSocketEvent.NOTIFICATION_CREATED.value,
            notification,
            namespace=SOCKETIO_NAMESPACE_NOTIFICATIONS,
        )
