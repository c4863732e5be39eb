"""
Socket.IO Event Handlers
========================

Namespaces:
- /reminders - Reminder changes and refreshed counts
- /notifications - In-app notifications

Usage:
    Import this module after socketio.init_app() to register all handlers.

    from app.socketio import register_handlers
    register_handlers()
"""

import logging

logger = logging.getLogger(__name__)


def register_handlers():
    """
    Register all Socket.IO event handlers.

    This function must be called AFTER socketio.init_app() to ensure
    the Flask app context is available for all handlers.
    """
    # Import handlers to trigger @socketio.on() decorator registration
    from . import reminder_handlers  # noqa: F401

    logger.info("✅ Socket.IO handlers registered (reminders, notifications)")
