"""
Reminder clients: a local, optimistically-updated view of a user's reminders.

- ``ReminderBoard`` holds the reminders, applies snooze/complete locally and
  reverts when the backing store rejects the change.
- ``ReminderSync`` polls the store on a scheduler interval to reconcile drift.
- Stores: ``RemoteReminderStore`` talks to the REST API over HTTP,
  ``ServiceReminderStore`` calls the in-process ``ReminderService``.
"""

from app.clients.board import ReminderBoard
from app.clients.stores import ReminderStore, RemoteReminderStore, ServiceReminderStore
from app.clients.sync import ReminderSync

__all__ = [
    "ReminderBoard",
    "ReminderStore",
    "ReminderSync",
    "RemoteReminderStore",
    "ServiceReminderStore",
]
