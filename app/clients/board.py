"""
Reminder Board
==============

Local, optimistically-updated view of one user's reminders.

A mutation is applied to the board first, then sent to the store. When the
store call fails for any reason the board restores the previous reminder and
returns a failed :class:`MutationResult`; nothing is retried or queued. Rule
violations (snoozing a completed reminder, running out of snoozes) fail
before the store is contacted.

Usage::

    board = ReminderBoard(ServiceReminderStore(container.reminder_service, user_id))
    board.load()
    result = board.snooze(reminder_id, hours=24)
    if not result.ok:
        show(result.error)
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, Optional

from app.clients.stores import ReminderStore
from app.constants import ReminderDefaults
from app.domain import reminder_engine as engine
from app.domain.exceptions import AgroTrackError
from app.domain.reminders import MutationResult, Reminder, ReminderBuckets, ReminderEngineConfig
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


class ReminderBoard:
    def __init__(
        self,
        store: ReminderStore,
        config: Optional[ReminderEngineConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.config = config or ReminderEngineConfig()
        self._clock = clock
        self._reminders: dict[int, Reminder] = {}
        self._lock = threading.RLock()

    # --- State ---

    @property
    def reminders(self) -> list[Reminder]:
        with self._lock:
            return engine.sort_reminders(self._reminders.values())

    def get(self, reminder_id: int) -> Optional[Reminder]:
        with self._lock:
            return self._reminders.get(reminder_id)

    def replace_all(self, reminders: Iterable[Reminder]) -> None:
        with self._lock:
            self._reminders = {r.id: r for r in reminders if r.id is not None}

    def load(self) -> list[Reminder]:
        """Replace local state with the store's reminders.

        Raises:
            AgroTrackError: the store could not be read; local state is kept
        """
        reminders = self.store.fetch()
        self.replace_all(reminders)
        return self.reminders

    def buckets(self, now: Optional[datetime] = None) -> ReminderBuckets:
        return engine.bucket_reminders(self.reminders, now or self._clock())

    # --- Mutations ---

    def snooze(
        self,
        reminder_id: int,
        hours: float = ReminderDefaults.DEFAULT_SNOOZE_HOURS,
        now: Optional[datetime] = None,
    ) -> MutationResult:
        now = now or self._clock()
        current = self.get(reminder_id)
        if current is None:
            return MutationResult.failure(f"Reminder {reminder_id} not found")
        try:
            optimistic = engine.snooze_reminder(current, now, hours, self.config)
        except AgroTrackError as e:
            return MutationResult.failure(str(e), current)
        return self._apply(current, optimistic, lambda: self.store.snooze(reminder_id, hours))

    def complete(self, reminder_id: int, log_care: bool = True, now: Optional[datetime] = None) -> MutationResult:
        now = now or self._clock()
        current = self.get(reminder_id)
        if current is None:
            return MutationResult.failure(f"Reminder {reminder_id} not found")
        try:
            optimistic = engine.complete_reminder(current, now)
        except AgroTrackError as e:
            return MutationResult.failure(str(e), current)
        return self._apply(current, optimistic, lambda: self.store.complete(reminder_id, log_care))

    def _apply(self, previous: Reminder, optimistic: Reminder, persist: Callable[[], Reminder]) -> MutationResult:
        with self._lock:
            self._reminders[previous.id] = optimistic
        try:
            stored = persist()
        except AgroTrackError as e:
            self._revert(previous, optimistic)
            logger.warning("Reverted reminder %s: %s", previous.id, e)
            return MutationResult.failure(str(e), previous)
        except Exception as e:
            self._revert(previous, optimistic)
            logger.exception("Reverted reminder %s after unexpected store error", previous.id)
            return MutationResult.failure(f"Unexpected store error: {e}", previous)

        with self._lock:
            self._reminders[previous.id] = stored
        return MutationResult.success(stored)

    def _revert(self, previous: Reminder, optimistic: Reminder) -> None:
        with self._lock:
            # Only revert if nothing newer replaced the optimistic value meanwhile
            if self._reminders.get(previous.id) is optimistic:
                self._reminders[previous.id] = previous
