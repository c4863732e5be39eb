"""Periodic reconciliation of a ReminderBoard with its store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.constants import Intervals
from app.domain.exceptions import AgroTrackError

if TYPE_CHECKING:
    from app.clients.board import ReminderBoard
    from app.workers.unified_scheduler import UnifiedScheduler

logger = logging.getLogger(__name__)


class ReminderSync:
    """
    Poll the board's store on a scheduler interval.

    ``stop()`` removes the interval job; a poll that fails leaves the board
    untouched and is retried on the next tick.
    """

    def __init__(
        self,
        board: "ReminderBoard",
        scheduler: "UnifiedScheduler",
        interval_seconds: float = Intervals.CLIENT_SYNC,
        job_id: str = "reminders_sync",
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.board = board
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self.job_id = job_id
        self.poll_count = 0
        self.failure_count = 0

    @property
    def is_running(self) -> bool:
        return self.scheduler.get_job(self.job_id) is not None

    def start(self) -> None:
        if self.is_running:
            return
        self.scheduler.schedule_interval(
            "sync.reminders",
            self.interval_seconds,
            func=self.poll,
            job_id=self.job_id,
            namespace="sync",
        )

    def stop(self) -> None:
        self.scheduler.remove_job(self.job_id)

    def poll(self) -> bool:
        """Reload the board once. Returns False when the store could not be read."""
        self.poll_count += 1
        try:
            self.board.load()
        except AgroTrackError as e:
            self.failure_count += 1
            logger.warning("Reminder sync failed: %s", e)
            return False
        return True
