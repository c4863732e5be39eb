"""
Reminder Service
================
Wires the pure reminder engine to the repositories.

Reminders are derived from plants and care logs on every refresh, then
reconciled with the stored rows so lifecycle state (snoozes, completions)
survives regeneration:

- a generated occurrence that matches a stored row keeps the row's id and
  state; only priority and wording are refreshed
- a new occurrence is inserted
- active rows whose occurrence is no longer generated (care was logged, the
  plant was disabled) are pruned
- completed rows stay as history

Occurrences are matched on ``(plant_id, care_type, original_due_at)``.
Reminders for plants without any care history are due "now" and so have no
stable due date; those are matched on ``(plant_id, care_type)`` instead.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from app.constants import ReminderDefaults
from app.domain import reminder_engine as engine
from app.domain.exceptions import AgroTrackError, NotFoundError, RepositoryError
from app.domain.reminders import Reminder, ReminderBuckets, ReminderEngineConfig, ReminderPreferences
from app.enums.common import ReminderPriority, ReminderStatus
from app.enums.events import PlantEvent, ReminderEvent
from app.schemas.events import ReminderChangedPayload
from app.utils.time import utc_now

if TYPE_CHECKING:
    from app.services.application.care_log_service import CareLogService
    from app.utils.emitters import EmitterService
    from app.utils.event_bus import EventBus
    from infrastructure.database.repositories.care_logs import CareLogRepository
    from infrastructure.database.repositories.plants import PlantRepository
    from infrastructure.database.repositories.reminders import ReminderRepository
    from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

PreferencesLoader = Callable[[int], ReminderPreferences]
PreferencesSaver = Callable[[ReminderPreferences], bool]


def _match_key(reminder: Reminder) -> tuple:
    if reminder.no_history:
        return (reminder.plant_id, reminder.care_type.value, None)
    return reminder.occurrence_key


class ReminderService:
    """
    Application service for care reminders.

    Preferences are loaded and saved through injected callables; by default
    they come from the reminder repository.
    """

    def __init__(
        self,
        plant_repo: "PlantRepository",
        care_log_repo: "CareLogRepository",
        reminder_repo: "ReminderRepository",
        *,
        engine_config: Optional[ReminderEngineConfig] = None,
        load_preferences: Optional[PreferencesLoader] = None,
        save_preferences: Optional[PreferencesSaver] = None,
        care_log_service: Optional["CareLogService"] = None,
        emitter: Optional["EmitterService"] = None,
        event_bus: Optional["EventBus"] = None,
        audit_logger: Optional["AuditLogger"] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.plant_repo = plant_repo
        self.care_log_repo = care_log_repo
        self.reminder_repo = reminder_repo
        self.config = engine_config or ReminderEngineConfig()
        self._load_preferences = load_preferences or reminder_repo.load_preferences
        self._save_preferences = save_preferences or reminder_repo.save_preferences
        self.care_log_service = care_log_service
        self.emitter = emitter
        self.event_bus = event_bus
        self.audit_logger = audit_logger
        self._clock = clock
        self._unsubscribers: List[Callable[[], None]] = []
        self._refresh_locks: Dict[int, threading.RLock] = {}
        self._refresh_locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def subscribe_to_events(self) -> None:
        """Regenerate a user's reminders whenever their plants or care history change."""
        if self.event_bus is None or self._unsubscribers:
            return
        for event in (PlantEvent.CARE_LOGGED, PlantEvent.PLANT_CREATED, PlantEvent.PLANT_UPDATED):
            self._unsubscribers.append(self.event_bus.subscribe(event, self._on_plant_changed))

    def unsubscribe_from_events(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_plant_changed(self, payload: Dict[str, Any]) -> None:
        user_id = payload.get("user_id") if isinstance(payload, dict) else None
        if user_id is None:
            return
        self.refresh(int(user_id))

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or self._clock()

    def _refresh_lock(self, user_id: int) -> threading.RLock:
        with self._refresh_locks_guard:
            return self._refresh_locks.setdefault(user_id, threading.RLock())

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_preferences(self, user_id: int) -> ReminderPreferences:
        return self._load_preferences(user_id)

    def update_preferences(self, user_id: int, updates: Dict[str, Any]) -> ReminderPreferences:
        """Merge ``updates`` into the stored preferences and save them."""
        merged = self.get_preferences(user_id).to_dict()
        for key, value in updates.items():
            if key == "plant_settings" and value is not None:
                plant_settings = dict(merged.get("plant_settings") or {})
                plant_settings.update({str(pid): settings for pid, settings in value.items()})
                merged["plant_settings"] = plant_settings
            elif value is not None:
                merged[key] = value
        merged["user_id"] = user_id
        preferences = ReminderPreferences.from_dict(merged)
        if not self._save_preferences(preferences):
            raise RepositoryError(f"Failed to save reminder preferences for user {user_id}")
        logger.info("Updated reminder preferences for user %s", user_id)
        return preferences

    # ------------------------------------------------------------------
    # Generation and reconciliation
    # ------------------------------------------------------------------

    def generate(self, user_id: int, now: Optional[datetime] = None) -> List[Reminder]:
        """Engine output for the user's current plants, without touching stored state."""
        now = self._now(now)
        plants = self.plant_repo.list_for_user(user_id)
        care_logs = self.care_log_repo.list_for_user(user_id)
        preferences = self.get_preferences(user_id)
        return engine.generate_reminders(plants, care_logs, preferences, now, self.config)

    def refresh(self, user_id: int, now: Optional[datetime] = None) -> List[Reminder]:
        """
        Regenerate and persist the user's reminders.

        Returns the active (pending and snoozed) reminders, most urgent first.
        """
        now = self._now(now)
        with self._refresh_lock(user_id):
            active = self._refresh_locked(user_id, now)
        if self.event_bus is not None:
            counts = Counter(r.status.value for r in active)
            self.event_bus.publish(ReminderEvent.REFRESHED, {"user_id": user_id, "counts": dict(counts)})
        return active

    def _refresh_locked(self, user_id: int, now: datetime) -> List[Reminder]:
        self.wake_expired(user_id, now)

        stored = self.reminder_repo.list_for_user(user_id)
        by_key: Dict[tuple, Reminder] = {}
        for reminder in stored:
            key = _match_key(reminder)
            # Prefer an active row over history when both share a key
            if key not in by_key or by_key[key].status == ReminderStatus.COMPLETED:
                by_key[key] = reminder

        kept: List[Reminder] = []
        seen_ids: set[int] = set()
        for generated in self.generate(user_id, now):
            existing = by_key.get(_match_key(generated))
            if existing is None:
                generated.user_id = user_id
                generated.created_at = now
                generated.updated_at = now
                reminder_id = self.reminder_repo.create(generated)
                if reminder_id:
                    generated.id = reminder_id
                    kept.append(generated)
                    seen_ids.add(reminder_id)
                    continue
                # Stored by a concurrent refresh after our read
                existing = self.reminder_repo.get_occurrence(generated)
                if existing is None:
                    raise RepositoryError(f"Failed to store reminder for plant {generated.plant_id}")

            if existing.status == ReminderStatus.COMPLETED:
                continue
            refreshed = engine.refresh_priority(existing, now, self.config)
            refreshed.plant_name = generated.plant_name
            refreshed.title = generated.title
            refreshed.frequency_days = generated.frequency_days
            if refreshed != existing:
                if not self.reminder_repo.save_state(refreshed):
                    raise RepositoryError(f"Failed to update reminder {existing.id}")
            kept.append(refreshed)
            seen_ids.add(existing.id)

        pruned = self.reminder_repo.prune_active(user_id, seen_ids)
        if pruned:
            logger.debug("Pruned %s superseded reminders for user %s", pruned, user_id)

        return engine.sort_reminders(kept)

    def refresh_all(self, user_ids: List[int], now: Optional[datetime] = None) -> Dict[int, List[Reminder]]:
        """Refresh every listed user; a failure for one user does not stop the rest."""
        now = self._now(now)
        results: Dict[int, List[Reminder]] = {}
        for user_id in user_ids:
            try:
                results[user_id] = self.refresh(user_id, now)
            except RepositoryError as exc:
                logger.error("Reminder refresh failed for user %s: %s", user_id, exc)
        return results

    def wake_expired(self, user_id: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """Return snoozed reminders whose snooze elapsed to pending."""
        now = self._now(now)
        if user_id is None:
            return 0
        woken = 0
        for reminder in self.reminder_repo.list_for_user(user_id, status=ReminderStatus.SNOOZED.value):
            updated = engine.wake_reminder(reminder, now, self.config)
            if updated.status != ReminderStatus.PENDING:
                continue
            if not self.reminder_repo.save_state(updated):
                raise RepositoryError(f"Failed to wake reminder {reminder.id}")
            woken += 1
            self._notify_change(updated, "woken")
        return woken

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_reminders(
        self,
        user_id: int,
        *,
        status: Optional[str] = None,
        plant_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Reminder]:
        if status == ReminderStatus.COMPLETED.value:
            reminders = self.reminder_repo.list_for_user(user_id, status=status, plant_id=plant_id)
            return sorted(reminders, key=lambda r: r.completed_at or r.due_at, reverse=True)
        reminders = self.refresh(user_id, now)
        if status:
            reminders = [r for r in reminders if r.status.value == status]
        if plant_id is not None:
            reminders = [r for r in reminders if r.plant_id == plant_id]
        return reminders

    def get_buckets(self, user_id: int, now: Optional[datetime] = None) -> ReminderBuckets:
        now = self._now(now)
        return engine.bucket_reminders(self.refresh(user_id, now), now)

    def upcoming(self, user_id: int, hours: float = 24, now: Optional[datetime] = None) -> List[Reminder]:
        """Active reminders due between now and ``hours`` from now, soonest first."""
        now = self._now(now)
        end = now + timedelta(hours=hours)
        reminders = [r for r in self.refresh(user_id, now) if now <= r.due_at <= end]
        return sorted(reminders, key=lambda r: r.due_at)

    def get_stats(self, user_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = self._now(now)
        active = self.refresh(user_id, now)
        completed = self.reminder_repo.list_for_user(user_id, status=ReminderStatus.COMPLETED.value)
        buckets = engine.bucket_reminders(active, now)

        by_status = {status.value: 0 for status in ReminderStatus}
        by_status.update(Counter(r.status.value for r in active))
        by_status[ReminderStatus.COMPLETED.value] = len(completed)

        by_priority = {priority.value: 0 for priority in ReminderPriority}
        by_priority.update(Counter(r.priority.value for r in active))

        return {
            "total_active": len(active),
            "by_status": by_status,
            "by_priority": by_priority,
            "buckets": buckets.to_dict()["counts"],
        }

    def get_owned(self, user_id: int, reminder_id: int) -> Reminder:
        reminder = self.reminder_repo.get(reminder_id)
        if reminder is None or reminder.user_id != user_id:
            raise NotFoundError(f"Reminder {reminder_id} not found")
        return reminder

    def due_between(self, start: datetime, end: datetime) -> List[Reminder]:
        """Active reminders of every user due in ``[start, end]``."""
        return self.reminder_repo.list_due_between(start, end)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def persist(self, reminder: Reminder, action: str) -> Reminder:
        """Store a lifecycle change and tell connected clients about it.

        Raises:
            RepositoryError: the store rejected the write
        """
        if not self.reminder_repo.save_state(reminder):
            raise RepositoryError(f"Failed to {action} reminder {reminder.id}")
        self._notify_change(reminder, action)
        return reminder

    def snooze(
        self,
        user_id: int,
        reminder_id: int,
        hours: float = ReminderDefaults.DEFAULT_SNOOZE_HOURS,
        now: Optional[datetime] = None,
    ) -> Reminder:
        now = self._now(now)
        reminder = self.get_owned(user_id, reminder_id)
        snoozed = engine.snooze_reminder(reminder, now, hours, self.config)
        self.persist(snoozed, "snoozed")
        logger.info("Snoozed reminder %s for %sh (count=%s)", reminder_id, hours, snoozed.snooze_count)
        return snoozed

    def complete(
        self,
        user_id: int,
        reminder_id: int,
        *,
        log_care: bool = True,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Reminder:
        """Complete the occurrence; optionally record the care it asked for."""
        completed, _care_logged = self.complete_and_log(user_id, reminder_id, log_care=log_care, notes=notes, now=now)
        return completed

    def complete_and_log(
        self,
        user_id: int,
        reminder_id: int,
        *,
        log_care: bool = True,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Reminder, bool]:
        """
        Complete the occurrence, then record the care it asked for.

        The completion stands even when the care log cannot be written; the
        second element reports whether it was.
        """
        now = self._now(now)
        reminder = self.get_owned(user_id, reminder_id)
        completed = engine.complete_reminder(reminder, now)
        self.persist(completed, "completed")
        if self.audit_logger:
            self.audit_logger.log_event(
                str(user_id),
                "complete",
                f"reminder:{reminder_id}",
                "success",
                plant_id=reminder.plant_id,
                care_type=reminder.care_type.value,
            )
        if not log_care or self.care_log_service is None:
            return completed, False
        try:
            self.care_log_service.log_care(
                user_id,
                reminder.plant_id,
                reminder.care_type,
                performed_at=now,
                notes=notes,
                care_data={"reminder_id": reminder_id},
            )
        except AgroTrackError as exc:
            logger.warning("Reminder %s completed but its care log was not recorded: %s", reminder_id, exc)
            return completed, False
        return completed, True

    def dismiss(self, user_id: int, reminder_id: int, now: Optional[datetime] = None) -> None:
        """Skip an active occurrence, or drop a completed one from history."""
        now = self._now(now)
        reminder = self.get_owned(user_id, reminder_id)
        if reminder.status == ReminderStatus.COMPLETED:
            if not self.reminder_repo.delete(reminder_id):
                raise RepositoryError(f"Failed to delete reminder {reminder_id}")
            return
        dismissed = engine.complete_reminder(reminder, now)
        self.persist(dismissed, "dismissed")

    def _notify_change(self, reminder: Reminder, action: str) -> None:
        if reminder.user_id is None:
            return
        if self.emitter is not None:
            self.emitter.emit_reminder_updated(reminder.user_id, reminder.to_dict(), action)
        if self.event_bus is not None:
            event = {
                "snoozed": ReminderEvent.SNOOZED,
                "completed": ReminderEvent.COMPLETED,
                "dismissed": ReminderEvent.DISMISSED,
            }.get(action)
            if event is not None:
                self.event_bus.publish(
                    event,
                    ReminderChangedPayload(
                        user_id=reminder.user_id,
                        reminder_id=reminder.id,
                        plant_id=reminder.plant_id,
                        care_type=reminder.care_type.value,
                        status=reminder.status.value,
                        action=action,
                    ),
                )
