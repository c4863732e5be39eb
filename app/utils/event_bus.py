"""
Lightweight EventBus used between services.

Key invariants (enforced by call sites + tests):
  - Event topics come from enums in app.enums.events (EventType).
  - Payloads are dataclasses, Pydantic models or dicts.
  - Subscribers always receive a plain dict payload.

Delivery is asynchronous through a bounded queue drained by a small worker
pool. ``synchronous=True`` runs callbacks inline on the publishing thread,
which the test suite uses to observe side effects deterministically.
"""

import logging
import threading
import time
from collections import defaultdict
from dataclasses import asdict, is_dataclass
from enum import Enum
from queue import Full, Queue
from typing import Any, Callable, Dict, Hashable, Iterable, Optional

from pydantic import BaseModel

from app.enums.events import EventType

logger = logging.getLogger(__name__)

# Drop warning configuration
_DROP_WARNING_THRESHOLD = 10  # Log summary every N drops
_DROP_WARNING_INTERVAL_SECONDS = 60  # Minimum seconds between drop summaries


class EventBus:
    """Handles event-driven communication across modules."""

    _default: Optional["EventBus"] = None
    _default_lock = threading.Lock()

    def __init__(self, queue_size: int = 1024, worker_count: int = 2, *, synchronous: bool = False) -> None:
        self.subscribers: Dict[Hashable, list[Callable[[Any], None]]] = defaultdict(list)
        self.lock = threading.Lock()
        self.synchronous = synchronous
        self._queue_size = queue_size
        self._queue: Queue = Queue(maxsize=queue_size)
        self._worker_pool_size = max(1, worker_count)
        self._workers: list[threading.Thread] = []
        self._workers_started = False
        self._dropped_events = 0
        self._drops_by_event: Dict[str, int] = defaultdict(int)
        self._drops_since_last_warning = 0
        self._last_drop_warning_time = 0.0

    @classmethod
    def default(cls) -> "EventBus":
        """Process-wide bus for callers that are not wired through the container."""
        if cls._default is None:
            with cls._default_lock:
                if cls._default is None:
                    cls._default = cls()
        return cls._default

    def _start_workers(self) -> None:
        """Spin up a small worker pool to avoid unbounded thread creation."""
        with self.lock:
            if self._workers_started:
                return
            for _ in range(self._worker_pool_size):
                worker = threading.Thread(target=self._worker_loop, daemon=True)
                worker.start()
                self._workers.append(worker)
            self._workers_started = True
        logger.info("EventBus workers started (pool=%s queue=%s)", self._worker_pool_size, self._queue_size)

    def subscribe(self, event_name: EventType | str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribes a callback function to an event.

        Returns a zero-argument function that removes the subscription.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        with self.lock:
            self.subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self.lock:
                try:
                    self.subscribers.get(name, []).remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def _worker_loop(self) -> None:
        while True:
            event_name, callback, payload = self._queue.get()
            try:
                self._dispatch(event_name, callback, payload)
            finally:
                self._queue.task_done()

    @staticmethod
    def _dispatch(event_name: str, callback: Callable[[Any], None], payload: Any) -> None:
        try:
            callback(payload)
        except Exception as exc:
            logger.error("Error in callback for event %s: %s", event_name, exc, exc_info=True)

    def publish(self, event_name: EventType | str, data: Any | None = None) -> None:
        """
        Publishes an event to every subscribed callback.

        Args:
            event_name: The enum topic (preferred) or raw string.
            data: Payload object (Pydantic model, dataclass, or dict/primitive).
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name

        if isinstance(data, BaseModel):
            payload: Any = data.model_dump()
        elif is_dataclass(data) and not isinstance(data, type):
            payload = asdict(data)
        else:
            payload = data

        with self.lock:
            callbacks: Iterable[Callable[[Any], None]] = list(self.subscribers.get(name, []))

        if self.synchronous:
            for callback in callbacks:
                self._dispatch(name, callback, payload)
            return

        if not self._workers_started:
            self._start_workers()
        for callback in callbacks:
            try:
                self._queue.put_nowait((name, callback, payload))
            except Full:
                self._record_drop(name)
                break

    def _record_drop(self, event_name: str) -> None:
        """Record a dropped event and log periodic warnings."""
        self._dropped_events += 1
        self._drops_by_event[event_name] += 1
        self._drops_since_last_warning += 1

        now = time.time()
        should_warn = (
            self._drops_since_last_warning >= _DROP_WARNING_THRESHOLD
            and (now - self._last_drop_warning_time) >= _DROP_WARNING_INTERVAL_SECONDS
        )
        if should_warn:
            top_drops = sorted(self._drops_by_event.items(), key=lambda x: x[1], reverse=True)[:5]
            logger.warning(
                "EventBus dropping events! queue_size=%d, total_dropped=%d, recent_drops=%d, top=[%s]",
                self._queue_size,
                self._dropped_events,
                self._drops_since_last_warning,
                ", ".join(f"{k}:{v}" for k, v in top_drops),
            )
            self._drops_since_last_warning = 0
            self._last_drop_warning_time = now

    def get_metrics(self) -> Dict[str, Any]:
        """Return lightweight metrics for health endpoints/logging."""
        return {
            "queue_depth": self._queue.qsize(),
            "queue_size": self._queue_size,
            "dropped_events": self._dropped_events,
            "subscribers": sum(len(values) for values in self.subscribers.values()),
            "synchronous": self.synchronous,
        }
