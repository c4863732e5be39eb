"""
Centralized scheduling service for AgroTrack background jobs.

Every periodic task in the application (reminder refresh, upcoming-care
notices, client-side reminder polling) goes through this one scheduler.

Design Principles:
- Single scheduler loop thread
- Bounded worker pool for job execution (prevents unbounded thread creation)
- Namespace-based job organization ("reminders", "notifications", "sync")
- Interval schedules with catch-up skipping

Jobs reference either a registered task name or carry their own callable,
so callers that only need a repeating function (see ``app.clients.sync``)
do not have to register a task first.
"""

from __future__ import annotations

import heapq
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from functools import wraps
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ScheduleType(Enum):
    """Types of schedules."""

    INTERVAL = "interval"  # Every N seconds


@dataclass
class JobResult:
    """Result of a job execution."""

    job_id: str
    success: bool
    started_at: datetime
    completed_at: datetime
    result: Any = None
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "error": self.error,
        }


@dataclass
class ScheduledJob:
    """A scheduled job configuration."""

    job_id: str
    task_name: str
    namespace: str  # e.g., "reminders", "notifications", "sync"
    schedule_type: ScheduleType
    enabled: bool = True

    # Task execution
    func: Callable | None = None
    args: tuple = field(default_factory=tuple)
    kwargs: dict[str, Any] = field(default_factory=dict)

    # Schedule configuration
    interval_seconds: float | None = None  # For INTERVAL type

    # Execution tracking
    next_run: datetime | None = None
    last_run: datetime | None = None
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (for API responses)."""
        return {
            "job_id": self.job_id,
            "task_name": self.task_name,
            "namespace": self.namespace,
            "schedule_type": self.schedule_type.value,
            "enabled": self.enabled,
            "interval_seconds": self.interval_seconds,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
        }


def _namespace_for(task_name: str) -> str:
    return task_name.split(".")[0] if "." in task_name else "default"


class UnifiedScheduler:
    """
    Scheduler for background jobs.

    - Bounded ThreadPoolExecutor for execution.
    - Heap entries are immutable ``(run_at_ts, seq, job_id)`` tuples; stale
      entries (job removed, disabled or rescheduled) are skipped on pop
      rather than deleted in place.
    - INTERVAL schedules advance from the scheduled time, not from "now"
      (fixed-rate scheduling).

    The container owns one instance; tests create their own.
    """

    def __init__(
        self,
        check_interval_seconds: float = 1.0,
        max_history: int = 500,
        max_workers: int = 4,
    ):
        """
        Args:
            check_interval_seconds: How often to check for due jobs (default 1s)
            max_history: Maximum job execution history to keep
            max_workers: Maximum number of concurrent job executions
        """
        self._check_interval = float(check_interval_seconds)
        self._max_history = int(max_history)
        self._max_workers = max(1, int(max_workers))

        self._jobs: dict[str, ScheduledJob] = {}
        self._tasks: dict[str, Callable] = {}  # task_name -> function

        # Entries: (run_at_ts, seq, job_id)
        self._job_heap: list[tuple[float, int, str]] = []
        self._heap_seq = 0

        self._history: list[JobResult] = []

        self._running = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._job_lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = None

    # ==================== Task Registration ====================

    def task(self, name: str) -> Callable:
        """
        Decorator to register a task.

        Usage:
            @scheduler.task("reminders.refresh")
            def refresh_reminders():
                pass
        """

        def decorator(func: Callable) -> Callable:
            self.register_task(name, func)

            @wraps(func)
            def wrapper(*args, **kwargs):
                return func(*args, **kwargs)

            return wrapper

        return decorator

    def register_task(self, name: str, func: Callable) -> None:
        """Register a task function programmatically."""
        self._tasks[name] = func
        logger.debug("Registered task: %s", name)

    def has_task(self, name: str) -> bool:
        return name in self._tasks

    def clear_jobs(self) -> None:
        """Remove all scheduled jobs and pending heap entries."""
        with self._job_lock:
            self._jobs.clear()
            self._job_heap.clear()
            self._heap_seq = 0

    def _ensure_executor(self) -> None:
        """Ensure an executor is available (supports stop() -> start() restarts)."""
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="AgroTrackJob",
        )

    # ==================== Heap Helpers ====================

    def _push_heap(self, job: ScheduledJob) -> None:
        if not job.enabled or not job.next_run:
            return
        self._heap_seq += 1
        heapq.heappush(self._job_heap, (job.next_run.timestamp(), self._heap_seq, job.job_id))

    # ==================== Job Scheduling ====================

    def schedule_interval(
        self,
        task_name: str,
        interval_seconds: float,
        *,
        func: Callable | None = None,
        job_id: str | None = None,
        namespace: str | None = None,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        enabled: bool = True,
        start_immediately: bool = False,
    ) -> ScheduledJob:
        """Schedule a task to run at regular intervals."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if job_id is None:
            job_id = task_name

        now = datetime.now()
        next_run = now if start_immediately else (now + timedelta(seconds=interval_seconds))

        job = ScheduledJob(
            job_id=job_id,
            task_name=task_name,
            namespace=namespace or _namespace_for(task_name),
            schedule_type=ScheduleType.INTERVAL,
            enabled=enabled,
            func=func,
            args=args,
            kwargs=kwargs or {},
            interval_seconds=interval_seconds,
            next_run=next_run,
        )

        self._add_job(job)
        logger.info("Scheduled interval job: %s (every %ss)", job_id, interval_seconds)
        return job

    def run_now(
        self,
        task_name: str,
        *,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
    ) -> JobResult | None:
        """Run a registered task immediately on the calling thread."""
        func = self._tasks.get(task_name)
        if func is None:
            logger.error("Task not found: %s", task_name)
            return None

        job_id = f"{task_name}_immediate"
        started_at = datetime.now()
        try:
            result = func(*args, **(kwargs or {}))
        except Exception as e:
            logger.error("Immediate task %s failed: %s", task_name, e, exc_info=True)
            job_result = JobResult(job_id, False, started_at, datetime.now(), error=str(e))
        else:
            job_result = JobResult(job_id, True, started_at, datetime.now(), result=result)
        self._record_history(job_result)
        return job_result

    # ==================== Job Management ====================

    def _add_job(self, job: ScheduledJob) -> None:
        with self._job_lock:
            if job.job_id in self._jobs:
                logger.info("Replacing existing job: %s", job.job_id)
            self._jobs[job.job_id] = job
            self._push_heap(job)

    def remove_job(self, job_id: str) -> bool:
        """Remove a job from the scheduler."""
        with self._job_lock:
            if job_id in self._jobs:
                del self._jobs[job_id]
                # Heap entries for this job are skipped as stale.
                logger.info("Removed job: %s", job_id)
                return True
        return False

    def enable_job(self, job_id: str, enabled: bool = True) -> bool:
        """Enable or disable a job."""
        with self._job_lock:
            job = self._jobs.get(job_id)
            if not job:
                return False

            job.enabled = bool(enabled)
            if job.enabled:
                if job.next_run is None:
                    self._schedule_next_run(job, reference_time=datetime.now())
                self._push_heap(job)

            logger.info("Job %s %s", job_id, "enabled" if job.enabled else "disabled")
            return True

    def pause_job(self, job_id: str) -> bool:
        return self.enable_job(job_id, enabled=False)

    def resume_job(self, job_id: str) -> bool:
        return self.enable_job(job_id, enabled=True)

    def get_job(self, job_id: str) -> ScheduledJob | None:
        return self._jobs.get(job_id)

    def get_jobs(self, namespace: str | None = None, enabled_only: bool = False) -> list[ScheduledJob]:
        """Get all jobs, optionally filtered."""
        with self._job_lock:
            jobs = list(self._jobs.values())
        if namespace:
            jobs = [j for j in jobs if j.namespace == namespace]
        if enabled_only:
            jobs = [j for j in jobs if j.enabled]
        return jobs

    # ==================== Scheduler Control ====================

    def start(self) -> None:
        """Start the scheduler background thread."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._ensure_executor()
        self._stop_event.clear()
        self._running = True
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="UnifiedScheduler")
        self._thread.start()
        logger.info("UnifiedScheduler started (%d jobs)", len(self._jobs))

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """
        Stop the scheduler.

        Args:
            wait: Wait for scheduler thread and running jobs to finish
            timeout: Maximum wait time for the loop thread in seconds
        """
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        if wait and self._thread:
            self._thread.join(timeout=timeout)
        self._thread = None

        if self._executor:
            self._executor.shutdown(wait=wait)
            self._executor = None

        logger.info("UnifiedScheduler stopped")

    def shutdown(self, wait: bool = True, timeout: float = 5.0) -> None:
        """Alias for stop(); matches other services' shutdown() convention."""
        self.stop(wait=wait, timeout=timeout)

    def is_running(self) -> bool:
        return self._running

    def _run_loop(self) -> None:
        logger.debug("Scheduler loop started")
        while self._running:
            try:
                self._process_due_jobs()
            except Exception as e:
                logger.error("Error in scheduler loop: %s", e, exc_info=True)
            self._stop_event.wait(self._check_interval)
        logger.debug("Scheduler loop ended")

    # ==================== Core Scheduling Logic ====================

    def _process_due_jobs(self, now: datetime | None = None) -> int:
        """Submit every due job to the executor. Returns the number submitted."""
        now_ts = (now or datetime.now()).timestamp()
        submitted = 0

        with self._job_lock:
            while self._job_heap:
                run_at_ts, _seq, job_id = self._job_heap[0]
                if run_at_ts > now_ts:
                    break
                heapq.heappop(self._job_heap)

                job = self._jobs.get(job_id)
                if not job or not job.enabled or not job.next_run:
                    continue
                if abs(job.next_run.timestamp() - run_at_ts) > 1e-6:
                    continue

                scheduled_for = job.next_run
                # Advance before submitting so a long-running job cannot miss its next slot
                self._schedule_next_run(job, reference_time=scheduled_for, scheduled_time=scheduled_for)
                self._push_heap(job)

                if not self._executor:
                    logger.warning("Executor unavailable; skipping job %s", job_id)
                    continue
                self._executor.submit(self._execute_job, job_id, scheduled_for)
                submitted += 1
        return submitted

    def _execute_job(self, job_id: str, scheduled_for: datetime) -> JobResult | None:
        with self._job_lock:
            job = self._jobs.get(job_id)

        # Job may have been removed between scheduling and execution
        if not job:
            return None

        started_at = datetime.now()
        try:
            func = job.func or self._tasks.get(job.task_name)
            if func is None:
                raise ValueError(f"Task function not found: {job.task_name}")
            result = func(*job.args, **job.kwargs)
        except Exception as e:
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.failure_count += 1
                job.last_error = str(e)
            job_result = JobResult(job.job_id, False, started_at, datetime.now(), error=str(e))
            logger.error("Job %s failed: %s", job.job_id, e, exc_info=True)
        else:
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.success_count += 1
                job.last_error = None
            job_result = JobResult(job.job_id, True, started_at, datetime.now(), result=result)
            logger.debug(
                "Job %s completed in %.2fs (scheduled_for=%s)",
                job.job_id,
                job_result.duration_seconds,
                scheduled_for.isoformat(),
            )
        self._record_history(job_result)
        return job_result

    def _schedule_next_run(
        self,
        job: ScheduledJob,
        *,
        reference_time: datetime,
        scheduled_time: datetime | None = None,
    ) -> None:
        interval = float(job.interval_seconds or 60)
        next_run = (scheduled_time or reference_time) + timedelta(seconds=interval)

        # Far behind (process suspended): skip to the first future slot instead of piling up runs
        now = datetime.now()
        if next_run <= now:
            skips = int((now - next_run).total_seconds() // interval) + 1
            next_run = next_run + timedelta(seconds=skips * interval)

        job.next_run = next_run

    def _record_history(self, result: JobResult) -> None:
        with self._job_lock:
            self._history.append(result)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

    # ==================== Status & History ====================

    def get_status(self) -> dict[str, Any]:
        """Get scheduler status."""
        with self._job_lock:
            enabled_jobs = [j for j in self._jobs.values() if j.enabled]
            return {
                "running": self._running,
                "total_jobs": len(self._jobs),
                "enabled_jobs": len(enabled_jobs),
                "namespaces": sorted({j.namespace for j in self._jobs.values()}),
                "pending_jobs": sum(1 for j in enabled_jobs if j.next_run is not None),
                "history_size": len(self._history),
                "recent_failures": sum(1 for r in self._history[-20:] if not r.success),
                "max_workers": self._max_workers,
            }

    def get_history(self, job_id: str | None = None, limit: int = 100) -> list[JobResult]:
        """Get job execution history, newest first."""
        with self._job_lock:
            results = list(self._history)
        if job_id:
            results = [r for r in results if r.job_id == job_id]
        return sorted(results, key=lambda r: r.started_at, reverse=True)[: int(limit)]
