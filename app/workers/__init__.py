"""
Workers module for scheduled background jobs.

This module contains:
- unified_scheduler: the scheduler every periodic job runs on
- scheduled_tasks: task definitions (reminders.*)
"""

__all__ = [
    "UnifiedScheduler",
    "configure_scheduler",
    "register_all_tasks",
    "schedule_default_jobs",
]

from app.workers.scheduled_tasks import configure_scheduler, register_all_tasks, schedule_default_jobs
from app.workers.unified_scheduler import UnifiedScheduler
