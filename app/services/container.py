from __future__ import annotations

import logging
from dataclasses import dataclass

from flask_socketio import SocketIO

from app.config import AppConfig
from app.services.ai.llm_advisor import PlantCareAdvisor
from app.services.application.advice_service import PlantAdviceService
from app.services.application.auth_service import UserAuthManager
from app.services.application.care_log_service import CareLogService
from app.services.application.notifications_service import NotificationsService
from app.services.application.plant_service import PlantService
from app.services.application.reminder_service import ReminderService
from app.services.container_builder import ContainerBuilder
from app.utils.emitters import EmitterService
from app.utils.event_bus import EventBus
from app.workers.unified_scheduler import UnifiedScheduler
from infrastructure.database.repositories.ai import RecommendationRepository
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.database.repositories.care_logs import CareLogRepository
from infrastructure.database.repositories.notifications import NotificationRepository
from infrastructure.database.repositories.plants import PlantRepository
from infrastructure.database.repositories.reminders import ReminderRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    auth_repo: AuthRepository
    plant_repo: PlantRepository
    care_log_repo: CareLogRepository
    reminder_repo: ReminderRepository
    notification_repo: NotificationRepository
    recommendation_repo: RecommendationRepository
    audit_logger: AuditLogger
    # Shared utilities
    event_bus: EventBus
    emitter_service: EmitterService
    scheduler: UnifiedScheduler
    # AI
    llm_advisor: PlantCareAdvisor
    # Application services
    auth_manager: UserAuthManager
    plant_service: PlantService
    care_log_service: CareLogService
    reminder_service: ReminderService
    notifications_service: NotificationsService
    advice_service: PlantAdviceService

    @classmethod
    def build(cls, config: AppConfig, socketio: SocketIO | None = None) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        The scheduler is configured with the default jobs and started only
        when ``config.enable_scheduler`` is set.
        """
        logger.info("Building ServiceContainer...")
        container = cls(**ContainerBuilder(config, socketio).build())

        if config.enable_scheduler:
            # Tasks need real services, so the scheduler is configured after the container exists.
            from app.workers.scheduled_tasks import configure_scheduler

            try:
                configure_scheduler(container.scheduler, container)
                logger.info("✓ UnifiedScheduler initialized and started")
            except Exception as e:
                raise RuntimeError("Failed to initialize UnifiedScheduler") from e

        logger.info("ServiceContainer built successfully.")
        return container

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        self.reminder_service.unsubscribe_from_events()

        try:
            self.scheduler.shutdown()
            logger.info("✓ UnifiedScheduler stopped")
        except Exception as e:
            logger.warning("Failed to stop UnifiedScheduler: %s", e)

        self.database.close()
        self.audit_logger.close()
        logger.info("ServiceContainer shutdown complete.")
