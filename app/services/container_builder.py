"""
Container Builder
=================

Extracts service container construction logic from ServiceContainer.build().

Each build_*() method constructs one layer:
- infrastructure: database handler, repositories, audit log
- shared utilities: event bus, Socket.IO emitter, scheduler
- AI: LLM backend and the plant-care advisor
- application: auth, plants, care logs, reminders, notifications, advice

ServiceContainer.build() delegates to ContainerBuilder.build().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from flask_socketio import SocketIO

from app.config import AppConfig, validate_ai_config
from app.domain.reminders import ReminderEngineConfig
from app.services.ai.llm_advisor import PlantCareAdvisor
from app.services.ai.llm_backends import create_backend
from app.services.application.advice_service import PlantAdviceService
from app.services.application.auth_service import UserAuthManager
from app.services.application.care_log_service import CareLogService
from app.services.application.notifications_service import NotificationsService
from app.services.application.plant_service import PlantService
from app.services.application.reminder_service import ReminderService
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
class InfrastructureComponents:
    """Infrastructure layer components (database, repos, logging)."""

    database: SQLiteDatabaseHandler
    auth_repo: AuthRepository
    plant_repo: PlantRepository
    care_log_repo: CareLogRepository
    reminder_repo: ReminderRepository
    notification_repo: NotificationRepository
    recommendation_repo: RecommendationRepository
    audit_logger: AuditLogger


@dataclass
class SharedUtilities:
    """Shared utility services (event bus, emitter, scheduler)."""

    event_bus: EventBus
    emitter_service: EmitterService
    scheduler: UnifiedScheduler


@dataclass
class AIComponents:
    """LLM-backed advice. The advisor exists even when no backend is configured."""

    llm_advisor: PlantCareAdvisor


@dataclass
class ApplicationComponents:
    """Application-level services."""

    auth_manager: UserAuthManager
    plant_service: PlantService
    care_log_service: CareLogService
    reminder_service: ReminderService
    notifications_service: NotificationsService
    advice_service: PlantAdviceService


class ContainerBuilder:
    """
    Builder for constructing the service container.

    Args:
        config: Application configuration
        socketio: Socket.IO server used for pushes, or None to disable them
    """

    def __init__(self, config: AppConfig, socketio: SocketIO | None = None):
        self.config = config
        self.socketio = socketio

    def build_infrastructure(self) -> InfrastructureComponents:
        """Build infrastructure layer (database, repositories, logging)."""
        logger.info("Building infrastructure components...")

        audit_logger = AuditLogger(self.config.audit_log_path, self.config.log_level)
        database = SQLiteDatabaseHandler(self.config.database_path)
        database.create_tables()

        logger.info("✓ Infrastructure components initialized")
        return InfrastructureComponents(
            database=database,
            auth_repo=AuthRepository(database),
            plant_repo=PlantRepository(database),
            care_log_repo=CareLogRepository(database),
            reminder_repo=ReminderRepository(database),
            notification_repo=NotificationRepository(database),
            recommendation_repo=RecommendationRepository(database),
            audit_logger=audit_logger,
        )

    def build_shared_utilities(self) -> SharedUtilities:
        """Build the event bus, the Socket.IO emitter and the scheduler."""
        event_bus = EventBus(
            queue_size=self.config.eventbus_queue_size,
            worker_count=self.config.eventbus_worker_count,
            synchronous=self.config.eventbus_synchronous,
        )
        return SharedUtilities(
            event_bus=event_bus,
            emitter_service=EmitterService(self.socketio),
            scheduler=UnifiedScheduler(max_workers=self.config.scheduler_max_workers),
        )

    def build_ai_components(self) -> AIComponents:
        """Build the LLM advisor. A disabled or unusable provider yields an advisor without backend."""
        for warning in validate_ai_config(self.config):
            logger.warning(warning)

        backend = create_backend(
            self.config.llm_provider,
            api_key=self.config.llm_api_key,
            model=self.config.llm_model,
            base_url=self.config.llm_base_url or None,
            timeout=self.config.llm_timeout,
        )
        advisor = PlantCareAdvisor(
            backend=backend,
            max_tokens=self.config.llm_max_tokens,
            temperature=self.config.llm_temperature,
        )
        if advisor.is_available:
            logger.info("✓ LLM advisor enabled (%s)", advisor.provider_name)
        else:
            logger.info("LLM advisor disabled (provider=%s)", self.config.llm_provider)
        return AIComponents(llm_advisor=advisor)

    def build_application_components(
        self,
        infra: InfrastructureComponents,
        utils: SharedUtilities,
        ai: AIComponents,
    ) -> ApplicationComponents:
        """Build application services on top of the infrastructure."""
        auth_manager = UserAuthManager(
            database_handler=infra.database,
            audit_logger=infra.audit_logger,
            auth_repo=infra.auth_repo,
        )
        plant_service = PlantService(infra.plant_repo, event_bus=utils.event_bus, audit_logger=infra.audit_logger)
        care_log_service = CareLogService(infra.care_log_repo, infra.plant_repo, event_bus=utils.event_bus)
        reminder_service = ReminderService(
            infra.plant_repo,
            infra.care_log_repo,
            infra.reminder_repo,
            engine_config=ReminderEngineConfig.from_app_config(self.config),
            care_log_service=care_log_service,
            emitter=utils.emitter_service,
            event_bus=utils.event_bus,
            audit_logger=infra.audit_logger,
        )
        reminder_service.subscribe_to_events()

        notifications_service = NotificationsService(
            notification_repo=infra.notification_repo,
            emitter_service=utils.emitter_service,
            preferences_loader=infra.reminder_repo.load_preferences,
        )
        advice_service = PlantAdviceService(
            advisor=ai.llm_advisor,
            plant_service=plant_service,
            recommendation_repo=infra.recommendation_repo,
        )

        logger.info("✓ Application services initialized")
        return ApplicationComponents(
            auth_manager=auth_manager,
            plant_service=plant_service,
            care_log_service=care_log_service,
            reminder_service=reminder_service,
            notifications_service=notifications_service,
            advice_service=advice_service,
        )

    def build(self) -> dict[str, Any]:
        """
        Build the complete service container.

        Returns:
            Dictionary with all components for ServiceContainer construction
        """
        infra = self.build_infrastructure()
        utils = self.build_shared_utilities()
        ai = self.build_ai_components()
        app = self.build_application_components(infra, utils, ai)

        return {
            "config": self.config,
            "database": infra.database,
            "auth_repo": infra.auth_repo,
            "plant_repo": infra.plant_repo,
            "care_log_repo": infra.care_log_repo,
            "reminder_repo": infra.reminder_repo,
            "notification_repo": infra.notification_repo,
            "recommendation_repo": infra.recommendation_repo,
            "audit_logger": infra.audit_logger,
            "event_bus": utils.event_bus,
            "emitter_service": utils.emitter_service,
            "scheduler": utils.scheduler,
            "llm_advisor": ai.llm_advisor,
            "auth_manager": app.auth_manager,
            "plant_service": app.plant_service,
            "care_log_service": app.care_log_service,
            "reminder_service": app.reminder_service,
            "notifications_service": app.notifications_service,
            "advice_service": app.advice_service,
        }
