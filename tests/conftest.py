"""
Shared test fixtures for the AgroTrack backend test suite.

Provides:
- In-memory SQLite database with all tables created
- Repository instances wired to the test database
- A fixed clock so reminder arithmetic is deterministic
- Service factories for the application services
- A Flask app + test client built through ``create_app``
- Helper utilities for seeding test data

Usage:
    def test_example(seed, reminder_service):
        plant_id = seed.create_plant("Monstera", last_watered_days_ago=10)
        reminders = reminder_service.refresh(1)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest

from app.domain.reminders import ReminderEngineConfig
from app.enums.common import CareType
from app.utils.event_bus import EventBus
from app.utils.time import to_iso
from infrastructure.database.repositories.ai import RecommendationRepository
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.database.repositories.care_logs import CareLogRepository
from infrastructure.database.repositories.notifications import NotificationRepository
from infrastructure.database.repositories.plants import PlantRepository
from infrastructure.database.repositories.reminders import ReminderRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging, keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

# Mid-April: the seasonal multiplier is 1.0 for every care type
NOW = datetime(2026, 4, 15, 12, 0, tzinfo=timezone.utc)


# ========================== Clock =========================================


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def clock():
    """Zero-argument clock returning the fixed test time."""
    return lambda: NOW


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created.

    Each test gets a fresh database, no cross-test contamination.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close()


# ========================== Repository Fixtures ============================


@pytest.fixture()
def auth_repo(db_handler):
    return AuthRepository(db_handler)


@pytest.fixture()
def plant_repo(db_handler):
    """PlantRepository backed by the in-memory DB."""
    return PlantRepository(db_handler)


@pytest.fixture()
def care_log_repo(db_handler):
    return CareLogRepository(db_handler)


@pytest.fixture()
def reminder_repo(db_handler):
    return ReminderRepository(db_handler)


@pytest.fixture()
def notification_repo(db_handler):
    return NotificationRepository(db_handler)


@pytest.fixture()
def recommendation_repo(db_handler):
    return RecommendationRepository(db_handler)


# ========================== Mock / Utility Fixtures ========================


@pytest.fixture()
def event_bus():
    """Synchronous EventBus so subscribers run before publish() returns."""
    return EventBus(synchronous=True)


@pytest.fixture()
def mock_emitter():
    """Mock EmitterService for SocketIO emission."""
    emitter = MagicMock()
    emitter.emit_reminder_updated = MagicMock(return_value=True)
    emitter.emit_reminders_refreshed = MagicMock(return_value=True)
    emitter.emit_notification = MagicMock(return_value=True)
    return emitter


@pytest.fixture()
def mock_audit_logger():
    """Mock AuditLogger."""
    logger = MagicMock()
    logger.log_event = MagicMock()
    return logger


@pytest.fixture()
def engine_config():
    """Watering only, which keeps reminder counts in tests easy to reason about."""
    return ReminderEngineConfig(tracked_care_types=(CareType.WATERING,))


# ========================== Service Factory Fixtures =======================


@pytest.fixture()
def plant_service(plant_repo, event_bus, mock_audit_logger):
    from app.services.application.plant_service import PlantService

    return PlantService(plant_repo, event_bus=event_bus, audit_logger=mock_audit_logger)


@pytest.fixture()
def care_log_service(care_log_repo, plant_repo, event_bus, clock):
    from app.services.application.care_log_service import CareLogService

    return CareLogService(care_log_repo, plant_repo, event_bus=event_bus, clock=clock)


@pytest.fixture()
def reminder_service(
    plant_repo, care_log_repo, reminder_repo, care_log_service, mock_emitter, mock_audit_logger, engine_config, clock
):
    """ReminderService with real repos; not subscribed to the event bus."""
    from app.services.application.reminder_service import ReminderService

    return ReminderService(
        plant_repo,
        care_log_repo,
        reminder_repo,
        engine_config=engine_config,
        care_log_service=care_log_service,
        emitter=mock_emitter,
        audit_logger=mock_audit_logger,
        clock=clock,
    )


@pytest.fixture()
def notifications_service(notification_repo, reminder_repo, mock_emitter, clock):
    from app.services.application.notifications_service import NotificationsService

    return NotificationsService(
        notification_repo,
        emitter_service=mock_emitter,
        preferences_loader=reminder_repo.load_preferences,
        clock=clock,
    )


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(seed):
            plant_id = seed.create_plant("Fern", last_watered_days_ago=3)
            seed.log_care(plant_id, "fertilizing", days_ago=20)
    """

    def __init__(self, plant_repo: PlantRepository, care_log_repo: CareLogRepository):
        self._plants = plant_repo
        self._logs = care_log_repo

    def create_plant(
        self,
        name: str = "Monstera",
        *,
        user_id: int = 1,
        category: str = "indoor",
        watering_every_days: int | None = 7,
        fertilizer_every_weeks: int | None = None,
        last_watered_days_ago: float | None = None,
        last_fertilized_days_ago: float | None = None,
        created_days_ago: float = 60,
    ) -> int:
        """Create a plant and return its ID."""
        fields: dict[str, Any] = {
            "name": name,
            "category": category,
            "watering_every_days": watering_every_days,
            "fertilizer_every_weeks": fertilizer_every_weeks,
            "created_at": to_iso(NOW - timedelta(days=created_days_ago)),
        }
        if last_watered_days_ago is not None:
            fields["last_watered_at"] = to_iso(NOW - timedelta(days=last_watered_days_ago))
        if last_fertilized_days_ago is not None:
            fields["last_fertilized_at"] = to_iso(NOW - timedelta(days=last_fertilized_days_ago))
        plant_id = self._plants.create(user_id, fields)
        assert plant_id is not None
        return plant_id

    def log_care(self, plant_id: int, care_type: str = "watering", *, days_ago: float = 0, user_id: int = 1) -> int:
        """Append a care log directly through the repository."""
        log_id = self._logs.append(
            plant_id=plant_id,
            user_id=user_id,
            care_type=care_type,
            performed_at=to_iso(NOW - timedelta(days=days_ago)),
        )
        assert log_id is not None
        return log_id


@pytest.fixture()
def seed(plant_repo, care_log_repo):
    """SeedData helper for quickly populating the test database."""
    return SeedData(plant_repo, care_log_repo)


# ========================== Flask App Fixtures =============================


@pytest.fixture()
def app(tmp_path):
    """Flask app with an in-memory database, no scheduler and no LLM provider."""
    from app import create_app

    flask_app = create_app(
        {
            "database_path": ":memory:",
            "audit_log_path": str(tmp_path / "audit.log"),
            "log_file": str(tmp_path / "agrotrack.log"),
            "login_disabled": True,
            "enable_scheduler": False,
            "eventbus_synchronous": True,
            "llm_provider": "none",
        }
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.extensions["agrotrack_shutdown"]("test teardown")


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.config["CONTAINER"]
