import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from infrastructure.database.ops.care_logs import CareLogOperations
from infrastructure.database.ops.notifications import NotificationOperations
from infrastructure.database.ops.plants import PlantOperations
from infrastructure.database.ops.recommendations import RecommendationOperations
from infrastructure.database.ops.reminders import ReminderOperations
from infrastructure.database.ops.users import UserOperations

logger = logging.getLogger(__name__)


class SQLiteDatabaseHandler(
    UserOperations,
    PlantOperations,
    CareLogOperations,
    ReminderOperations,
    NotificationOperations,
    RecommendationOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals."""

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._local = threading.local()
        # A shared in-memory database needs a single connection across threads
        self._shared_connection: Optional[sqlite3.Connection] = None
        self._shared_lock = threading.RLock()

        if database_path != ":memory:":
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    @property
    def is_memory(self) -> bool:
        return self._database_path == ":memory:"

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        if self.is_memory:
            with self._shared_lock:
                if self._shared_connection is None:
                    self._shared_connection = self._open_connection()
                return self._shared_connection

        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path, check_same_thread=False)
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return (
            "database disk image is malformed" in message
            or "file is not a database" in message
            or "file is encrypted or is not a database" in message
            or "malformed" in message
        )

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        suffix = db_path.suffix or ".db"
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{suffix}"
        try:
            shutil.move(str(db_path), str(quarantined))
            for sidecar_suffix in ("-wal", "-shm"):
                sidecar = Path(f"{db_path}{sidecar_suffix}")
                if sidecar.exists():
                    shutil.move(str(sidecar), str(quarantine_dir / f"{sidecar.name}_{timestamp}"))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Configure SQLite connection.

        - WAL mode for concurrent readers alongside the scheduler's writes
        - NORMAL synchronous, safe with WAL
        - foreign keys on so deleting a plant removes its logs and reminders
        """
        connection.execute("PRAGMA foreign_keys=ON")
        if not self.is_memory:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA temp_store=MEMORY")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        if self.is_memory:
            # The shared in-memory connection lives as long as the handler
            return
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    def close(self) -> None:
        """Close every connection this handler owns."""
        with self._shared_lock:
            if self._shared_connection is not None:
                self._shared_connection.close()
                self._shared_connection = None
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db()
        try:
            yield conn
        finally:
            conn.commit()

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        try:
            with self.connection() as db:
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username TEXT UNIQUE NOT NULL,
                        email TEXT UNIQUE,
                        password_hash TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Plants (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id INTEGER NOT NULL DEFAULT 1,
                        name TEXT NOT NULL,
                        species TEXT,
                        category TEXT NOT NULL DEFAULT 'indoor',
                        sunlight TEXT NOT NULL DEFAULT 'medium',
                        watering_every_days INTEGER,
                        fertilizer_every_weeks INTEGER,
                        last_watered_at TEXT,
                        last_fertilized_at TEXT,
                        health_status TEXT NOT NULL DEFAULT 'good',
                        location TEXT,
                        notes TEXT,
                        created_at TEXT NOT NULL,
                        updated_at TEXT
                    )
                    """
                )
                db.execute("CREATE INDEX IF NOT EXISTS idx_plants_user ON Plants(user_id)")
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS CareLogs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        plant_id INTEGER NOT NULL,
                        user_id INTEGER NOT NULL DEFAULT 1,
                        care_type TEXT NOT NULL,
                        performed_at TEXT NOT NULL,
                        notes TEXT,
                        photos TEXT,
                        care_data TEXT,
                        created_at TEXT NOT NULL,
                        FOREIGN KEY (plant_id) REFERENCES Plants(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_care_logs_plant ON CareLogs(plant_id, care_type, performed_at)"
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reminders (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id INTEGER NOT NULL DEFAULT 1,
                        plant_id INTEGER NOT NULL,
                        plant_name TEXT,
                        care_type TEXT NOT NULL,
                        title TEXT,
                        description TEXT,
                        due_at TEXT NOT NULL,
                        original_due_at TEXT NOT NULL,
                        priority TEXT NOT NULL DEFAULT 'low',
                        status TEXT NOT NULL DEFAULT 'pending',
                        frequency_days REAL NOT NULL,
                        last_care_at TEXT,
                        snooze_count INTEGER NOT NULL DEFAULT 0,
                        snoozed_until TEXT,
                        completed_at TEXT,
                        no_history INTEGER NOT NULL DEFAULT 0,
                        created_at TEXT NOT NULL,
                        updated_at TEXT,
                        UNIQUE (plant_id, care_type, original_due_at),
                        FOREIGN KEY (plant_id) REFERENCES Plants(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute("CREATE INDEX IF NOT EXISTS idx_reminders_user_status ON Reminders(user_id, status)")
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS ReminderPreferences (
                        user_id INTEGER PRIMARY KEY,
                        payload TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS NotificationMessage (
                        message_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id INTEGER NOT NULL,
                        notification_type TEXT NOT NULL,
                        title TEXT NOT NULL,
                        message TEXT NOT NULL,
                        severity TEXT NOT NULL DEFAULT 'info',
                        channel TEXT NOT NULL DEFAULT 'in_app',
                        source_type TEXT,
                        source_id INTEGER,
                        is_read INTEGER NOT NULL DEFAULT 0,
                        read_at TEXT,
                        created_at TEXT NOT NULL
                    )
                    """
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON NotificationMessage(user_id, is_read)"
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS AIRecommendations (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id INTEGER NOT NULL,
                        plant_id INTEGER,
                        kind TEXT NOT NULL,
                        disease_detected INTEGER NOT NULL DEFAULT 0,
                        disease_name TEXT,
                        severity TEXT,
                        confidence REAL,
                        symptoms TEXT,
                        treatments TEXT,
                        prevention TEXT,
                        payload TEXT,
                        raw_text TEXT,
                        provider TEXT,
                        created_at TEXT NOT NULL,
                        CHECK (confidence IS NULL OR (confidence >= 0 AND confidence <= 1))
                    )
                    """
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_ai_recommendations_user ON AIRecommendations(user_id, created_at)"
                )
        except sqlite3.Error as exc:
            logger.error("Error creating tables: %s", exc)
            raise
