"""
Configuration for AgroTrack
===========================
Runtime settings for the web API, the reminder engine, the background
scheduler and the optional LLM integration. Every field defaults from an
``AGROTRACK_*`` environment variable.
Sets up the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from app.constants import Intervals


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("AGROTRACK_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("AGROTRACK_SECRET_KEY", "AgroTrackDevSecretKey"))
    database_path: str = field(default_factory=lambda: os.getenv("AGROTRACK_DATABASE_PATH", "database/agrotrack.db"))
    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("AGROTRACK_SOCKETIO_CORS", "*"))

    debug: bool = field(default_factory=lambda: _env_bool("AGROTRACK_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("AGROTRACK_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("AGROTRACK_LOG_FILE", "logs/agrotrack.log"))
    audit_log_path: str = field(default_factory=lambda: os.getenv("AGROTRACK_AUDIT_LOG_PATH", "logs/audit.log"))

    # Session Configuration
    session_lifetime_days: int = field(default_factory=lambda: _env_int("AGROTRACK_SESSION_LIFETIME_DAYS", 30))
    # Requests without a logged-in user act as user 1 (local single-user mode and tests)
    login_disabled: bool = field(default_factory=lambda: _env_bool("AGROTRACK_LOGIN_DISABLED", False))

    # Background scheduler
    enable_scheduler: bool = field(default_factory=lambda: _env_bool("AGROTRACK_ENABLE_SCHEDULER", True))
    scheduler_max_workers: int = field(default_factory=lambda: _env_int("AGROTRACK_SCHEDULER_MAX_WORKERS", 2))
    reminder_refresh_interval_seconds: int = field(
        default_factory=lambda: _env_int("AGROTRACK_REMINDER_REFRESH_INTERVAL", Intervals.REMINDER_REFRESH)
    )
    upcoming_notice_interval_seconds: int = field(
        default_factory=lambda: _env_int("AGROTRACK_UPCOMING_NOTICE_INTERVAL", Intervals.UPCOMING_NOTICE)
    )
    upcoming_notice_min_minutes: int = field(default_factory=lambda: _env_int("AGROTRACK_UPCOMING_NOTICE_MIN", 5))
    upcoming_notice_max_minutes: int = field(default_factory=lambda: _env_int("AGROTRACK_UPCOMING_NOTICE_MAX", 65))

    # Event bus
    eventbus_queue_size: int = field(default_factory=lambda: _env_int("AGROTRACK_EVENTBUS_QUEUE_SIZE", 1024))
    eventbus_worker_count: int = field(default_factory=lambda: _env_int("AGROTRACK_EVENTBUS_WORKERS", 2))
    # Deliver events on the publishing thread (tests, single-threaded tools)
    eventbus_synchronous: bool = field(default_factory=lambda: _env_bool("AGROTRACK_EVENTBUS_SYNCHRONOUS", False))

    # Reminder engine
    # "due_now": plants without care history are due immediately.
    # "from_created": the first occurrence is counted from the plant's creation.
    reminder_no_history_policy: str = field(
        default_factory=lambda: os.getenv("AGROTRACK_REMINDER_NO_HISTORY_POLICY", "due_now")
    )
    reminder_urgent_multiple: float = field(
        default_factory=lambda: _env_float("AGROTRACK_REMINDER_URGENT_MULTIPLE", 2.0)
    )
    reminder_medium_lookahead_days: float = field(
        default_factory=lambda: _env_float("AGROTRACK_REMINDER_MEDIUM_LOOKAHEAD_DAYS", 1.0)
    )
    reminder_max_snoozes: int = field(default_factory=lambda: _env_int("AGROTRACK_REMINDER_MAX_SNOOZES", 3))
    reminder_tracked_care_types: tuple[str, ...] = field(
        default_factory=lambda: _env_list("AGROTRACK_REMINDER_CARE_TYPES", ("watering", "fertilizing"))
    )
    southern_hemisphere: bool = field(default_factory=lambda: _env_bool("AGROTRACK_SOUTHERN_HEMISPHERE", False))

    # LLM Configuration
    # Provider: "none" (disabled), "openai", "anthropic"
    llm_provider: str = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "none"))
    llm_api_key: str = field(default_factory=lambda: os.getenv("LLM_API_KEY", ""))
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", ""))
    llm_base_url: str = field(default_factory=lambda: os.getenv("LLM_BASE_URL", ""))
    llm_max_tokens: int = field(default_factory=lambda: _env_int("LLM_MAX_TOKENS", 1024))
    llm_temperature: float = field(default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.3))
    llm_timeout: int = field(default_factory=lambda: _env_int("LLM_TIMEOUT", 30))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="AgroTrackDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        # SECURITY: Fail fast if using default secret key in production
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set AGROTRACK_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        if self.reminder_no_history_policy not in {"due_now", "from_created"}:
            raise ValueError(
                f"AGROTRACK_REMINDER_NO_HISTORY_POLICY must be 'due_now' or 'from_created', "
                f"got {self.reminder_no_history_policy!r}"
            )

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        secret = self.secret_key or os.getenv("FLASK_SECRET_KEY", "")
        if not secret:
            raise RuntimeError(
                "Missing AGROTRACK_SECRET_KEY or FLASK_SECRET_KEY environment variable. "
                "Production systems must set an explicit secret key."
            )

        return {
            "ENV": self.environment,
            "SECRET_KEY": secret,
            "DATABASE_PATH": self.database_path,
            "SOCKETIO_CORS_ALLOWED_ORIGINS": self.socketio_cors_origins,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "DEBUG": self.debug,
            "LOGIN_DISABLED": self.login_disabled,
        }


def validate_ai_config(config: AppConfig) -> list[str]:
    """
    Validate LLM configuration and return list of warnings.

    A misconfigured provider never stops the application; AI features are
    simply reported as unavailable.
    """
    warnings = []
    provider = (config.llm_provider or "none").lower()

    if provider not in {"none", "openai", "anthropic"}:
        warnings.append(f"Unknown LLM provider '{config.llm_provider}'. AI features are disabled.")
    elif provider != "none" and not config.llm_api_key:
        warnings.append(f"LLM_PROVIDER is '{provider}' but LLM_API_KEY is empty. AI features are disabled.")

    if not 0.0 <= config.llm_temperature <= 2.0:
        warnings.append(f"LLM temperature ({config.llm_temperature}) is outside 0.0-2.0")

    return warnings


def setup_logging(debug: bool = False, log_file: str = "logs/agrotrack.log") -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicate handlers when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "agrotrack_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "agrotrack_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "agrotrack_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if not has_file and log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "agrotrack_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"agrotrack_console", "agrotrack_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    if _env_bool("AGROTRACK_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    if _env_bool("AGROTRACK_SILENCE_SOCKETIO", True):
        logging.getLogger("socketio").setLevel(logging.WARNING)
        logging.getLogger("engineio").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    import logging

    config = AppConfig()
    for warning in validate_ai_config(config):
        logging.getLogger("config_loader").warning(warning)
    return config
