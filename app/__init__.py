from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from datetime import timedelta
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.ai import ai_api
from app.blueprints.api.notifications import notifications_api
from app.blueprints.api.plants import plants_api
from app.blueprints.api.reminders import reminders_api
from app.blueprints.auth.routes import auth_bp
from app.config import load_config, setup_logging
from app.extensions import init_extensions, socketio


def create_app(config_overrides: dict[str, Any] | None = None, *, bootstrap_runtime: bool = False) -> Flask:
    """Application factory.

    ``config_overrides`` keys map to :class:`~app.config.AppConfig` fields
    (case-insensitive). ``bootstrap_runtime`` installs the OS signal handlers
    a long-running server process needs.
    """
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key.lower(), value)

    # Configure logging early so container startup is visible in the terminal and agrotrack.log
    setup_logging(debug=config.debug, log_file=config.log_file)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())

    flask_app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=config.session_lifetime_days)
    flask_app.config["SESSION_COOKIE_HTTPONLY"] = True
    flask_app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    flask_app.config["SESSION_COOKIE_SECURE"] = config.environment == "production"

    # Reject request bodies larger than 1 MB, the API only takes small JSON documents
    flask_app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024

    # Initialize Socket.IO BEFORE building ServiceContainer (EmitterService needs it)
    init_extensions(flask_app, config.socketio_cors_origins)

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config, socketio)
    flask_app.config["CONTAINER"] = container
    flask_app.teardown_appcontext(container.database.close_db)

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    atexit.register(_graceful_shutdown, "atexit")
    flask_app.extensions["agrotrack_shutdown"] = _graceful_shutdown

    if bootstrap_runtime:
        # SIGINT=Ctrl-C, SIGTERM=container/systemd stop
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # Global JSON error handler: any exception that escaped a route on /api/
    # becomes a generic message instead of a stack trace.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        from app.domain.exceptions import AgroTrackError
        from app.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            if not request.path.startswith("/api/"):
                return exc
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, AgroTrackError):
            status = exc.http_status
            if status >= 500 and status != 503:
                return safe_error(exc, status, context=type(exc).__name__)
            return error_response(str(exc) or "Request failed", status)

        return safe_error(exc, 500, context="unhandled")

    @flask_app.errorhandler(413)
    def _handle_too_large(_exc):
        from app.utils.http import error_response

        return error_response("Request payload too large", 413)

    # ── API version prefix ──────────────────────────────────────────
    V1 = "/api/v1"

    flask_app.register_blueprint(auth_bp, url_prefix=f"{V1}/auth")
    flask_app.register_blueprint(plants_api, url_prefix=f"{V1}/plants")
    flask_app.register_blueprint(reminders_api, url_prefix=f"{V1}/reminders")
    flask_app.register_blueprint(notifications_api, url_prefix=f"{V1}/notifications")
    flask_app.register_blueprint(ai_api, url_prefix=f"{V1}/ai")

    # Register Socket.IO event handlers (must be after socketio init)
    from app.socketio import register_handlers

    register_handlers()

    for bp_name in flask_app.blueprints:
        logging.debug("Registered blueprint: %s", bp_name)

    # ── Backward-compat: rewrite /api/* → /api/v1/* ─────────────
    # WSGI-level rewrite (no HTTP redirect, fully transparent to clients).
    _original_wsgi = flask_app.wsgi_app

    def _legacy_api_rewrite(environ, start_response):
        path = environ.get("PATH_INFO", "")
        if path.startswith("/api/") and not path.startswith("/api/v1/"):
            environ["PATH_INFO"] = "/api/v1" + path[4:]
        return _original_wsgi(environ, start_response)

    flask_app.wsgi_app = _legacy_api_rewrite  # type: ignore[assignment]

    logger = logging.getLogger(__name__)
    logger.info("AgroTrack application initialized successfully.")
    logging.getLogger("werkzeug").setLevel(logging.INFO)

    return flask_app


__all__ = ["create_app", "socketio"]
