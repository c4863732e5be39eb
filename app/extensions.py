"""Flask Extension Instances and Initialisation."""

import logging
import os

from flask import Flask
from flask_compress import Compress
from flask_socketio import SocketIO

logger = logging.getLogger(__name__)

# Compresses JSON responses (reminder lists, care history) with gzip/brotli
compress = Compress()


def _socketio_transports() -> list[str]:
    """Return allowed Engine.IO transports.

    Default to polling-only so the Werkzeug dev server never has to upgrade.
    Override with `AGROTRACK_SOCKETIO_TRANSPORTS`, e.g. `polling,websocket`.
    """
    raw = os.getenv("AGROTRACK_SOCKETIO_TRANSPORTS")
    if raw:
        transports = [t.strip() for t in raw.split(",") if t.strip()]
        if transports:
            return transports
    return ["polling"]


socketio = SocketIO(
    async_mode="threading",
    cors_allowed_origins=[],
    logger=False,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25,
    transports=_socketio_transports(),
)


def init_extensions(app: Flask, cors_origins: str) -> None:
    """Initialise Flask extension objects."""
    origins = cors_origins if isinstance(cors_origins, str) else "*"

    app.config.setdefault("COMPRESS_MIMETYPES", ["application/json", "text/plain"])
    app.config.setdefault("COMPRESS_MIN_SIZE", 256)  # Don't compress tiny responses
    compress.init_app(app)

    logging.getLogger("engineio").setLevel(logging.WARNING)
    socketio.init_app(app, cors_allowed_origins=origins, logger=logging.getLogger("socketio"), engineio_logger=False)
    logger.info("Socket.IO initialized with CORS origins: %s", origins)
