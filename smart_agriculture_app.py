"""WSGI entry point for the AgroTrack backend application.

Serves the REST API and Socket.IO namespaces; configuration comes from
``AGROTRACK_*`` environment variables (see ``app/config.py``).
"""
from __future__ import annotations

import logging
import os
import sys

from app import create_app, socketio

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

app = create_app(bootstrap_runtime=True)


def _env_flag_true(name: str) -> bool:
    v = os.getenv(name)
    return bool(v and v.lower() in ("1", "true", "yes", "on"))


def main() -> int:
    host = os.getenv("AGROTRACK_HOST", "0.0.0.0")
    port = int(os.getenv("AGROTRACK_PORT", "8000"))
    debug = _env_flag_true("AGROTRACK_DEBUG")

    logging.info("Starting server on %s:%s", host, port)
    logging.info("SocketIO async_mode: %s", socketio.async_mode)

    try:
        socketio.run(
            app,
            host=host,
            port=port,
            debug=debug,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
        logging.info("Server stopped.")
        return 0
    except KeyboardInterrupt:
        logging.info("Server stopped by user.")
        return 0
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logging.exception("ERROR: Failed to start server: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
