"""Song Studio API server.

Configured from the environment: ``HOST``, ``PORT`` and ``SONG_STUDIO_LOG_LEVEL``
(debug, info, warning, error; default info), plus the plugin variables read
by ``song_studio.services.bootstrap``.
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn

from song_studio.api.routes import create_app

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def log_level_from_env() -> str:
    level = os.environ.get("SONG_STUDIO_LOG_LEVEL", "info").strip().lower()
    return level if level in LOG_LEVELS else "info"


def main() -> None:
    level = log_level_from_env()
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    app = create_app()
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    logging.getLogger(__name__).info("Serving Song Studio API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=level)


if __name__ == "__main__":
    main()
