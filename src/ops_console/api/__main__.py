"""
ops_console.api.__main__

Entrypoint for running the FastAPI application via `python -m ops_console.api`.

Responsibilities:
- Load settings.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from ops_console.api.app import create_app
from ops_console.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Uvicorn runs a single worker here: the permission cache and audit dispatcher are
# per process, so scale out with more processes rather than threads.
