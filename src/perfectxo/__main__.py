"""Entry point for running PerfectXO via ``python -m perfectxo``."""

from __future__ import annotations

import logging

import uvicorn

from . import ui
from .config import Settings


def main() -> None:
    """Start the FastAPI-powered PerfectXO web server."""

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ui.configure(settings)
    uvicorn.run(
        ui.app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
