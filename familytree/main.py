from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from .routes import celebrations, members, tree

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging() -> None:
    """Root logging from ``FAMILYTREE_LOG_LEVEL`` (default INFO)."""

    level_name = (os.environ.get("FAMILYTREE_LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="Family Tree API", version="0.1.0")
    application.include_router(members.router)
    application.include_router(celebrations.router)
    application.include_router(tree.router)

    @application.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
