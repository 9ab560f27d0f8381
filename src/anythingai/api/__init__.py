# API router aggregation.
# Created: 2026-09-05
#
# mount_routers(app) registers every domain router under /api, and the
# health check at the root.

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

_API_ROUTERS: list[tuple[str, str]] = [
    # (module_path, tag)
    ("anythingai.api.auth", "Auth"),
    ("anythingai.api.departments", "Departments"),
    ("anythingai.api.conversations", "Conversations"),
    ("anythingai.api.chat", "Chat"),
    ("anythingai.api.lookups", "Lookups"),
    ("anythingai.api.usage", "Usage"),
]


def mount_routers(app: FastAPI) -> None:
    """Mount all domain routers on *app*."""
    import importlib

    from anythingai.api import health

    for module_path, tag in _API_ROUTERS:
        mod = importlib.import_module(module_path)
        app.include_router(mod.router, prefix="/api")
        logger.debug("Mounted router: %s (%s)", module_path, tag)

    app.include_router(health.router)
