"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (logging and
the storage container).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.infrastructure.external.storage import StorageContainer
from app.shared.telemetry import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: logging, storage container on app.state. The storage backend
    itself is built lazily on first use so a misconfigured backend surfaces
    on the readiness route instead of blocking startup.
    """
    # ---- Startup ----
    setup_logging()
    if getattr(app.state, "storage", None) is None:
        app.state.storage = StorageContainer()

    yield

    # ---- Shutdown ----
    container = getattr(app.state, "storage", None)
    if container is not None:
        container.reset_storage()
        logger.info("Storage container reset")
