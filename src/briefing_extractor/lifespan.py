"""Application lifespan management (startup/shutdown hooks)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from .config.settings import get_settings
from .observability.logger import configure_logging, get_logger
from .services.briefing_service import BriefingBatchService
from .services.progress import ProgressRegistry
from .storage.database import close_db, init_db, session_factory
from .storage.repositories import BriefingSink, NullSink, SqlAlchemyBriefingSink

logger = get_logger(__name__)

# Shared service instances for the transport layer.
app_state: dict[str, Any] = {}


@asynccontextmanager
async def lifespan_manager():
    """Manage application lifespan (startup and shutdown)."""
    settings = get_settings()

    configure_logging()
    logger.info("starting_application", service_name=settings.service_name)

    sink: BriefingSink = NullSink()
    if settings.persistence_enabled:
        await init_db()
        sink = SqlAlchemyBriefingSink(session_factory=session_factory)
        logger.info("database_initialized")
    else:
        logger.info("persistence_disabled")

    app_state["progress"] = ProgressRegistry()
    app_state["briefing_service"] = BriefingBatchService(sink=sink, settings=settings)

    logger.info("application_started", session_state_path=settings.session_state_path)
    try:
        yield
    finally:
        app_state.clear()
        if settings.persistence_enabled:
            await close_db()
        logger.info("application_shutdown_complete")
