"""Application lifecycle management for startup and shutdown tasks.

This module handles the FastAPI lifespan context manager. The actual wiring lives in
init_app_state()/shutdown_app_state() so tests can build the same state without running
the ASGI lifespan protocol.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from localify.application.services import (
    DatabasePlayCountRecorder,
    IndexingCoordinator,
    MutagenMetadataExtractor,
    PlayCountNotifier,
    StreamService,
)
from localify.config import Settings, get_settings
from localify.domain.ports import IMetadataExtractor
from localify.infrastructure.observability import configure_logging
from localify.infrastructure.persistence import Database

logger = logging.getLogger(__name__)

PLAY_COUNT_DRAIN_TIMEOUT = 5.0


# Hey future me, everything routes need is attached to app.state here: db, settings, the stream
# service, the play-count notifier, the indexing coordinator and the metadata extractor. The
# dependencies in api/dependencies.py read them back. Pass `extractor` to swap mutagen out.
async def init_app_state(
    app: FastAPI,
    settings: Settings,
    extractor: IMetadataExtractor | None = None,
) -> None:
    """Create and attach all long-lived application objects."""
    settings.storage.storage_path.mkdir(parents=True, exist_ok=True)

    db = Database(settings)
    if settings.database.auto_create:
        await db.create_tables()
    logger.info("Database initialized: %s", settings.database.url)

    if not settings.storage.media_path.is_dir():
        logger.warning(
            "Media directory %s does not exist yet, indexing will fail until it does",
            settings.storage.media_path,
        )

    app.state.settings = settings
    app.state.db = db
    app.state.stream_service = StreamService(
        chunk_size=settings.streaming.chunk_size,
        image_cache_max_age=settings.streaming.image_cache_max_age,
    )
    app.state.play_count_notifier = PlayCountNotifier(DatabasePlayCountRecorder(db))
    app.state.indexing_coordinator = IndexingCoordinator()
    app.state.metadata_extractor = extractor or MutagenMetadataExtractor()


async def shutdown_app_state(app: FastAPI) -> None:
    """Flush pending play counts and close the database."""
    if hasattr(app.state, "play_count_notifier"):
        try:
            await asyncio.wait_for(
                app.state.play_count_notifier.drain(),
                timeout=PLAY_COUNT_DRAIN_TIMEOUT,
            )
        except TimeoutError:
            logger.warning("Timed out waiting for pending play counts")

    if hasattr(app.state, "db"):
        try:
            await app.state.db.close()
            logger.info("Database connection closed")
        except Exception as e:
            logger.exception("Error closing database: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles logging configuration, database initialization and resource cleanup.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    configure_logging(
        log_level=settings.log.level,
        json_format=settings.log.json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    await init_app_state(app, settings)
    try:
        yield
    finally:
        logger.info("Shutting down application")
        await shutdown_app_state(app)
