"""Health check endpoint for Docker probes.

Docker HEALTHCHECK: curl -f http://localhost:3000/health || exit 1
"""

import asyncio
import os
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from localify import __version__
from localify.api.dependencies import (
    get_app_settings,
    get_database,
    get_indexing_coordinator,
)
from localify.application.services import IndexingCoordinator
from localify.config import Settings
from localify.infrastructure.persistence import Database

router = APIRouter()


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: str = Field(description="healthy, degraded or unhealthy")
    timestamp: str = Field(description="ISO timestamp of health check")
    version: str = Field(default=__version__, description="Application version")
    database: bool = Field(description="Database answers queries")
    media_root: bool = Field(description="Media directory is readable")
    indexing: bool = Field(description="An indexing run is active")


# Hey future me - a missing media directory is "degraded", not "unhealthy". Streaming of
# already-indexed tracks on other mounts might still work, and restarting the container
# won't bring a NAS share back. Only a dead database gets the 503.
@router.get("/health", response_model=HealthStatus)
async def health(
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
    coordinator: IndexingCoordinator = Depends(get_indexing_coordinator),
) -> JSONResponse:
    """Liveness with database and media directory checks."""
    database_ok = await db.ping()
    media_path = os.fspath(settings.storage.media_path)
    media_ok = await asyncio.to_thread(
        lambda: os.path.isdir(media_path) and os.access(media_path, os.R_OK | os.X_OK)
    )

    if not database_ok:
        overall = "unhealthy"
    elif not media_ok:
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthStatus(
        status=overall,
        timestamp=datetime.now(UTC).isoformat(),
        database=database_ok,
        media_root=media_ok,
        indexing=coordinator.is_running,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        if not database_ok
        else status.HTTP_200_OK,
        content=body.model_dump(),
    )
