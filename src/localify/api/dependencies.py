"""Dependency injection for API endpoints."""

import logging
import secrets
from typing import cast

from fastapi import Depends, Header, HTTPException, Request

from localify.application.services import (
    DirectoryScanner,
    IndexingCoordinator,
    LibraryIndexingService,
    PlayCountNotifier,
    StreamService,
)
from localify.config import Settings
from localify.domain.exceptions import AuthorizationError
from localify.domain.ports import IMetadataExtractor
from localify.infrastructure.persistence.database import Database

logger = logging.getLogger(__name__)


def _app_state(request: Request, name: str) -> object:
    """Fetch an object the lifespan attached to app.state, 503 if startup didn't finish."""
    if not hasattr(request.app.state, name):
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return getattr(request.app.state, name)


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with (not necessarily the cached env settings)."""
    return cast(Settings, _app_state(request, "settings"))


def get_database(request: Request) -> Database:
    """Get the Database from app state."""
    return cast(Database, _app_state(request, "db"))


def get_stream_service(request: Request) -> StreamService:
    """Get the shared StreamService."""
    return cast(StreamService, _app_state(request, "stream_service"))


def get_play_count_notifier(request: Request) -> PlayCountNotifier:
    """Get the shared PlayCountNotifier."""
    return cast(PlayCountNotifier, _app_state(request, "play_count_notifier"))


def get_indexing_coordinator(request: Request) -> IndexingCoordinator:
    """Get the application-wide IndexingCoordinator."""
    return cast(IndexingCoordinator, _app_state(request, "indexing_coordinator"))


# Hey future me - the extractor lives on app.state (not constructed here) so tests can swap
# in a fake without monkeypatching mutagen.
def get_indexing_service(
    request: Request,
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> LibraryIndexingService:
    """Build an indexing service for the configured media root."""
    extractor = cast(IMetadataExtractor, _app_state(request, "metadata_extractor"))
    return LibraryIndexingService(
        database=db,
        scanner=DirectoryScanner(),
        extractor=extractor,
        media_root=settings.storage.media_path,
    )


# Hey future me - this is the authorization GATE, not an auth system. Users, JWTs and roles
# belong to whatever sits in front of us. If LOCALIFY_API__ADMIN_TOKEN is set, admin endpoints
# need "Authorization: Bearer <token>". If it isn't, they're open (fine on a LAN, we warn).
async def require_admin(
    settings: Settings = Depends(get_app_settings),
    authorization: str | None = Header(default=None),
) -> None:
    """Allow the request only if it carries the admin bearer token.

    Raises:
        AuthorizationError: 401 if no credentials, 403 if wrong credentials
    """
    expected = settings.api.admin_token
    if not expected:
        logger.warning("Admin endpoint called with no admin token configured")
        return

    if not authorization:
        raise AuthorizationError("Admin credentials required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthorizationError("Admin credentials required")

    if not secrets.compare_digest(token.strip().encode(), expected.encode()):
        raise AuthorizationError("Admin privileges required", authenticated=True)
