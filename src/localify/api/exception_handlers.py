"""Custom exception handlers for FastAPI application.

This module registers global exception handlers that convert domain exceptions
into HTTP responses with appropriate status codes. Every body is {"detail": message}.

Hey future me - streaming errors (StreamIOError) that happen AFTER the response started can't
be turned into a status code anymore, the connection just drops. Only errors raised before
the first byte land here.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from localify.domain.exceptions import (
    AuthorizationError,
    DomainException,
    EntityNotFoundException,
    IndexingInProgressError,
    InvalidRangeError,
    ScanRootUnreadableError,
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers for domain exceptions.

    Starlette picks the handler of the most specific exception class, so the
    DomainException catch-all only fires for types without their own handler.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_exception_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        """Handle entity not found exceptions with 404 Not Found."""
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={
                "path": request.url.path,
                "entity_type": exc.entity_type,
                "entity_id": str(exc.entity_id),
            },
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": exc.message},
        )

    @app.exception_handler(InvalidRangeError)
    async def invalid_range_handler(
        request: Request, exc: InvalidRangeError
    ) -> JSONResponse:
        """Handle unsatisfiable ranges with 416 and the resource size."""
        logger.info(
            "Unsatisfiable range at %s: %s",
            request.url.path,
            exc.range_header,
            extra={
                "path": request.url.path,
                "range": exc.range_header,
                "file_size": exc.file_size,
            },
        )
        return JSONResponse(
            status_code=416,
            content={"detail": exc.message},
            headers={"Content-Range": f"bytes */{exc.file_size}"},
        )

    @app.exception_handler(IndexingInProgressError)
    async def indexing_in_progress_handler(
        request: Request, exc: IndexingInProgressError
    ) -> JSONResponse:
        """Handle concurrent indexing requests with 409 Conflict."""
        logger.warning(
            "Indexing already running, rejected request at %s",
            request.url.path,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": exc.message},
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(
        request: Request, exc: AuthorizationError
    ) -> JSONResponse:
        """Handle authorization errors with 401 (no credentials) or 403 (wrong ones)."""
        logger.warning(
            "Authorization error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        if exc.authenticated:
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"detail": exc.message},
            )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ScanRootUnreadableError)
    async def scan_root_unreadable_handler(
        request: Request, exc: ScanRootUnreadableError
    ) -> JSONResponse:
        """Handle a missing/unreadable media directory with 503 Service Unavailable."""
        logger.error(
            "Media root unreadable at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "media_root": exc.path},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message},
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        """Handle any other domain exception with 500 Internal Server Error."""
        logger.error(
            "Unhandled domain error at %s: %s",
            request.url.path,
            exc.message,
            extra={
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "error": exc.message,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message},
        )

    # Hey future me - SQLite says "database is locked" when an indexing run holds the write
    # lock for longer than the busy timeout. That's a retry-later, not a crash.
    @app.exception_handler(OperationalError)
    async def database_operational_error_handler(
        request: Request, exc: OperationalError
    ) -> JSONResponse:
        """Handle SQLAlchemy OperationalError, 503 for busy/locked, 500 otherwise."""
        error_msg = str(exc).lower()
        if "locked" in error_msg or "busy" in error_msg:
            logger.warning(
                "Database busy at %s",
                request.url.path,
                extra={"path": request.url.path, "error": str(exc)[:200]},
            )
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"detail": "Database is busy, please retry"},
                headers={"Retry-After": "3"},
            )

        logger.error(
            "Database error at %s",
            request.url.path,
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Database error"},
        )
