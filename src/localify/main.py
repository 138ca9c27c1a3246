"""FastAPI application factory and server entry point."""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from localify import __version__
from localify.api.exception_handlers import register_exception_handlers
from localify.api.routers import api_router
from localify.config import Settings, get_settings
from localify.infrastructure.lifecycle import lifespan
from localify.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings (tests). Defaults to the cached environment settings.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Localify",
        description="Self-hosted music library indexing and streaming server",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware runs in reverse order of registration: logging wraps CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Accept-Ranges", "Content-Length", "X-Correlation-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


def run() -> None:
    """Run the server with uvicorn (console script entry point)."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )
