"""Fixtures for HTTP-level tests.

Hey future me - ASGITransport does NOT run the lifespan, so the app fixture calls
init_app_state()/shutdown_app_state() itself. Same wiring, no uvicorn.
"""

from collections.abc import AsyncIterator

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from localify.config import Settings
from localify.infrastructure.lifecycle import init_app_state, shutdown_app_state
from localify.main import create_app


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    """Fully wired app backed by the per-test SQLite file and media directory."""
    application = create_app(settings)
    await init_app_state(application, settings)
    yield application
    await shutdown_app_state(application)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
