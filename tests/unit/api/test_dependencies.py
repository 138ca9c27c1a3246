"""Tests for API dependencies: the admin gate and app.state lookups."""

from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from localify.api.dependencies import get_database, get_indexing_service, require_admin
from localify.application.services import MutagenMetadataExtractor
from localify.config import ApiSettings, Settings, StorageSettings
from localify.domain.exceptions import AuthorizationError


@pytest.fixture
def locked_settings() -> Settings:
    """Settings with an admin token configured."""
    return Settings(api=ApiSettings(admin_token="s3cret"))


def _request(**state: object) -> SimpleNamespace:
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))


@pytest.mark.asyncio
async def test_open_when_no_token_configured() -> None:
    """Without a configured token every caller is admin."""
    await require_admin(settings=Settings(api=ApiSettings(admin_token=None)), authorization=None)


@pytest.mark.asyncio
async def test_valid_bearer_token_passes(locked_settings: Settings) -> None:
    await require_admin(settings=locked_settings, authorization="Bearer s3cret")


@pytest.mark.asyncio
async def test_scheme_is_case_insensitive(locked_settings: Settings) -> None:
    await require_admin(settings=locked_settings, authorization="bearer s3cret")


@pytest.mark.asyncio
async def test_missing_header_is_unauthenticated(locked_settings: Settings) -> None:
    with pytest.raises(AuthorizationError) as exc_info:
        await require_admin(settings=locked_settings, authorization=None)
    assert exc_info.value.authenticated is False


@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["Basic s3cret", "Bearer", "s3cret"])
async def test_malformed_header_is_unauthenticated(locked_settings: Settings, header: str) -> None:
    with pytest.raises(AuthorizationError) as exc_info:
        await require_admin(settings=locked_settings, authorization=header)
    assert exc_info.value.authenticated is False


@pytest.mark.asyncio
async def test_wrong_token_is_forbidden(locked_settings: Settings) -> None:
    with pytest.raises(AuthorizationError) as exc_info:
        await require_admin(settings=locked_settings, authorization="Bearer nope")
    assert exc_info.value.authenticated is True


def test_missing_state_is_service_unavailable() -> None:
    """Requests arriving before the lifespan finished get 503."""
    with pytest.raises(HTTPException) as exc_info:
        get_database(_request())  # type: ignore[arg-type]
    assert exc_info.value.status_code == 503


def test_indexing_service_uses_configured_media_root(tmp_path: Path) -> None:
    settings = Settings(storage=StorageSettings(media_path=tmp_path))
    extractor = MutagenMetadataExtractor()
    request = _request(metadata_extractor=extractor)

    service = get_indexing_service(request, db=object(), settings=settings)  # type: ignore[arg-type]

    assert service.media_root == str(tmp_path)
