"""Artist images."""

from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from localify.api.dependencies import get_database, get_stream_service
from localify.application.services import StreamService
from localify.domain.exceptions import EntityNotFoundException
from localify.domain.value_objects import mime_type_for
from localify.infrastructure.persistence import ArtistRepository, Database

router = APIRouter()


async def _serve_artist_image(
    artist_id: str,
    kind: Literal["image", "background"],
    db: Database,
    stream_service: StreamService,
) -> StreamingResponse:
    async with db.session_scope() as session:
        artist = await ArtistRepository(session).get_by_id(artist_id)
    if artist is None:
        raise EntityNotFoundException("Artist", artist_id)

    path = artist.image_path if kind == "image" else artist.background_image_path
    if not path:
        raise EntityNotFoundException(f"Artist {kind}", artist_id)

    media = await stream_service.open(path, mime_type_for(path), cacheable=True)
    return StreamingResponse(
        media.body,
        status_code=media.status_code,
        headers=media.headers,
        media_type=media.media_type,
    )


@router.get("/{artist_id}/image")
async def get_artist_image(
    artist_id: str,
    db: Database = Depends(get_database),
    stream_service: StreamService = Depends(get_stream_service),
) -> StreamingResponse:
    """Serve the artist's profile image."""
    return await _serve_artist_image(artist_id, "image", db, stream_service)


@router.get("/{artist_id}/background")
async def get_artist_background(
    artist_id: str,
    db: Database = Depends(get_database),
    stream_service: StreamService = Depends(get_stream_service),
) -> StreamingResponse:
    """Serve the artist's background (banner) image."""
    return await _serve_artist_image(artist_id, "background", db, stream_service)
