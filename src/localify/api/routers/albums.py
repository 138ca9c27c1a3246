"""Album artwork."""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from localify.api.dependencies import get_database, get_stream_service
from localify.application.services import StreamService
from localify.domain.exceptions import EntityNotFoundException
from localify.domain.value_objects import mime_type_for
from localify.infrastructure.persistence import AlbumRepository, Database

router = APIRouter()


@router.get("/{album_id}/cover")
async def get_album_cover(
    album_id: str,
    db: Database = Depends(get_database),
    stream_service: StreamService = Depends(get_stream_service),
) -> StreamingResponse:
    """Serve the album cover found during indexing, with long-lived cache headers."""
    async with db.session_scope() as session:
        album = await AlbumRepository(session).get_by_id(album_id)
    if album is None:
        raise EntityNotFoundException("Album", album_id)
    if not album.cover_path:
        raise EntityNotFoundException("Album cover", album_id)

    media = await stream_service.open(
        album.cover_path, mime_type_for(album.cover_path), cacheable=True
    )
    return StreamingResponse(
        media.body,
        status_code=media.status_code,
        headers=media.headers,
        media_type=media.media_type,
    )
