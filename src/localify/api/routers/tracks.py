"""Track audio streaming."""

import logging
from functools import partial

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from localify.api.dependencies import (
    get_database,
    get_play_count_notifier,
    get_stream_service,
)
from localify.application.services import PlayCountNotifier, StreamService
from localify.domain.exceptions import EntityNotFoundException
from localify.infrastructure.persistence import Database, TrackRepository

logger = logging.getLogger(__name__)

router = APIRouter()


# Hey future me - the catalog lookup runs in its own short session_scope(), NOT a request-scoped
# session dependency. A stream can last as long as the song, holding a SQLite connection (and
# maybe a read lock) that whole time would block indexing writes.
@router.get("/{track_id}/stream")
async def stream_track(
    track_id: str,
    request: Request,
    db: Database = Depends(get_database),
    stream_service: StreamService = Depends(get_stream_service),
    notifier: PlayCountNotifier = Depends(get_play_count_notifier),
) -> StreamingResponse:
    """Stream a track's audio, honouring a single-span Range header.

    Returns:
        200 with the whole file, or 206 with the requested span

    Raises:
        EntityNotFoundException: Unknown track, or its file is missing/unreadable (404)
        InvalidRangeError: Range not satisfiable (416)
    """
    async with db.session_scope() as session:
        track = await TrackRepository(session).get_by_id(track_id)
    if track is None:
        raise EntityNotFoundException("Track", track_id)

    media = await stream_service.open(
        track.path,
        track.mime_type,
        request.headers.get("range"),
        on_complete=partial(notifier.notify, track.id),
    )
    logger.debug(
        f"Streaming {track.path} ({media.status_code})",
        extra={"track_id": track.id, "content_range": media.headers.get("Content-Range")},
    )
    return StreamingResponse(
        media.body,
        status_code=media.status_code,
        headers=media.headers,
        media_type=media.media_type,
    )
