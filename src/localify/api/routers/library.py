"""Library indexing endpoint.

Hey future me - POST /index streams progress as Server-Sent Events by default. Each message is
`data: <json>\\n\\n` with a "status" of progress, complete or error. The web client reads the
stream with fetch() + a reader, not EventSource (EventSource can't POST), so there are no
`event:` or `id:` lines. ?stream=false waits for the whole run and returns the final message.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response, StreamingResponse

from localify.api.dependencies import (
    get_indexing_coordinator,
    get_indexing_service,
    require_admin,
)
from localify.api.schemas import IndexingErrorMessage, to_json, to_message
from localify.application.services import IndexingCoordinator, LibraryIndexingService
from localify.domain.entities import IndexingFailed
from localify.domain.exceptions import IndexingInProgressError

logger = logging.getLogger(__name__)

router = APIRouter()


def _sse(payload: str) -> str:
    return f"data: {payload}\n\n"


@router.post("/index", dependencies=[Depends(require_admin)])
async def index_library(
    stream: bool = Query(default=True, description="Stream progress as SSE"),
    coordinator: IndexingCoordinator = Depends(get_indexing_coordinator),
    service: LibraryIndexingService = Depends(get_indexing_service),
) -> Response:
    """Index the media directory.

    Returns:
        text/event-stream of progress messages, or the terminal message as JSON
        when stream=false

    Raises:
        IndexingInProgressError: Another run is active (409)
    """
    if coordinator.is_running:
        raise IndexingInProgressError()

    logger.info(
        f"Indexing requested for {service.media_root}",
        extra={"media_root": service.media_root, "stream": stream},
    )

    if not stream:
        await service.verify_root()
        async with coordinator.claim():
            result = await service.run_to_completion()
        if isinstance(result, IndexingFailed):
            return JSONResponse(status_code=500, content={"detail": result.message})
        return Response(content=to_json(to_message(result)), media_type="application/json")

    async def event_generator() -> AsyncIterator[str]:
        """Relay engine events as SSE messages."""
        try:
            async with aclosing(coordinator.run(service)) as events:
                async for event in events:
                    yield _sse(to_json(to_message(event)))
        except IndexingInProgressError as e:
            # Lost the race between the is_running check and the claim
            yield _sse(to_json(IndexingErrorMessage(message=e.message)))

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
