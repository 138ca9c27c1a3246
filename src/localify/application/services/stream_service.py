"""Range-aware file streaming for audio tracks and artwork."""

import asyncio
import logging
import os
import stat
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass

import aiofiles

from localify.domain.exceptions import EntityNotFoundException, StreamIOError
from localify.domain.ports import IPlayCountRecorder
from localify.domain.value_objects import ByteRange, parse_range_header
from localify.infrastructure.observability.error_formatting import describe_oserror
from localify.infrastructure.persistence import Database, PlayCountRepository

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_IMAGE_MAX_AGE = 31_536_000


@dataclass
class MediaStream:
    """Status, headers and a lazy body ready to hand to a StreamingResponse."""

    status_code: int
    headers: dict[str, str]
    media_type: str
    body: AsyncIterator[bytes]


class StreamService:
    """Opens files for streaming with 200/206 semantics.

    Hey future me - nothing is read until the response pulls from `body`, and the file handle
    lives inside the generator. When the client hangs up Starlette closes the generator and the
    `async with aiofiles.open()` closes the handle. Don't open the file up front!
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        image_cache_max_age: int = DEFAULT_IMAGE_MAX_AGE,
    ) -> None:
        self.chunk_size = chunk_size
        self.image_cache_max_age = image_cache_max_age

    async def open(
        self,
        path: str | None,
        mime_type: str,
        range_header: str | None = None,
        *,
        cacheable: bool = False,
        on_complete: Callable[[], None] | None = None,
    ) -> MediaStream:
        """Prepare a stream of a file, or a byte span of it.

        Args:
            path: Absolute file path (None means the asset has no file)
            mime_type: Content-Type of the response
            range_header: Raw Range header. Ignored for cacheable (artwork) responses
            cacheable: Long-lived public caching, no range support
            on_complete: Called once after the last byte of the file was yielded

        Raises:
            EntityNotFoundException: File missing or not readable
            InvalidRangeError: Range well-formed but not satisfiable
        """
        if not path:
            raise EntityNotFoundException("File", path, "no file path recorded")
        file_size = await asyncio.to_thread(self._readable_size, path)

        if cacheable:
            headers = {
                "Content-Length": str(file_size),
                "Cache-Control": f"public, max-age={self.image_cache_max_age}, immutable",
            }
            span = ByteRange.full(file_size)
            return MediaStream(
                status_code=200,
                headers=headers,
                media_type=mime_type,
                body=self._iter_span(path, span, None),
            )

        headers = {"Accept-Ranges": "bytes", "Cache-Control": "no-cache"}
        requested = parse_range_header(range_header, file_size)

        if requested is None:
            span = ByteRange.full(file_size)
            headers["Content-Length"] = str(file_size)
            status_code = 200
        else:
            span = requested
            headers["Content-Length"] = str(span.length)
            headers["Content-Range"] = span.content_range
            status_code = 206

        notify = on_complete if span is not None and span.reaches_end else None
        return MediaStream(
            status_code=status_code,
            headers=headers,
            media_type=mime_type,
            body=self._iter_span(path, span, notify),
        )

    @staticmethod
    def _readable_size(path: str) -> int:
        """Size of a readable regular file, else EntityNotFoundException."""
        try:
            st = os.stat(path)
        except OSError as e:
            raise EntityNotFoundException("File", path, describe_oserror(e)) from e
        if not stat.S_ISREG(st.st_mode):
            raise EntityNotFoundException("File", path, "not a regular file")
        if not os.access(path, os.R_OK):
            raise EntityNotFoundException("File", path, "not readable")
        return st.st_size

    async def _iter_span(
        self,
        path: str,
        span: ByteRange | None,
        on_complete: Callable[[], None] | None,
    ) -> AsyncIterator[bytes]:
        if span is None:
            # Empty file, nothing to send
            return

        remaining = span.length
        try:
            async with aiofiles.open(path, "rb") as f:
                await f.seek(span.start)
                while remaining > 0:
                    chunk = await f.read(min(self.chunk_size, remaining))
                    if not chunk:
                        raise StreamIOError(
                            path, f"file ended {remaining} bytes early (truncated?)"
                        )
                    remaining -= len(chunk)
                    yield chunk
        except OSError as e:
            logger.warning(f"Stream aborted for {path}: {describe_oserror(e)}")
            raise StreamIOError(path, describe_oserror(e)) from e

        if on_complete is not None:
            on_complete()


class DatabasePlayCountRecorder:
    """Records plays in the play_counts table."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def record_play(self, track_id: str) -> None:
        async with self._database.session_scope() as session:
            count = await PlayCountRepository(session).increment(track_id)
        logger.debug(f"Play recorded for track {track_id} (count={count})")


# Hey future me - the stream generator can't await the DB write (the response is already
# done), so the increment runs as its own task. We keep a strong reference in _tasks, asyncio
# only holds weak refs to tasks and an unreferenced one can vanish mid-flight.
class PlayCountNotifier:
    """Fire-and-forget play count recording. Failures are logged, never raised."""

    def __init__(self, recorder: IPlayCountRecorder) -> None:
        self._recorder = recorder
        self._tasks: set[asyncio.Task[None]] = set()

    def notify(self, track_id: str) -> None:
        """Schedule a play count increment for a track."""
        task = asyncio.get_running_loop().create_task(self._record(track_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _record(self, track_id: str) -> None:
        try:
            await self._recorder.record_play(track_id)
        except Exception as e:
            logger.warning(f"Could not record play for track {track_id}: {e}", exc_info=True)

    @property
    def pending(self) -> int:
        """Number of increments still in flight."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for all in-flight increments (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
