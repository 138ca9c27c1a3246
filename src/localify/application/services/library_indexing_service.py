# Hey future me - this is the heart of the library! It reconciles what's on disk with what's in
# the catalog and reports every step as a typed event. Key rules:
# 1. PATH-ONLY IDENTITY - a track whose path is still on disk is "unchanged", tags are NOT
#    re-read. Edited tags need a rename (or a DB wipe) to show up.
# 2. ONE TRANSACTION PER FILE - a crash mid-run leaves every finished file committed.
# 3. PER-FILE ERRORS NEVER ABORT THE RUN - a corrupt MP3 is logged and skipped.
# 4. NO SESSION IS HELD ACROSS A YIELD - a client that disconnects mid-stream just stops the
#    generator, there's never a half-open transaction waiting on the consumer.
"""Library indexing engine: scan, extract, reconcile, report."""

import asyncio
import logging
import os
import uuid
from collections.abc import AsyncIterator
from contextlib import aclosing, asynccontextmanager
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localify.application.services.directory_scanner import DirectoryScanner
from localify.application.services.metadata_extractor import clean_album_title
from localify.domain.entities import (
    Album,
    Artist,
    IndexingComplete,
    IndexingEvent,
    IndexingFailed,
    IndexingPhase,
    IndexingProgress,
    IndexingReport,
    Track,
    TrackMetadata,
)
from localify.domain.exceptions import (
    EntityNotFoundException,
    ExtractionError,
    IndexingInProgressError,
    ScanRootUnreadableError,
    StoreWriteError,
)
from localify.domain.ports import IMetadataExtractor
from localify.infrastructure.persistence import (
    AlbumRepository,
    ArtistRepository,
    Database,
    TrackRepository,
)

logger = logging.getLogger(__name__)


class LibraryIndexingService:
    """Reconciles the media directory against the catalog.

    One instance per run is fine, it holds no state between runs. Use IndexingCoordinator
    to make sure only one run is active at a time.
    """

    def __init__(
        self,
        database: Database,
        scanner: DirectoryScanner,
        extractor: IMetadataExtractor,
        media_root: str | Path,
    ) -> None:
        """Initialize indexing service.

        Args:
            database: Catalog database
            scanner: Directory scanner
            extractor: Metadata extractor (mutagen in production, fakes in tests)
            media_root: Directory to index
        """
        self._database = database
        self._scanner = scanner
        self._extractor = extractor
        self._media_root = os.path.abspath(os.fspath(media_root))

    @property
    def media_root(self) -> str:
        """Absolute path of the directory this service indexes."""
        return self._media_root

    async def verify_root(self) -> None:
        """Raise ScanRootUnreadableError if the media root can't be listed."""
        await asyncio.to_thread(self._scanner.ensure_readable_root, self._media_root)

    async def run(self) -> AsyncIterator[IndexingEvent]:
        """Run one indexing pass, yielding progress and exactly one terminal event.

        Closing the iterator early stops the run between files.
        """
        try:
            async with aclosing(self._run()) as events:
                async for event in events:
                    yield event
        except Exception as e:
            logger.exception(f"Indexing of {self._media_root} failed")
            yield IndexingFailed(message=f"Indexing failed: {e}")

    async def run_to_completion(self) -> IndexingComplete | IndexingFailed:
        """Drain run() and return only the terminal event."""
        async with aclosing(self.run()) as events:
            async for event in events:
                if isinstance(event, IndexingComplete | IndexingFailed):
                    return event
        raise RuntimeError("Indexing run ended without a terminal event")

    async def _run(self) -> AsyncIterator[IndexingEvent]:
        root = self._media_root
        logger.info(f"Indexing started: {root}")

        # --- Scanning ---------------------------------------------------------------
        try:
            await asyncio.to_thread(self._scanner.ensure_readable_root, root)
            candidates = await asyncio.to_thread(lambda: list(self._scanner.scan(root)))
        except ScanRootUnreadableError as e:
            logger.error(e.message)
            yield IndexingFailed(message=e.message)
            return

        total = len(candidates)
        report = IndexingReport()
        yield self._progress(IndexingPhase.SCANNING, report, current=total, total=total)

        # --- Processing -------------------------------------------------------------
        try:
            async with self._database.session_scope() as session:
                existing = {
                    track.path: track
                    for track in await TrackRepository(session).list_all()
                }
        except SQLAlchemyError as e:
            logger.error(f"Could not load catalog: {e}", exc_info=True)
            yield IndexingFailed(message=f"Could not load catalog: {e}")
            return

        for current, path in enumerate(candidates, start=1):
            known = existing.pop(path, None)
            if known is not None:
                report.unchanged.append(known)
            else:
                added = await self._index_file(path)
                if added is not None:
                    report.added.append(added)
            yield self._progress(
                IndexingPhase.PROCESSING,
                report,
                current=current,
                total=total,
                current_file=path,
            )

        # --- Cleanup ----------------------------------------------------------------
        # Whatever is left in `existing` was not seen on disk this run
        stale = list(existing.values())
        yield self._progress(IndexingPhase.CLEANUP, report, current=0, total=len(stale))

        for current, track in enumerate(stale, start=1):
            if await self._remove_track(track):
                report.removed.append(track)
            yield self._progress(
                IndexingPhase.CLEANUP,
                report,
                current=current,
                total=len(stale),
                current_file=track.path,
            )

        # --- Complete ---------------------------------------------------------------
        logger.info(report.summary)
        yield IndexingComplete(report=report, message=report.summary)

    async def _index_file(self, path: str) -> Track | None:
        """Extract and insert one new file. Returns None (and logs) if it had to be skipped."""
        try:
            metadata = await asyncio.to_thread(self._extractor.extract, path)
        except ExtractionError as e:
            logger.warning(f"Skipping file: {e.message}")
            return None

        try:
            async with self._database.session_scope() as session:
                track = await self._store_track(session, path, metadata)
        except SQLAlchemyError as e:
            error = StoreWriteError(path, str(e.orig) if getattr(e, "orig", None) else str(e))
            logger.warning(f"Skipping file: {error.message}", exc_info=True)
            return None

        logger.debug(f"Added track: {path}")
        return track

    async def _store_track(
        self, session: AsyncSession, path: str, metadata: TrackMetadata
    ) -> Track:
        artists = ArtistRepository(session)

        artist = None
        if metadata.artist:
            artist = await self._get_or_create_artist(artists, metadata.artist)

        album_id = None
        if metadata.album:
            album = await self._get_or_create_album(session, artists, path, metadata)
            album_id = album.id

        track = Track(
            id=str(uuid.uuid4()),
            path=path,
            filename=os.path.basename(path),
            mime_type=metadata.mime_type,
            title=metadata.title,
            artist=metadata.artist,
            artist_id=artist.id if artist else None,
            album_id=album_id,
            genre=metadata.genre,
            year=metadata.year,
            duration=metadata.duration_seconds,
        )
        await TrackRepository(session).add(track)
        return track

    async def _get_or_create_artist(self, artists: ArtistRepository, name: str) -> Artist:
        artist = await artists.get_by_name(name)
        if artist is None:
            artist = Artist(id=str(uuid.uuid4()), name=name)
            await artists.add(artist)
            logger.debug(f"Created artist: {name}")
        return artist

    # Hey future me - album artist is the TPE2/albumartist tag when present, else the track
    # artist. Without that, every guest-feature track on a compilation would spawn its own
    # album. Cover lookup runs for new albums AND for old albums that still have no cover, so
    # dropping a cover.jpg next to the files and re-indexing picks it up.
    async def _get_or_create_album(
        self,
        session: AsyncSession,
        artists: ArtistRepository,
        path: str,
        metadata: TrackMetadata,
    ) -> Album:
        albums = AlbumRepository(session)
        title = clean_album_title(metadata.album or "")
        album_artist = metadata.album_artist or metadata.artist

        album = await albums.get_by_title_and_artist(title, album_artist)
        if album is None:
            artist_ref = (
                await self._get_or_create_artist(artists, album_artist)
                if album_artist
                else None
            )
            album = Album(
                id=str(uuid.uuid4()),
                title=title,
                artist=album_artist,
                artist_id=artist_ref.id if artist_ref else None,
                year=metadata.year,
            )
            await albums.add(album)
            logger.debug(f"Created album: {title} ({album_artist or 'unknown artist'})")

        if album.cover_path is None:
            cover = await asyncio.to_thread(
                self._extractor.find_cover_art, os.path.dirname(path)
            )
            if cover:
                await albums.set_cover_path(album.id, cover)
                album.cover_path = cover

        return album

    async def _remove_track(self, track: Track) -> bool:
        """Delete a stale track in its own transaction. False if the delete failed."""
        try:
            async with self._database.session_scope() as session:
                await TrackRepository(session).delete(track.id)
        except EntityNotFoundException:
            # Already gone, the catalog agrees with the disk
            logger.debug(f"Stale track already removed: {track.path}")
        except SQLAlchemyError as e:
            error = StoreWriteError(track.path, str(e))
            logger.warning(f"Could not remove stale track: {error.message}", exc_info=True)
            return False
        logger.debug(f"Removed track: {track.path}")
        return True

    @staticmethod
    def _progress(
        phase: IndexingPhase,
        report: IndexingReport,
        current: int,
        total: int | None = None,
        current_file: str | None = None,
    ) -> IndexingProgress:
        return IndexingProgress(
            phase=phase,
            current=current,
            total=total,
            current_file=current_file,
            added=len(report.added),
            removed=len(report.removed),
            unchanged=len(report.unchanged),
        )


class IndexingCoordinator:
    """Admits at most one indexing run per application.

    Hey future me - a plain flag is enough, everything runs on one event loop and the
    check-and-set in claim() has no await in between.
    """

    def __init__(self) -> None:
        self._running = False

    @property
    def is_running(self) -> bool:
        """True while a run holds the claim."""
        return self._running

    @asynccontextmanager
    async def claim(self) -> AsyncIterator[None]:
        """Hold the single indexing slot for the duration of the block.

        Raises:
            IndexingInProgressError: Another run holds the slot
        """
        if self._running:
            raise IndexingInProgressError()
        self._running = True
        try:
            yield
        finally:
            self._running = False

    async def run(self, service: LibraryIndexingService) -> AsyncIterator[IndexingEvent]:
        """Run the service while holding the claim, releasing it when the iterator closes."""
        async with self.claim():
            async with aclosing(service.run()) as events:
                async for event in events:
                    yield event
