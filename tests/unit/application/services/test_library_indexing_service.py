"""Tests for LibraryIndexingService and IndexingCoordinator."""

import os
from pathlib import Path

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from localify.application.services import (
    DirectoryScanner,
    IndexingCoordinator,
    LibraryIndexingService,
)
from localify.domain.entities import (
    IndexingComplete,
    IndexingFailed,
    IndexingPhase,
    IndexingProgress,
    Track,
    TrackMetadata,
)
from localify.domain.exceptions import (
    ExtractionError,
    IndexingInProgressError,
    ScanRootUnreadableError,
)
from localify.infrastructure.persistence import (
    AlbumRepository,
    ArtistRepository,
    Database,
    TrackRepository,
)


class FakeExtractor:
    """Extractor returning canned metadata keyed by file name.

    Files named "bad*" raise ExtractionError, unknown files get bare metadata.
    """

    def __init__(self, tags: dict[str, dict] | None = None) -> None:
        self.tags = tags or {}
        self.extracted: list[str] = []

    def extract(self, file_path: str) -> TrackMetadata:
        self.extracted.append(file_path)
        name = os.path.basename(file_path)
        if name.startswith("bad"):
            raise ExtractionError(file_path, "corrupt")
        return TrackMetadata(mime_type="audio/mpeg", **self.tags.get(name, {}))

    def find_cover_art(self, directory: str | Path) -> str | None:
        candidate = os.path.join(os.fspath(directory), "cover.jpg")
        return candidate if os.path.isfile(candidate) else None


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\xff\xfb" + b"\x00" * 64)
    return path


def _service(database: Database, media_dir: Path, extractor: FakeExtractor) -> LibraryIndexingService:
    return LibraryIndexingService(database, DirectoryScanner(), extractor, media_dir)


async def _collect(service: LibraryIndexingService) -> list:
    return [event async for event in service.run()]


async def _all_tracks(database: Database):
    async with database.session_scope() as session:
        return await TrackRepository(session).list_all()


class TestIndexingRun:
    """Reconciliation of disk and catalog."""

    @pytest.mark.asyncio
    async def test_first_run_adds_every_file(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "a.mp3")
        _touch(media_dir / "b.mp3")
        extractor = FakeExtractor({"a.mp3": {"title": "Song A", "artist": "Band"}})

        events = await _collect(_service(database, media_dir, extractor))

        scanning, first, second, cleanup, complete = events
        assert scanning == IndexingProgress(
            phase=IndexingPhase.SCANNING, current=2, total=2, added=0, removed=0, unchanged=0
        )
        assert first.phase == IndexingPhase.PROCESSING
        assert (first.current, first.total, first.added) == (1, 2, 1)
        assert first.current_file == str(media_dir / "a.mp3")
        assert (second.current, second.added) == (2, 2)
        assert cleanup.phase == IndexingPhase.CLEANUP
        assert (cleanup.current, cleanup.total) == (0, 0)
        assert isinstance(complete, IndexingComplete)
        assert len(complete.report.added) == 2
        assert complete.message == "Indexing complete: 2 added, 0 removed, 0 unchanged"

        tracks = await _all_tracks(database)
        assert [t.path for t in tracks] == [str(media_dir / "a.mp3"), str(media_dir / "b.mp3")]
        song_a = tracks[0]
        assert song_a.title == "Song A"
        assert song_a.filename == "a.mp3"
        assert song_a.mime_type == "audio/mpeg"
        assert song_a.artist_id is not None

    @pytest.mark.asyncio
    async def test_rerun_without_changes_is_a_noop(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "a.mp3")
        _touch(media_dir / "b.mp3")
        await _service(database, media_dir, FakeExtractor()).run_to_completion()
        before = await _all_tracks(database)

        extractor = FakeExtractor()
        result = await _service(database, media_dir, extractor).run_to_completion()

        assert isinstance(result, IndexingComplete)
        assert result.report.added == []
        assert result.report.removed == []
        assert len(result.report.unchanged) == 2
        # Known paths are not re-read
        assert extractor.extracted == []
        after = await _all_tracks(database)
        assert [(t.id, t.path) for t in after] == [(t.id, t.path) for t in before]

    @pytest.mark.asyncio
    async def test_deleted_file_is_removed(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "keep.mp3")
        gone = _touch(media_dir / "gone.mp3")
        await _service(database, media_dir, FakeExtractor()).run_to_completion()

        gone.unlink()
        events = await _collect(_service(database, media_dir, FakeExtractor()))

        cleanup = [e for e in events if isinstance(e, IndexingProgress) and e.phase == IndexingPhase.CLEANUP]
        assert [(e.current, e.total) for e in cleanup] == [(0, 1), (1, 1)]
        assert cleanup[-1].current_file == str(gone)
        assert cleanup[-1].removed == 1

        complete = events[-1]
        assert isinstance(complete, IndexingComplete)
        assert [t.path for t in complete.report.removed] == [str(gone)]
        assert [t.path for t in complete.report.unchanged] == [str(media_dir / "keep.mp3")]
        assert [t.path for t in await _all_tracks(database)] == [str(media_dir / "keep.mp3")]

    @pytest.mark.asyncio
    async def test_unreadable_file_is_skipped(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "a.mp3")
        _touch(media_dir / "bad.mp3")
        _touch(media_dir / "c.mp3")

        events = await _collect(_service(database, media_dir, FakeExtractor()))

        processing = [e for e in events if isinstance(e, IndexingProgress) and e.phase == IndexingPhase.PROCESSING]
        assert [e.current for e in processing] == [1, 2, 3]
        assert [e.added for e in processing] == [1, 1, 2]
        complete = events[-1]
        assert isinstance(complete, IndexingComplete)
        assert len(complete.report.added) == 2
        paths = [t.path for t in await _all_tracks(database)]
        assert str(media_dir / "bad.mp3") not in paths

    @pytest.mark.asyncio
    async def test_skipped_file_is_retried_next_run(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "bad.mp3")
        await _service(database, media_dir, FakeExtractor()).run_to_completion()

        extractor = FakeExtractor()
        await _service(database, media_dir, extractor).run_to_completion()

        assert extractor.extracted == [str(media_dir / "bad.mp3")]

    @pytest.mark.asyncio
    async def test_missing_root_fails_with_single_event(self, database: Database, tmp_path: Path) -> None:
        service = _service(database, tmp_path / "nowhere", FakeExtractor())

        events = await _collect(service)

        assert len(events) == 1
        assert isinstance(events[0], IndexingFailed)
        assert "does not exist" in events[0].message

    @pytest.mark.asyncio
    async def test_empty_root_completes(self, database: Database, media_dir: Path) -> None:
        events = await _collect(_service(database, media_dir, FakeExtractor()))

        assert [type(e) for e in events] == [IndexingProgress, IndexingProgress, IndexingComplete]
        assert events[0].total == 0
        assert events[-1].message == "Indexing complete: 0 added, 0 removed, 0 unchanged"

    @pytest.mark.asyncio
    async def test_verify_root(self, database: Database, media_dir: Path, tmp_path: Path) -> None:
        await _service(database, media_dir, FakeExtractor()).verify_root()

        with pytest.raises(ScanRootUnreadableError):
            await _service(database, tmp_path / "missing", FakeExtractor()).verify_root()

    @pytest.mark.asyncio
    async def test_closing_iterator_stops_between_files(self, database: Database, media_dir: Path) -> None:
        for name in ("a.mp3", "b.mp3", "c.mp3"):
            _touch(media_dir / name)
        extractor = FakeExtractor()
        run = _service(database, media_dir, extractor).run()

        async for event in run:
            if isinstance(event, IndexingProgress) and event.phase == IndexingPhase.PROCESSING:
                break
        await run.aclose()

        assert extractor.extracted == [str(media_dir / "a.mp3")]
        assert [t.path for t in await _all_tracks(database)] == [str(media_dir / "a.mp3")]

    @pytest.mark.asyncio
    async def test_store_write_failure_skips_only_that_file(
        self, database: Database, media_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for name in ("a.mp3", "b.mp3", "c.mp3"):
            _touch(media_dir / name)
        original_add = TrackRepository.add

        async def failing_add(self: TrackRepository, track: Track) -> None:
            if track.filename == "b.mp3":
                raise IntegrityError("INSERT INTO tracks", {}, Exception("disk I/O error"))
            await original_add(self, track)

        monkeypatch.setattr(TrackRepository, "add", failing_add)

        result = await _service(database, media_dir, FakeExtractor()).run_to_completion()

        assert isinstance(result, IndexingComplete)
        assert [t.filename for t in result.report.added] == ["a.mp3", "c.mp3"]
        paths = [t.path for t in await _all_tracks(database)]
        assert paths == [str(media_dir / "a.mp3"), str(media_dir / "c.mp3")]

    @pytest.mark.asyncio
    async def test_failed_removal_keeps_track_out_of_every_bucket(
        self, database: Database, media_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _touch(media_dir / "keep.mp3")
        gone = _touch(media_dir / "gone.mp3")
        await _service(database, media_dir, FakeExtractor()).run_to_completion()
        gone.unlink()

        async def failing_delete(self: TrackRepository, track_id: str) -> None:
            raise OperationalError("DELETE FROM tracks", {}, Exception("database is locked"))

        monkeypatch.setattr(TrackRepository, "delete", failing_delete)

        events = await _collect(_service(database, media_dir, FakeExtractor()))

        cleanup = [e for e in events if isinstance(e, IndexingProgress) and e.phase == IndexingPhase.CLEANUP]
        assert [(e.current, e.total, e.removed) for e in cleanup] == [(0, 1, 0), (1, 1, 0)]
        complete = events[-1]
        assert isinstance(complete, IndexingComplete)
        assert complete.report.removed == []
        assert [t.path for t in complete.report.unchanged] == [str(media_dir / "keep.mp3")]
        assert complete.report.added == []
        paths = [t.path for t in await _all_tracks(database)]
        assert str(gone) in paths


class TestCatalogGrouping:
    """Artist and album records created while indexing."""

    @pytest.mark.asyncio
    async def test_disc_folders_share_one_album(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "cd1" / "01.mp3")
        _touch(media_dir / "cd2" / "01.mp3")
        class DiscExtractor(FakeExtractor):
            def extract(self, file_path: str) -> TrackMetadata:
                disc = "1" if "cd1" in file_path else "2"
                return TrackMetadata(
                    mime_type="audio/mpeg",
                    title=f"Track {disc}",
                    artist="Band",
                    album=f"Greatest Hits (CD {disc})",
                )

        await _service(database, media_dir, DiscExtractor()).run_to_completion()

        tracks = await _all_tracks(database)
        assert len(tracks) == 2
        assert tracks[0].album_id is not None
        assert tracks[0].album_id == tracks[1].album_id
        async with database.session_scope() as session:
            album = await AlbumRepository(session).get_by_id(tracks[0].album_id)
        assert album.title == "Greatest Hits"
        assert album.artist == "Band"

    @pytest.mark.asyncio
    async def test_album_artist_groups_compilation(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "1.mp3")
        _touch(media_dir / "2.mp3")
        extractor = FakeExtractor(
            {
                "1.mp3": {"artist": "Singer A", "album": "Hits", "album_artist": "Various Artists"},
                "2.mp3": {"artist": "Singer B", "album": "hits", "album_artist": "various artists"},
            }
        )

        await _service(database, media_dir, extractor).run_to_completion()

        tracks = await _all_tracks(database)
        assert tracks[0].album_id == tracks[1].album_id
        assert tracks[0].artist_id != tracks[1].artist_id
        async with database.session_scope() as session:
            artists = ArtistRepository(session)
            assert await artists.get_by_name("Various Artists") is not None
            assert await artists.get_by_name("singer a") is not None

    @pytest.mark.asyncio
    async def test_same_title_different_artist_are_different_albums(
        self, database: Database, media_dir: Path
    ) -> None:
        _touch(media_dir / "1.mp3")
        _touch(media_dir / "2.mp3")
        extractor = FakeExtractor(
            {
                "1.mp3": {"artist": "Band A", "album": "Greatest Hits"},
                "2.mp3": {"artist": "Band B", "album": "Greatest Hits"},
            }
        )

        await _service(database, media_dir, extractor).run_to_completion()

        tracks = await _all_tracks(database)
        assert tracks[0].album_id != tracks[1].album_id

    @pytest.mark.asyncio
    async def test_accented_names_reuse_artist_and_album(
        self, database: Database, media_dir: Path
    ) -> None:
        tags = {"artist": "Édith Piaf", "album": "Été"}
        for name in ("a.mp3", "b.mp3", "c.mp3"):
            _touch(media_dir / name)
        extractor = FakeExtractor({name: tags for name in ("a.mp3", "b.mp3", "c.mp3")})

        result = await _service(database, media_dir, extractor).run_to_completion()

        assert isinstance(result, IndexingComplete)
        assert len(result.report.added) == 3
        tracks = await _all_tracks(database)
        assert len(tracks) == 3
        assert len({t.album_id for t in tracks}) == 1
        assert len({t.artist_id for t in tracks}) == 1
        async with database.session_scope() as session:
            artist = await ArtistRepository(session).get_by_name("Édith Piaf")
            album = await AlbumRepository(session).get_by_title_and_artist("Été", "Édith Piaf")
        assert artist is not None
        assert artist.id == tracks[0].artist_id
        assert album is not None
        assert album.id == tracks[0].album_id

    @pytest.mark.asyncio
    async def test_track_without_album_has_no_album(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "single.mp3")

        await _service(database, media_dir, FakeExtractor()).run_to_completion()

        (track,) = await _all_tracks(database)
        assert track.album_id is None
        assert track.artist_id is None

    @pytest.mark.asyncio
    async def test_cover_art_is_attached_to_album(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "album" / "01.mp3")
        cover = media_dir / "album" / "cover.jpg"
        cover.write_bytes(b"\xff\xd8\xff")
        extractor = FakeExtractor({"01.mp3": {"artist": "Band", "album": "Record"}})

        await _service(database, media_dir, extractor).run_to_completion()

        (track,) = await _all_tracks(database)
        async with database.session_scope() as session:
            album = await AlbumRepository(session).get_by_id(track.album_id)
        assert album.cover_path == str(cover)

    @pytest.mark.asyncio
    async def test_cover_added_later_is_picked_up(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "album" / "01.mp3")
        extractor = FakeExtractor(
            {
                "01.mp3": {"artist": "Band", "album": "Record"},
                "02.mp3": {"artist": "Band", "album": "Record"},
            }
        )
        await _service(database, media_dir, extractor).run_to_completion()

        _touch(media_dir / "album" / "02.mp3")
        cover = media_dir / "album" / "cover.jpg"
        cover.write_bytes(b"\xff\xd8\xff")
        await _service(database, media_dir, extractor).run_to_completion()

        tracks = await _all_tracks(database)
        assert tracks[0].album_id == tracks[1].album_id
        async with database.session_scope() as session:
            album = await AlbumRepository(session).get_by_id(tracks[0].album_id)
        assert album.cover_path == str(cover)


class TestIndexingCoordinator:
    """Single-run admission."""

    @pytest.mark.asyncio
    async def test_second_claim_is_rejected(self) -> None:
        coordinator = IndexingCoordinator()

        async with coordinator.claim():
            assert coordinator.is_running
            with pytest.raises(IndexingInProgressError):
                async with coordinator.claim():
                    pass

        assert not coordinator.is_running

    @pytest.mark.asyncio
    async def test_claim_released_after_error(self) -> None:
        coordinator = IndexingCoordinator()

        with pytest.raises(RuntimeError):
            async with coordinator.claim():
                raise RuntimeError("boom")

        assert not coordinator.is_running

    @pytest.mark.asyncio
    async def test_run_holds_claim_until_closed(self, database: Database, media_dir: Path) -> None:
        _touch(media_dir / "a.mp3")
        coordinator = IndexingCoordinator()
        events = coordinator.run(_service(database, media_dir, FakeExtractor()))

        first = await events.__anext__()
        assert first.phase == IndexingPhase.SCANNING
        assert coordinator.is_running

        await events.aclose()
        assert not coordinator.is_running

    @pytest.mark.asyncio
    async def test_run_releases_claim_after_completion(self, database: Database, media_dir: Path) -> None:
        coordinator = IndexingCoordinator()

        events = [e async for e in coordinator.run(_service(database, media_dir, FakeExtractor()))]

        assert isinstance(events[-1], IndexingComplete)
        assert not coordinator.is_running
