"""Repository implementations for the catalog tables."""

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from localify.domain.entities import Album, Artist, Track
from localify.domain.exceptions import EntityNotFoundException
from localify.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    PlayCountModel,
    TrackModel,
    utc_now,
)


class ArtistRepository:
    """SQLAlchemy implementation of Artist repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _model_to_entity(model: ArtistModel) -> Artist:
        return Artist(
            id=model.id,
            name=model.name,
            description=model.description,
            image_path=model.image_path,
            background_image_path=model.background_image_path,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def add(self, artist: Artist) -> None:
        """Add a new artist."""
        model = ArtistModel(
            id=artist.id,
            name=artist.name,
            description=artist.description,
            image_path=artist.image_path,
            background_image_path=artist.background_image_path,
            created_at=artist.created_at,
            updated_at=artist.updated_at,
        )
        self.session.add(model)
        await self.session.flush()

    async def get_by_id(self, artist_id: str) -> Artist | None:
        """Get an artist by ID."""
        model = await self.session.get(ArtistModel, artist_id)
        if not model:
            return None
        return self._model_to_entity(model)

    async def get_by_name(self, name: str) -> Artist | None:
        """Get an artist by name (case-insensitive).

        Hey future me - "The Beatles" and "the beatles" are the SAME artist. Tags from
        different rippers disagree on casing all the time.
        """
        stmt = select(ArtistModel).where(func.lower(ArtistModel.name) == func.lower(name))
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        if not model:
            return None
        return self._model_to_entity(model)


class AlbumRepository:
    """SQLAlchemy implementation of Album repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    def _model_to_entity(self, model: AlbumModel) -> Album:
        """Convert AlbumModel to Album entity.

        Hey future me - this is the ONE place that maps DB -> Entity!
        When you add fields to Album entity, UPDATE THIS FUNCTION!
        """
        return Album(
            id=model.id,
            title=model.title,
            artist=model.artist,
            artist_id=model.artist_id,
            year=model.year,
            cover_path=model.cover_path,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def add(self, album: Album) -> None:
        """Add a new album."""
        model = AlbumModel(
            id=album.id,
            title=album.title,
            artist=album.artist,
            artist_id=album.artist_id,
            year=album.year,
            cover_path=album.cover_path,
            created_at=album.created_at,
            updated_at=album.updated_at,
        )
        self.session.add(model)
        await self.session.flush()

    async def get_by_id(self, album_id: str) -> Album | None:
        """Get an album by ID."""
        model = await self.session.get(AlbumModel, album_id)
        if not model:
            return None
        return self._model_to_entity(model)

    async def get_by_title_and_artist(
        self, title: str, artist: str | None
    ) -> Album | None:
        """Get an album by title and artist string.

        Uses case-insensitive matching via func.lower() on both sides of each comparison.
        A missing artist only matches albums that have no artist either.

        Args:
            title: Album title (case-insensitive)
            artist: Album artist display name, or None

        Returns:
            Album entity if found, None otherwise
        """
        stmt = select(AlbumModel).where(func.lower(AlbumModel.title) == func.lower(title))
        if artist is None:
            stmt = stmt.where(AlbumModel.artist.is_(None))
        else:
            stmt = stmt.where(func.lower(AlbumModel.artist) == func.lower(artist))
        result = await self.session.execute(stmt)
        model = result.scalars().first()

        if not model:
            return None

        return self._model_to_entity(model)

    async def set_cover_path(self, album_id: str, cover_path: str) -> None:
        """Attach a cover image path to an album."""
        stmt = (
            update(AlbumModel)
            .where(AlbumModel.id == album_id)
            .values(cover_path=cover_path, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Album", album_id)


class TrackRepository:
    """SQLAlchemy implementation of Track repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _model_to_entity(model: TrackModel) -> Track:
        return Track(
            id=model.id,
            path=model.path,
            filename=model.filename,
            mime_type=model.mime_type,
            title=model.title,
            artist=model.artist,
            artist_id=model.artist_id,
            album_id=model.album_id,
            genre=model.genre,
            year=model.year,
            duration=model.duration,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def add(self, track: Track) -> None:
        """Add a new track.

        Flushes immediately so a duplicate path surfaces as IntegrityError at the call site.
        """
        model = TrackModel(
            id=track.id,
            path=track.path,
            filename=track.filename,
            title=track.title,
            artist=track.artist,
            artist_id=track.artist_id,
            album_id=track.album_id,
            genre=track.genre,
            year=track.year,
            duration=track.duration,
            mime_type=track.mime_type,
            created_at=track.created_at,
            updated_at=track.updated_at,
        )
        self.session.add(model)
        await self.session.flush()

    async def delete(self, track_id: str) -> None:
        """Delete a track."""
        stmt = delete(TrackModel).where(TrackModel.id == track_id)
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Track", track_id)

    async def get_by_id(self, track_id: str) -> Track | None:
        """Get a track by ID."""
        model = await self.session.get(TrackModel, track_id)
        if not model:
            return None
        return self._model_to_entity(model)

    # Hey future me - limit=None means EVERYTHING. The indexer needs the full catalog to
    # compute the removed set, the API uses pagination.
    async def list_all(self, limit: int | None = None, offset: int = 0) -> list[Track]:
        """List tracks ordered by path."""
        stmt = select(TrackModel).order_by(TrackModel.path).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]


class PlayCountRepository:
    """Per-track play counters."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def increment(self, track_id: str) -> int:
        """Bump the play count of a track, creating the row on first play.

        Returns:
            The new count.

        Raises:
            EntityNotFoundException: The track does not exist (deleted mid-stream).
        """
        now = utc_now()
        stmt = (
            update(PlayCountModel)
            .where(PlayCountModel.track_id == track_id)
            .values(count=PlayCountModel.count + 1, last_played_at=now)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            if await self.session.get(TrackModel, track_id) is None:
                raise EntityNotFoundException("Track", track_id)
            self.session.add(
                PlayCountModel(track_id=track_id, count=1, last_played_at=now)
            )
            await self.session.flush()
            return 1
        return await self.get(track_id)

    async def get(self, track_id: str) -> int:
        """Return the play count of a track (0 if never played)."""
        stmt = select(PlayCountModel.count).where(PlayCountModel.track_id == track_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
