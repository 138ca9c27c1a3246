"""SQLAlchemy ORM models for Localify."""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# Hey future me, utc_now() ensures ALL timestamps are UTC! Never use datetime.now() without
# timezone - that's a "naive" datetime and comparisons with aware datetimes blow up.
def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


def new_id() -> str:
    """Generate a UUID string primary key."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models.

    All models inherit from this to use the same metadata registry.
    """

    pass


class ArtistModel(Base):
    """SQLAlchemy model for Artist entity.

    Created implicitly by the indexer from track/album artist tags. image_path and
    background_image_path are set by the (external) artist editing flow and served by
    GET /artists/{id}/image and GET /artists/{id}/background.
    """

    __tablename__ = "artists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    background_image_path: Mapped[str | None] = mapped_column(
        String(1024), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), onupdate=utc_now, nullable=True
    )

    albums: Mapped[list["AlbumModel"]] = relationship(
        "AlbumModel", back_populates="artist_ref"
    )
    tracks: Mapped[list["TrackModel"]] = relationship(
        "TrackModel", back_populates="artist_ref"
    )

    __table_args__ = (Index("ix_artists_name_lower", func.lower(name)),)


class AlbumModel(Base):
    """SQLAlchemy model for Album entity.

    Hey future me - album identity is (title, artist) case-insensitive. artist is the display
    string (album artist tag, else track artist) and may be NULL. Albums are never deleted by
    the indexer, even when their last track disappears.
    """

    __tablename__ = "albums"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    artist: Mapped[str | None] = mapped_column(String(255), nullable=True)
    artist_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="SET NULL"), nullable=True
    )
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cover_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), onupdate=utc_now, nullable=True
    )

    artist_ref: Mapped["ArtistModel | None"] = relationship(
        "ArtistModel", back_populates="albums"
    )
    tracks: Mapped[list["TrackModel"]] = relationship(
        "TrackModel", back_populates="album"
    )

    __table_args__ = (
        Index("ix_albums_title_artist_lower", func.lower(title), func.lower(artist)),
    )


# Hey future me, TrackModel is the BUSIEST table! path is the identity key and carries the
# UNIQUE index - the indexer relies on it to make a duplicate insert fail loudly instead of
# creating a second row for the same file.
class TrackModel(Base):
    """SQLAlchemy model for Track entity."""

    __tablename__ = "tracks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    path: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)
    filename: Mapped[str] = mapped_column(String(512), nullable=False)
    title: Mapped[str | None] = mapped_column(String(512), nullable=True, index=True)
    artist: Mapped[str | None] = mapped_column(String(255), nullable=True)
    artist_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="SET NULL"), nullable=True
    )
    album_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("albums.id", ondelete="SET NULL"), nullable=True
    )
    genre: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), onupdate=utc_now, nullable=True
    )

    artist_ref: Mapped["ArtistModel | None"] = relationship(
        "ArtistModel", back_populates="tracks"
    )
    album: Mapped["AlbumModel | None"] = relationship(
        "AlbumModel", back_populates="tracks"
    )

    __table_args__ = (Index("ix_tracks_album_id", "album_id"),)


class PlayCountModel(Base):
    """Per-track play counter, bumped when a stream reaches the last byte."""

    __tablename__ = "play_counts"

    track_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tracks.id", ondelete="CASCADE"), primary_key=True
    )
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_played_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
