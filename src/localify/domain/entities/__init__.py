"""Domain entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from localify.domain.entities.indexing import (
    IndexingComplete,
    IndexingEvent,
    IndexingFailed,
    IndexingPhase,
    IndexingProgress,
    IndexingReport,
)


# Hey future me, Track identity is the absolute file PATH, not the id! The id is a surrogate key
# for URLs (/tracks/{id}/stream). Re-indexing matches on path only - if a file is renamed it
# shows up as one removed + one added track.
@dataclass
class Track:
    """Track entity representing one audio file in the catalog."""

    id: str
    path: str
    filename: str
    mime_type: str
    title: str | None = None
    artist: str | None = None
    artist_id: str | None = None
    album_id: str | None = None
    genre: str | None = None
    year: int | None = None
    duration: float | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate track data."""
        if not self.path:
            raise ValueError("Track path cannot be empty")
        if not self.filename:
            raise ValueError("Track filename cannot be empty")
        if self.duration is not None and self.duration < 0:
            raise ValueError("Duration cannot be negative")


@dataclass
class Album:
    """Album entity. Identity is (title, artist), compared case-insensitively."""

    id: str
    title: str
    artist: str | None = None
    artist_id: str | None = None
    year: int | None = None
    cover_path: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate album data."""
        if not self.title or not self.title.strip():
            raise ValueError("Album title cannot be empty")


@dataclass
class Artist:
    """Artist entity. Identity is the name."""

    id: str
    name: str
    description: str | None = None
    image_path: str | None = None
    background_image_path: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate artist data."""
        if not self.name or not self.name.strip():
            raise ValueError("Artist name cannot be empty")


@dataclass(frozen=True)
class TrackMetadata:
    """Tag-level metadata read from one audio file.

    Every tag field is optional - missing or malformed tags become None.
    mime_type is always set (derived from the extension).
    """

    mime_type: str
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    album_artist: str | None = None
    year: int | None = None
    genre: str | None = None
    duration_seconds: float | None = None


__all__ = [
    "Album",
    "Artist",
    "IndexingComplete",
    "IndexingEvent",
    "IndexingFailed",
    "IndexingPhase",
    "IndexingProgress",
    "IndexingReport",
    "Track",
    "TrackMetadata",
]
