"""Wire format of indexing progress messages (SSE and JSON)."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from localify.domain.entities import (
    IndexingComplete,
    IndexingEvent,
    IndexingFailed,
    IndexingProgress,
    Track,
)


class CamelModel(BaseModel):
    """Base for models serialized with camelCase keys (the web client expects them)."""

    model_config = ConfigDict(populate_by_name=True)


class TrackSummary(CamelModel):
    """Track snapshot included in the terminal message."""

    id: str
    path: str
    filename: str
    title: str | None = None
    artist: str | None = None
    artist_id: str | None = Field(default=None, alias="artistId")
    album_id: str | None = Field(default=None, alias="albumId")
    genre: str | None = None
    year: int | None = None
    duration: float | None = None
    mime_type: str = Field(alias="mimeType")

    @classmethod
    def from_track(cls, track: Track) -> "TrackSummary":
        return cls(
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
        )


class IndexingProgressMessage(CamelModel):
    """One progress tick."""

    status: Literal["progress"] = "progress"
    type: Literal["scanning", "processing", "cleanup"]
    current: int
    total: int | None = None
    current_file: str | None = Field(default=None, alias="currentFile")
    added: int
    removed: int
    unchanged: int


class IndexingCompleteMessage(CamelModel):
    """Terminal message of a successful run."""

    status: Literal["complete"] = "complete"
    message: str
    added_tracks: list[TrackSummary] = Field(alias="addedTracks")
    removed_tracks: list[TrackSummary] = Field(alias="removedTracks")
    unchanged_tracks: list[TrackSummary] = Field(alias="unchangedTracks")


class IndexingErrorMessage(CamelModel):
    """Terminal message of a failed run."""

    status: Literal["error"] = "error"
    message: str


IndexingMessage = IndexingProgressMessage | IndexingCompleteMessage | IndexingErrorMessage


def to_message(event: IndexingEvent) -> IndexingMessage:
    """Convert an engine event to its wire model."""
    if isinstance(event, IndexingProgress):
        return IndexingProgressMessage(
            type=event.phase.value,
            current=event.current,
            total=event.total,
            current_file=event.current_file,
            added=event.added,
            removed=event.removed,
            unchanged=event.unchanged,
        )
    if isinstance(event, IndexingComplete):
        report = event.report
        return IndexingCompleteMessage(
            message=event.message,
            added_tracks=[TrackSummary.from_track(t) for t in report.added],
            removed_tracks=[TrackSummary.from_track(t) for t in report.removed],
            unchanged_tracks=[TrackSummary.from_track(t) for t in report.unchanged],
        )
    if isinstance(event, IndexingFailed):
        return IndexingErrorMessage(message=event.message)
    raise TypeError(f"Unknown indexing event: {type(event).__name__}")


def to_json(message: IndexingMessage) -> str:
    """Serialize with camelCase keys. Progress ticks drop empty optional fields."""
    if isinstance(message, IndexingProgressMessage):
        return message.model_dump_json(by_alias=True, exclude_none=True)
    return message.model_dump_json(by_alias=True)
