"""Domain ports (interfaces) implemented by the application and infrastructure layers.

Future me note:
The indexing engine and the stream service depend on these protocols, not on the concrete
mutagen extractor or the SQL play-count table. Tests swap in fakes.
"""

from pathlib import Path
from typing import Protocol

from localify.domain.entities import TrackMetadata


class IMetadataExtractor(Protocol):
    """Reads tag metadata from one audio file."""

    def extract(self, file_path: str) -> TrackMetadata:
        """Return metadata or raise ExtractionError. Blocking - call from a worker thread."""
        ...

    def find_cover_art(self, directory: str | Path) -> str | None:
        """Return the path of a conventional cover image in the directory, if any."""
        ...


class IPlayCountRecorder(Protocol):
    """External collaborator notified when a track has been streamed to its last byte."""

    async def record_play(self, track_id: str) -> None:
        """Increment the play count of a track."""
        ...


__all__ = ["IMetadataExtractor", "IPlayCountRecorder"]
