"""Application services."""

from localify.application.services.directory_scanner import DirectoryScanner
from localify.application.services.library_indexing_service import (
    IndexingCoordinator,
    LibraryIndexingService,
)
from localify.application.services.metadata_extractor import (
    COVER_ART_FILENAMES,
    MutagenMetadataExtractor,
    clean_album_title,
)
from localify.application.services.stream_service import (
    DatabasePlayCountRecorder,
    MediaStream,
    PlayCountNotifier,
    StreamService,
)

__all__ = [
    "COVER_ART_FILENAMES",
    "DatabasePlayCountRecorder",
    "DirectoryScanner",
    "IndexingCoordinator",
    "LibraryIndexingService",
    "MediaStream",
    "MutagenMetadataExtractor",
    "PlayCountNotifier",
    "StreamService",
    "clean_album_title",
]
