"""API request/response schemas."""

from localify.api.schemas.indexing import (
    IndexingCompleteMessage,
    IndexingErrorMessage,
    IndexingMessage,
    IndexingProgressMessage,
    TrackSummary,
    to_json,
    to_message,
)

__all__ = [
    "IndexingCompleteMessage",
    "IndexingErrorMessage",
    "IndexingMessage",
    "IndexingProgressMessage",
    "TrackSummary",
    "to_json",
    "to_message",
]
