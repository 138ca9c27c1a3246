"""Domain value objects."""

from localify.domain.value_objects.byte_range import ByteRange, parse_range_header
from localify.domain.value_objects.media_types import (
    AUDIO_EXTENSIONS,
    AUDIO_MIME_TYPES,
    DEFAULT_MIME_TYPE,
    is_audio_file,
    mime_type_for,
)

__all__ = [
    "AUDIO_EXTENSIONS",
    "AUDIO_MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "ByteRange",
    "is_audio_file",
    "mime_type_for",
    "parse_range_header",
]
