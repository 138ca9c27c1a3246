"""Supported audio formats and extension-based MIME type lookup."""

import mimetypes
from pathlib import Path

# Single source of truth for what the directory scanner picks up
AUDIO_EXTENSIONS = frozenset(
    {
        ".mp3",
        ".flac",
        ".wav",
        ".ogg",
        ".m4a",
        ".aac",
        ".opus",
        ".aiff",
    }
)

# Hey future me - mimetypes.guess_type() depends on the host's mime.types file and
# disagrees between distros for .flac/.m4a/.opus. Audio gets an explicit table, everything
# else (cover art) falls back to mimetypes.
AUDIO_MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".flac": "audio/flac",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".opus": "audio/ogg",
    ".aiff": "audio/aiff",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def is_audio_file(path: str | Path) -> bool:
    """Check the extension (case-insensitive) against AUDIO_EXTENSIONS."""
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS


def mime_type_for(path: str | Path) -> str:
    """Derive a MIME type from the file extension. No content sniffing."""
    ext = Path(path).suffix.lower()
    if ext in AUDIO_MIME_TYPES:
        return AUDIO_MIME_TYPES[ext]
    guessed, _encoding = mimetypes.guess_type(str(path))
    return guessed or DEFAULT_MIME_TYPE
