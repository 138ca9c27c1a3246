"""Tag metadata extraction with mutagen, plus folder cover-art discovery."""

import logging
import os
import re
from pathlib import Path
from typing import Any

from mutagen import File as MutagenFile  # type: ignore[attr-defined]

from localify.domain.entities import TrackMetadata
from localify.domain.exceptions import ExtractionError
from localify.domain.value_objects import mime_type_for
from localify.infrastructure.observability.error_formatting import describe_oserror

logger = logging.getLogger(__name__)

# Checked in this order. Exact filename first, then a case-insensitive pass over the directory.
COVER_ART_FILENAMES = [
    f"{name}{ext}"
    for name in ("cover", "folder", "album", "artwork", "front")
    for ext in (".jpg", ".jpeg", ".png")
]

# Hey future me - ID3 (MP3/WAV/AIFF), Vorbis comments (FLAC/OGG/Opus) and MP4 atoms (M4A) all
# name the same fields differently. When a field appears under two keys (TDRC and TYER) the
# first one in this dict wins.
TAG_MAPPINGS = {
    # ID3
    "TIT2": "title",
    "TPE1": "artist",
    "TPE2": "album_artist",
    "TALB": "album",
    "TDRC": "year",
    "TYER": "year",
    "TCON": "genre",
    # Vorbis
    "title": "title",
    "artist": "artist",
    "albumartist": "album_artist",
    "album artist": "album_artist",
    "album": "album",
    "date": "year",
    "year": "year",
    "genre": "genre",
    # MP4
    "©nam": "title",
    "©ART": "artist",
    "aART": "album_artist",
    "©alb": "album",
    "©day": "year",
    "©gen": "genre",
}

_DISC_MARKER = re.compile(r"\s*[\(\[]?\b(?:CD|Disc)\s*\d+[\)\]]?", re.IGNORECASE)
_YEAR = re.compile(r"\d{4}")


def clean_album_title(title: str) -> str:
    """Strip disc markers so "Greatest Hits (CD 2)" and "Greatest Hits Disc 1" share an album.

    Returns the stripped input unchanged if cleaning would leave nothing.
    """
    cleaned = _DISC_MARKER.sub("", title).strip().rstrip("-_,:").strip()
    return cleaned or title.strip()


def _tag_values(value: Any) -> list[str]:
    """Flatten a mutagen tag value (ID3 frame, list, scalar) into non-empty strings."""
    if hasattr(value, "genres"):
        # ID3 TCON resolves "(17)" style numeric genres for us
        value = value.genres
    elif hasattr(value, "text"):
        value = value.text
    if not isinstance(value, list | tuple):
        value = [value]
    values = []
    for item in value:
        text = str(item).strip()
        if text:
            values.append(text)
    return values


class MutagenMetadataExtractor:
    """Reads tags and duration from audio files with mutagen.

    Blocking. The indexing engine runs extract() and find_cover_art() in a worker thread.
    """

    def extract(self, file_path: str) -> TrackMetadata:
        """Extract metadata from one audio file.

        Missing or malformed individual tags become None. Multiple genres are joined with
        ", ". Year is the first four digits of the date tag.

        Raises:
            ExtractionError: File unreadable, not parseable, or not a recognised container
        """
        try:
            audio = MutagenFile(file_path)
        except OSError as e:
            raise ExtractionError(file_path, describe_oserror(e)) from e
        except Exception as e:
            # MutagenError subclasses (HeaderNotFoundError, ...) plus the odd struct.error
            # from truncated files
            raise ExtractionError(file_path, f"{type(e).__name__}: {e}") from e

        if audio is None:
            raise ExtractionError(file_path, "unrecognised audio container")

        fields = self._extract_tags(audio.tags)

        duration: float | None = None
        length = getattr(getattr(audio, "info", None), "length", None)
        if isinstance(length, int | float) and length > 0:
            duration = float(length)

        return TrackMetadata(
            mime_type=mime_type_for(file_path),
            title=fields.get("title"),
            artist=fields.get("artist"),
            album=fields.get("album"),
            album_artist=fields.get("album_artist"),
            year=fields.get("year"),
            genre=fields.get("genre"),
            duration_seconds=duration,
        )

    def _extract_tags(self, audio_tags: Any) -> dict[str, Any]:
        """Map format-specific tag keys onto TrackMetadata field names."""
        fields: dict[str, Any] = {}
        if not audio_tags:
            return fields

        for tag_key, field_name in TAG_MAPPINGS.items():
            if field_name in fields:
                continue
            try:
                if tag_key not in audio_tags:
                    continue
                values = _tag_values(audio_tags[tag_key])
            except (KeyError, ValueError, TypeError):
                continue
            if not values:
                continue

            if field_name == "genre":
                fields["genre"] = ", ".join(dict.fromkeys(values))
            elif field_name == "year":
                match = _YEAR.search(values[0])
                if match:
                    fields["year"] = int(match.group())
            else:
                fields[field_name] = values[0]

        return fields

    def find_cover_art(self, directory: str | Path) -> str | None:
        """Find a conventional cover image (cover.jpg, folder.png, ...) in a directory."""
        directory = os.fspath(directory)
        for name in COVER_ART_FILENAMES:
            candidate = os.path.join(directory, name)
            if os.path.isfile(candidate):
                return candidate

        try:
            entries = {entry.lower(): entry for entry in sorted(os.listdir(directory))}
        except OSError as e:
            logger.debug(f"Cover lookup failed for {directory}: {describe_oserror(e)}")
            return None

        for name in COVER_ART_FILENAMES:
            actual = entries.get(name)
            if actual and os.path.isfile(os.path.join(directory, actual)):
                return os.path.join(directory, actual)
        return None
