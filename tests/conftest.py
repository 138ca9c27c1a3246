"""Shared test fixtures.

Hey future me - every test gets its own SQLite file under tmp_path and its own media
directory. Nothing touches ./localify-storage or the real environment's media path.
"""

import wave
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from mutagen.id3 import TALB, TCON, TDRC, TIT2, TPE1, TPE2
from mutagen.wave import WAVE

from localify.config import DatabaseSettings, Settings, StorageSettings
from localify.infrastructure.persistence import Database

ID3_FRAMES = {
    "title": TIT2,
    "artist": TPE1,
    "album": TALB,
    "album_artist": TPE2,
    "year": TDRC,
    "genre": TCON,
}


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Empty media root."""
    path = tmp_path / "media"
    path.mkdir()
    return path


@pytest.fixture
def settings(tmp_path: Path, media_dir: Path) -> Settings:
    """Settings pointing at tmp_path for database, storage and media."""
    return Settings(
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'localify.db'}"),
        storage=StorageSettings(media_path=media_dir, storage_path=tmp_path / "storage"),
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncIterator[Database]:
    """Database with all tables created."""
    db = Database(settings)
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def tagged_wav() -> Callable[..., Path]:
    """Factory writing a short silent WAV file with ID3 tags.

    Usage: tagged_wav(path, title="Song", artist="Band", genre=["Rock", "Pop"])
    """

    def _write(path: Path, seconds: float = 1.0, **tags: object) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        framerate = 8000
        with wave.open(str(path), "wb") as out:
            out.setnchannels(1)
            out.setsampwidth(2)
            out.setframerate(framerate)
            out.writeframes(b"\x00\x00" * int(framerate * seconds))

        audio = WAVE(str(path))
        audio.add_tags()
        for field, value in tags.items():
            if value is None:
                continue
            text = [str(v) for v in value] if isinstance(value, list) else [str(value)]
            audio.tags.add(ID3_FRAMES[field](encoding=3, text=text))
        audio.save()
        return path

    return _write


@pytest.fixture
def corrupt_mp3(media_dir: Path) -> Path:
    """An .mp3 file with no MPEG frames in it."""
    path = media_dir / "broken.mp3"
    path.write_bytes(b"not really audio" * 100)
    return path
