"""Persistence layer: database engine, ORM models and repositories."""

from localify.infrastructure.persistence.database import Database
from localify.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    Base,
    PlayCountModel,
    TrackModel,
)
from localify.infrastructure.persistence.repositories import (
    AlbumRepository,
    ArtistRepository,
    PlayCountRepository,
    TrackRepository,
)

__all__ = [
    "AlbumModel",
    "AlbumRepository",
    "ArtistModel",
    "ArtistRepository",
    "Base",
    "Database",
    "PlayCountModel",
    "PlayCountRepository",
    "TrackModel",
    "TrackRepository",
]
