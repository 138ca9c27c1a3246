"""Indexing run events and report.

Hey future me - these are the typed events the indexing engine yields. The API layer turns
them into SSE messages, tests consume them directly. Order within one run is ALWAYS:

    scanning (1 event) -> processing (1 per candidate) -> cleanup (1 + 1 per deletion)
    -> IndexingComplete

or a single IndexingFailed at any point (and nothing after it).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from localify.domain.entities import Track


class IndexingPhase(str, Enum):
    """Phase of an indexing run."""

    SCANNING = "scanning"
    PROCESSING = "processing"
    CLEANUP = "cleanup"


@dataclass
class IndexingReport:
    """Result of one indexing run. The three lists are disjoint."""

    added: list[Track] = field(default_factory=list)
    removed: list[Track] = field(default_factory=list)
    unchanged: list[Track] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Human-readable one-line summary."""
        return (
            f"Indexing complete: {len(self.added)} added, "
            f"{len(self.removed)} removed, {len(self.unchanged)} unchanged"
        )


@dataclass(frozen=True)
class IndexingProgress:
    """Incremental progress tick."""

    phase: IndexingPhase
    current: int
    added: int
    removed: int
    unchanged: int
    total: int | None = None
    current_file: str | None = None


@dataclass(frozen=True)
class IndexingComplete:
    """Terminal event of a successful run."""

    report: IndexingReport
    message: str


@dataclass(frozen=True)
class IndexingFailed:
    """Terminal event of a run that hit an unrecoverable error."""

    message: str


IndexingEvent = IndexingProgress | IndexingComplete | IndexingFailed
