"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so handlers can read it without parsing
    # str(exception). Don't raise this directly - use a specific subclass so callers can catch
    # precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when a catalog row or its backing file cannot be found."""

    def __init__(self, entity_type: str, entity_id: Any, reason: str | None = None) -> None:
        message = f"{entity_type} with id {entity_id} not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.entity_type = entity_type
        self.entity_id = entity_id


# =============================================================================
# Indexing errors
# Hey future me - only ScanRootUnreadableError is fatal to an indexing run!
# ExtractionError and StoreWriteError are per-file: the engine logs them and moves on.
# =============================================================================


class ScanRootUnreadableError(DomainException):
    """The media root does not exist, is not a directory or cannot be listed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Media root '{path}' is not readable: {reason}")
        self.path = path
        self.reason = reason


class ExtractionError(DomainException):
    """A media file could not be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not extract metadata from '{path}': {reason}")
        self.path = path
        self.reason = reason


class StoreWriteError(DomainException):
    """A single catalog insert or delete failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Catalog write failed for '{path}': {reason}")
        self.path = path
        self.reason = reason


class IndexingInProgressError(DomainException):
    """Another indexing run is already active."""

    def __init__(self) -> None:
        super().__init__("An indexing run is already in progress")


# =============================================================================
# Streaming errors
# =============================================================================


class InvalidRangeError(DomainException):
    """The requested byte range cannot be satisfied (HTTP 416)."""

    def __init__(self, range_header: str, file_size: int) -> None:
        super().__init__(
            f"Range '{range_header}' not satisfiable for {file_size} bytes"
        )
        self.range_header = range_header
        self.file_size = file_size


class StreamIOError(DomainException):
    """Reading the file failed after the response had started."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Read failed while streaming '{path}': {reason}")
        self.path = path
        self.reason = reason


class AuthorizationError(DomainException):
    """The caller is not allowed to perform the operation.

    HTTP Status: 401 when no credentials were sent, 403 when they were wrong.
    """

    def __init__(self, message: str, authenticated: bool = False) -> None:
        super().__init__(message)
        self.authenticated = authenticated


__all__ = [
    "AuthorizationError",
    "DomainException",
    "EntityNotFoundException",
    "ExtractionError",
    "IndexingInProgressError",
    "InvalidRangeError",
    "ScanRootUnreadableError",
    "StoreWriteError",
    "StreamIOError",
]
