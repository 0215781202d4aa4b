"""Domain exceptions."""

from enum import Enum
from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing str(exception).
    # The *args lets subclasses pass extra context. This is your base class - DON'T raise it directly!
    # Always use a specific subclass (PathError, ExtractionError, etc) so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class InvalidStateException(DomainException):
    """Raised when an entity is in an invalid state for the requested operation.

    Example: trying to start a scan on a folder that was already removed.
    """

    pass


class ValidationError(DomainException):
    """Input validation failed.

    HTTP Status: 422

    Example:
        raise ValidationError("Folder path must not be empty")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    HTTP Status: 503 (Service Unavailable)
    """

    pass


# =============================================================================
# Scan / reconciliation taxonomy
# Hey future me - only PathError (all roots gone) and ReconciliationError ever
# escape a scan. Walk and extraction errors are collected as warnings!
# =============================================================================


class PathError(DomainException):
    """A root folder is missing, not a directory or not readable.

    Surfaced once per folder. Scanning of the other folders continues.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot scan folder {path}: {reason}")
        self.path = path
        self.reason = reason


class WalkError(DomainException):
    """A single entry below a root could not be traversed (permission, broken link)."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason


class ExtractionErrorKind(str, Enum):
    """Why a file was excluded from a scan result."""

    UNREADABLE = "unreadable"
    UNSUPPORTED_FORMAT = "unsupported_format"
    CORRUPT = "corrupt"


class ExtractionError(DomainException):
    """Metadata could not be extracted from one file.

    Per-file failure: the file is left out of the result and reported as a
    warning. Never aborts the batch.
    """

    def __init__(self, path: str, kind: ExtractionErrorKind, reason: str) -> None:
        super().__init__(f"{kind.value}: {path} ({reason})")
        self.path = path
        self.kind = kind
        self.reason = reason


class ReconciliationError(DomainException):
    """Writing a scan result to the store failed.

    Fatal for the current scan invocation. The transaction is rolled back so
    the persisted index is never left half-updated.
    """

    pass


class ScanCancelledError(DomainException):
    """The scan was cancelled (usually superseded by a newer scan) and nothing was merged."""

    pass


__all__ = [
    "DomainException",
    "InvalidStateException",
    "ValidationError",
    "ConfigurationError",
    "PathError",
    "WalkError",
    "ExtractionErrorKind",
    "ExtractionError",
    "ReconciliationError",
    "ScanCancelledError",
]
