"""Error hierarchy for the scaffolding engine.

Every component raises one of these on the first problem it meets.  The
composer is the only place that catches them: it cleans up the partial
destination tree and turns the error into a failed ``GenerationResult``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Classification surfaced to callers through ``GenerationResult``."""
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    IO = "io"
    VALIDATION = "validation"


class ScaffoldError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class NotFoundError(ScaffoldError):
    """Raised when a fragment or fragment category does not exist."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(ScaffoldError):
    """Raised when the destination directory is already present."""

    kind = ErrorKind.ALREADY_EXISTS


class ScaffoldIOError(ScaffoldError):
    """Raised when a file cannot be read, written or deleted."""

    kind = ErrorKind.IO

    @classmethod
    def from_os_error(cls, action: str, path: Path, exc: OSError) -> "ScaffoldIOError":
        reason = exc.strerror or str(exc)
        return cls(f"Failed to {action} {path}: {reason}", path)


class ScaffoldValidationError(ScaffoldError):
    """Raised for malformed project names, manifests or fragment metadata."""

    kind = ErrorKind.VALIDATION
