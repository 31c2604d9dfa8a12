"""Exception types raised by the undo-history store."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class UndoFileError(RuntimeError):
    """Base class for every failure surfaced by the store."""


class CorruptTreeError(UndoFileError):
    """Raised when a persisted tree violates the single-root/valid-parent shape."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidHeaderError(CorruptTreeError):
    """Raised when an undo file does not start with the expected magic."""

    def __init__(self, reason: str = "Invalid undofile header") -> None:
        super().__init__(reason)


class OutdatedFormatError(CorruptTreeError):
    """Raised for undo files written by a newer format version."""

    def __init__(self, version: object, supported: int) -> None:
        super().__init__(
            f"Undo file format {version!r} is newer than supported {supported}"
        )
        self.version = version
        self.supported = supported


class InvalidChecksumError(CorruptTreeError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__("Invalid checksum for undofile itself")
        self.expected = expected
        self.actual = actual


class StaleClientError(UndoFileError):
    """Raised when the document on disk no longer matches the client's view."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"Document changed on disk (expected {expected[:12]}, found {actual[:12]})"
        )
        self.expected = expected
        self.actual = actual


class DivergenceNotFoundError(UndoFileError):
    def __init__(self, divergence_id: int) -> None:
        super().__init__(f"Divergence point {divergence_id} is not in the master tree")
        self.divergence_id = divergence_id


class DanglingParentError(UndoFileError):
    def __init__(self, parent_id: Optional[int]) -> None:
        super().__init__(f"Parent revision {parent_id!r} does not exist")
        self.parent_id = parent_id


class NoSuchTransitionError(UndoFileError):
    """Raised when navigation walks past the edge of the tree."""

    def __init__(self, cursor: int, direction: object) -> None:
        super().__init__(f"Cannot move {direction} from revision {cursor}")
        self.cursor = cursor
        self.direction = direction


class StorageIOError(UndoFileError):
    """Raised when a write, rename, backup or read on durable storage fails."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


__all__ = [
    "UndoFileError",
    "CorruptTreeError",
    "InvalidHeaderError",
    "OutdatedFormatError",
    "InvalidChecksumError",
    "StaleClientError",
    "DivergenceNotFoundError",
    "DanglingParentError",
    "NoSuchTransitionError",
    "StorageIOError",
]
