"""Content hashing for documents, blobs and the undo file itself."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO

from undofile.errors import StorageIOError

HASH_DIGEST_LENGTH = 20
CHUNK_SIZE = 8192


def _hasher() -> "hashlib.blake2b":
    return hashlib.blake2b(digest_size=HASH_DIGEST_LENGTH)


def hash_bytes(data: bytes) -> str:
    hasher = _hasher()
    hasher.update(data)
    return hasher.hexdigest()


def hash_stream(reader: BinaryIO) -> str:
    """Hash ``reader`` until EOF in fixed-size chunks."""

    hasher = _hasher()
    while True:
        chunk = reader.read(CHUNK_SIZE)
        if not chunk:
            break
        hasher.update(chunk)
    return hasher.hexdigest()


def hash_file(path: Path) -> str:
    """Hash a file on disk; a missing file hashes as empty content."""

    try:
        with open(path, "rb") as handle:
            return hash_stream(handle)
    except FileNotFoundError:
        return EMPTY_HASH
    except OSError as exc:
        raise StorageIOError(f"Unable to read {path}: {exc}", path=path) from exc


EMPTY_HASH = hash_bytes(b"")

__all__ = [
    "CHUNK_SIZE",
    "EMPTY_HASH",
    "HASH_DIGEST_LENGTH",
    "hash_bytes",
    "hash_file",
    "hash_stream",
]
