"""Content-addressed storage for revision payloads."""

from __future__ import annotations

from pathlib import Path

from undofile.errors import StorageIOError

from .atomic import atomic_write, read_bytes
from .hashing import HASH_DIGEST_LENGTH, hash_bytes


class BlobStore:
    """Stores payload bytes under their own digest.

    Blobs are write-once: storing identical bytes twice is a no-op, so
    concurrent clients never race on the same path with different content.
    """

    def __init__(self, root: Path, *, fsync: bool = True) -> None:
        self.root = Path(root)
        self.fsync = fsync

    def _path(self, ref: str) -> Path:
        if len(ref) != HASH_DIGEST_LENGTH * 2 or not all(
            ch in "0123456789abcdef" for ch in ref
        ):
            raise ValueError(f"'{ref}' is not a blob reference")
        return self.root / ref[:2] / ref[2:]

    def put(self, data: bytes) -> str:
        ref = hash_bytes(data)
        path = self._path(ref)
        if not path.exists():
            atomic_write(path, data, fsync=self.fsync)
        return ref

    def get(self, ref: str) -> bytes:
        path = self._path(ref)
        data = read_bytes(path)
        if data is None:
            raise StorageIOError(f"Blob {ref} is missing", path=path)
        if hash_bytes(data) != ref:
            raise StorageIOError(f"Blob {ref} does not match its digest", path=path)
        return data

    def exists(self, ref: str) -> bool:
        return self._path(ref).exists()


__all__ = ["BlobStore"]
