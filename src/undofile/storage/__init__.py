"""Durable storage primitives: hashing, atomic replace and blobs."""

from .atomic import WriteReceipt, atomic_write, backup_path, read_bytes, rollback
from .blobs import BlobStore
from .hashing import EMPTY_HASH, hash_bytes, hash_file, hash_stream

__all__ = [
    "BlobStore",
    "EMPTY_HASH",
    "WriteReceipt",
    "atomic_write",
    "backup_path",
    "hash_bytes",
    "hash_file",
    "hash_stream",
    "read_bytes",
    "rollback",
]
