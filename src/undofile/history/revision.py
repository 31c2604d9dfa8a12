"""Immutable revision node stored in undo trees."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class Revision:
    """One recorded state transition of a document.

    ``payload`` is an opaque blob reference; the store never looks inside it.
    ``file_hash`` is the digest of the whole document right after this
    revision was made.
    """

    id: int
    parent_id: Optional[int]
    payload: Optional[str]
    file_hash: str
    created_at: float = 0.0

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError("revision id cannot be negative")
        if self.parent_id is not None and self.parent_id >= self.id:
            raise ValueError("parent id must be smaller than the revision id")
        if not self.file_hash:
            raise ValueError("file_hash cannot be empty")

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def relink(self, *, id: int, parent_id: Optional[int]) -> "Revision":
        """Return a copy with new ids, keeping payload, hash and timestamp."""

        return replace(self, id=id, parent_id=parent_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent": self.parent_id,
            "payload": self.payload,
            "created_at": self.created_at,
            "file_hash": self.file_hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Revision":
        parent = data.get("parent")
        return cls(
            id=int(data["id"]),
            parent_id=None if parent is None else int(parent),
            payload=data.get("payload"),
            file_hash=str(data["file_hash"]),
            created_at=float(data.get("created_at", 0.0)),
        )


def now() -> float:
    return time.time()


__all__ = ["Revision", "now"]
