"""Id-indexed undo tree with undo/redo navigation."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional

from undofile.errors import DanglingParentError, NoSuchTransitionError
from undofile.storage.hashing import EMPTY_HASH

from . import format as undo_format
from .revision import Revision, now

ROOT_ID = 0


class Direction(str, Enum):
    UNDO = "undo"
    REDO = "redo"
    EARLIER = "earlier"
    LATER = "later"


class UndoTree:
    """Arena of revisions keyed by id, plus a navigation cursor.

    Revisions are never removed or rewritten; ``create_revision`` and
    ``graft`` only append. Parent ids are always smaller than child ids, which
    keeps the structure a tree without a separate cycle check.
    """

    def __init__(
        self,
        nodes: Mapping[int, Revision],
        *,
        cursor: Optional[int] = None,
        next_id: Optional[int] = None,
    ) -> None:
        self._nodes: Dict[int, Revision] = dict(nodes)
        self._root = undo_format.validate_shape(self._nodes)
        self._children: Dict[int, List[int]] = {}
        for rev_id in sorted(self._nodes):
            self._index_child(self._nodes[rev_id])
        highest = max(self._nodes)
        self._next_id = max(next_id or 0, highest + 1)
        self.cursor = self._root if cursor is None else cursor
        if self.cursor not in self._nodes:
            raise KeyError(f"Cursor {self.cursor} does not name a revision")

    @classmethod
    def new(cls, *, created_at: float = 0.0) -> "UndoTree":
        """Return a tree holding only the empty root revision."""

        root = Revision(
            id=ROOT_ID,
            parent_id=None,
            payload=None,
            file_hash=EMPTY_HASH,
            created_at=created_at,
        )
        return cls({ROOT_ID: root})

    @property
    def root(self) -> Revision:
        return self._nodes[self._root]

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def tip(self) -> Revision:
        return self._nodes[max(self._nodes)]

    @property
    def current(self) -> Revision:
        return self._nodes[self.cursor]

    def __contains__(self, rev_id: object) -> bool:
        return rev_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Revision]:
        for rev_id in sorted(self._nodes):
            yield self._nodes[rev_id]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UndoTree):
            return NotImplemented
        return (
            self._nodes == other._nodes
            and self.cursor == other.cursor
            and self._next_id == other._next_id
        )

    def __repr__(self) -> str:
        return f"UndoTree(revisions={len(self._nodes)}, cursor={self.cursor})"

    def get(self, rev_id: int) -> Revision:
        try:
            return self._nodes[rev_id]
        except KeyError as exc:
            raise KeyError(f"Revision {rev_id} is not in the tree") from exc

    def children(self, rev_id: int) -> tuple[int, ...]:
        return tuple(self._children.get(rev_id, ()))

    def path_to_root(self, rev_id: int) -> list[int]:
        path = [rev_id]
        parent = self.get(rev_id).parent_id
        while parent is not None:
            path.append(parent)
            parent = self._nodes[parent].parent_id
        return path

    def find_by_hash(self, file_hash: str) -> Optional[Revision]:
        """Return the newest revision recorded with ``file_hash``."""

        for rev_id in sorted(self._nodes, reverse=True):
            if self._nodes[rev_id].file_hash == file_hash:
                return self._nodes[rev_id]
        return None

    def copy(self) -> "UndoTree":
        return UndoTree(self._nodes, cursor=self.cursor, next_id=self._next_id)

    def create_revision(
        self,
        payload: Optional[str],
        parent_id: int,
        *,
        file_hash: str,
        created_at: Optional[float] = None,
    ) -> int:
        if parent_id not in self._nodes:
            raise DanglingParentError(parent_id)
        revision = Revision(
            id=self._next_id,
            parent_id=parent_id,
            payload=payload,
            file_hash=file_hash,
            created_at=now() if created_at is None else created_at,
        )
        self.graft(revision)
        self.cursor = revision.id
        return revision.id

    def graft(self, revision: Revision) -> None:
        """Append a revision whose id was assigned by the caller."""

        if revision.parent_id is None or revision.parent_id not in self._nodes:
            raise DanglingParentError(revision.parent_id)
        if revision.id in self._nodes:
            raise ValueError(f"Revision {revision.id} already exists")
        if revision.id < self._next_id:
            raise ValueError(
                f"Revision id {revision.id} is below the next free id {self._next_id}"
            )
        self._nodes[revision.id] = revision
        self._index_child(revision)
        self._next_id = revision.id + 1

    def navigate(self, direction: Direction, *, child: Optional[int] = None) -> int:
        direction = Direction(direction)
        target: Optional[int] = None
        if direction is Direction.UNDO:
            target = self.current.parent_id
        elif direction is Direction.REDO:
            options = self._children.get(self.cursor, [])
            if child is not None:
                target = child if child in options else None
            elif options:
                target = options[-1]
        else:
            ordered = sorted(self._nodes)
            index = ordered.index(self.cursor)
            step = -1 if direction is Direction.EARLIER else 1
            if 0 <= index + step < len(ordered):
                target = ordered[index + step]

        if target is None:
            raise NoSuchTransitionError(self.cursor, direction.value)
        self.cursor = target
        return target

    def serialize(self) -> bytes:
        return undo_format.encode(
            self._nodes.values(), cursor=self.cursor, next_id=self._next_id
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "UndoTree":
        record = undo_format.decode(data)
        return cls(record.nodes, cursor=record.cursor, next_id=record.next_id)

    def _index_child(self, revision: Revision) -> None:
        if revision.parent_id is not None:
            self._children.setdefault(revision.parent_id, []).append(revision.id)


__all__ = ["Direction", "ROOT_ID", "UndoTree"]
