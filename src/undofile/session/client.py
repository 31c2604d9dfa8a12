"""A single editing session's view of the undo history."""

from __future__ import annotations

from typing import List, Optional, Union

from undofile.history import Direction, Revision, UndoTree
from undofile.runtime import telemetry
from undofile.storage import BlobStore, hash_bytes
from undofile.sync import MergeResult, SyncState, causal_order

Content = Union[str, bytes]


def as_bytes(content: Content) -> bytes:
    if isinstance(content, bytes):
        return content
    return content.encode("utf-8")


class ClientSession:
    """Owns a client's local undo tree and sync state.

    The tree starts as a copy of the master; local commits extend it and are
    tracked as the unmerged suffix until a save grafts them into the master.
    """

    def __init__(
        self,
        tree: UndoTree,
        sync_state: SyncState,
        *,
        enabled: bool = True,
        blobs: Optional[BlobStore] = None,
    ) -> None:
        self.tree = tree
        self.sync_state = sync_state
        self.enabled = enabled
        self.blobs = blobs
        self.tree.cursor = sync_state.cursor

    @property
    def client_id(self) -> str:
        return self.sync_state.client_id

    @property
    def cursor(self) -> int:
        return self.tree.cursor

    def unmerged(self) -> List[Revision]:
        return causal_order(self.sync_state.suffix)

    def commit(
        self,
        content: Content,
        payload: Union[bytes, str, None] = None,
        *,
        created_at: Optional[float] = None,
    ) -> int:
        """Record an edit whose result is ``content`` under the cursor.

        ``payload`` is either raw bytes, stored in the blob store, or an
        existing blob reference.
        """

        ref: Optional[str]
        if isinstance(payload, bytes):
            if self.blobs is None:
                raise ValueError("Raw payloads need a blob store")
            ref = self.blobs.put(payload)
        else:
            ref = payload
        rev_id = self.tree.create_revision(
            ref,
            self.tree.cursor,
            file_hash=hash_bytes(as_bytes(content)),
            created_at=created_at,
        )
        self.sync_state.suffix.append(self.tree.get(rev_id))
        self.sync_state.cursor = rev_id
        return rev_id

    def navigate(self, direction: Direction, *, child: Optional[int] = None) -> int:
        rev_id = self.tree.navigate(direction, child=child)
        self.sync_state.cursor = rev_id
        return rev_id

    def undo(self) -> int:
        return self.navigate(Direction.UNDO)

    def redo(self, child: Optional[int] = None) -> int:
        return self.navigate(Direction.REDO, child=child)

    def earlier(self) -> int:
        return self.navigate(Direction.EARLIER)

    def later(self) -> int:
        return self.navigate(Direction.LATER)

    def toggle(self, enabled: bool) -> None:
        """Turn undo-file participation on or off, effective for the next save.

        Turning it off drops the unmerged revisions from the local tree and
        moves the cursor back onto the last synced master revision.
        """

        if enabled == self.enabled:
            return
        self.enabled = enabled
        if not enabled:
            self._drop_unmerged()
        telemetry.record_event(
            "session.toggle",
            data={"client": self.client_id, "enabled": enabled},
        )

    def _drop_unmerged(self) -> None:
        local_ids = {rev.id for rev in self.sync_state.suffix}
        cursor = self.tree.cursor
        if cursor in local_ids:
            cursor = self.sync_state.divergence_id
        self.tree = UndoTree(
            {rev.id: rev for rev in self.tree if rev.id not in local_ids},
            cursor=cursor,
        )
        self.sync_state.cursor = cursor
        self.sync_state.suffix.clear()

    def reconcile(self, result: MergeResult, file_hash: str) -> None:
        """Adopt the merged master after a successful save."""

        local_ids = {rev.id for rev in self.sync_state.suffix}
        cursor = self.tree.cursor
        if cursor in local_ids:
            cursor = result.id_remap[cursor]
        self.tree = result.master.copy()
        self.tree.cursor = cursor
        tip = result.tip
        self.sync_state.divergence_id = tip if tip is not None else cursor
        self.sync_state.last_synced_file_hash = file_hash
        self.sync_state.cursor = cursor
        self.sync_state.suffix.clear()


__all__ = ["ClientSession", "Content", "as_bytes"]
