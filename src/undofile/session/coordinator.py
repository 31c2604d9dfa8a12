"""Load and save orchestration for clients sharing one undo file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from undofile.errors import DivergenceNotFoundError, StorageIOError
from undofile.history import UndoTree
from undofile.runtime import telemetry
from undofile.runtime.settings import StoreSettings
from undofile.storage import (
    BlobStore,
    WriteReceipt,
    atomic_write,
    hash_bytes,
    hash_file,
    read_bytes,
    rollback,
)
from undofile.sync import (
    Freshness,
    MergeResult,
    SessionStore,
    SyncState,
    check,
    merge,
    require_fresh,
)

from .client import ClientSession, Content, as_bytes

SAVED = "saved"
WARNED = "warned"
SKIPPED = "skipped"

RELOAD_REQUIRED = "reload required"
UNDOFILE_DISABLED = "undo file disabled"


@dataclass(slots=True)
class SaveOutcome:
    """Result returned from ``SaveCoordinator.save``."""

    status: str
    reason: Optional[str] = None
    file_hash: Optional[str] = None
    id_remap: Dict[int, int] = field(default_factory=dict)

    @property
    def saved(self) -> bool:
        return self.status == SAVED

    @property
    def warned(self) -> bool:
        return self.status == WARNED

    @property
    def skipped(self) -> bool:
        return self.status == SKIPPED


class SaveCoordinator:
    """Runs the load/save protocol for one document.

    Clients never share memory; everything they agree on goes through the
    undo file, which is only ever replaced whole via ``atomic_write``.
    """

    def __init__(
        self,
        document: Union[str, Path],
        *,
        settings: Optional[StoreSettings] = None,
    ) -> None:
        self.document = Path(document)
        self.settings = settings or StoreSettings.from_env()
        self.undo_path = self.settings.undo_path_for(self.document)
        self.blobs = BlobStore(
            self.settings.blob_dir_for(self.document), fsync=self.settings.fsync
        )

    def _sessions(self, client_id: str) -> SessionStore:
        return SessionStore(
            self.settings.session_path_for(self.document, client_id),
            backup_suffix=self.settings.backup_suffix,
            fsync=self.settings.fsync,
        )

    def _write(self, path: Path, data: bytes) -> WriteReceipt:
        return atomic_write(
            path,
            data,
            backup_suffix=self.settings.backup_suffix,
            fsync=self.settings.fsync,
        )

    def read_master(self) -> UndoTree:
        """Return the persisted master, or a fresh tree if none exists yet."""

        data = read_bytes(self.undo_path)
        if data is None:
            return UndoTree.new()
        return UndoTree.deserialize(data)

    def current_hash(self) -> str:
        return hash_file(self.document)

    def load(self, client_id: Optional[str] = None) -> Tuple[UndoTree, SyncState]:
        """Read the master and reconcile it with the client's stored state.

        Loading is a reload: the returned state is in sync with the document
        as it is on disk now. Unmerged revisions from a previous session are
        grafted back under fresh local ids so they can still be merged.
        """

        client_id = client_id or self.settings.client_id
        with telemetry.span(
            "session::load",
            component="session",
            metadata={"client": client_id, "document": self.document.name},
        ) as handle:
            master = self.read_master()
            current = self.current_hash()
            stored = self._sessions(client_id).load()

            tree = master.copy()
            suffix = []
            if stored is not None and stored.suffix:
                try:
                    regrafted = merge(stored.suffix, stored.divergence_id, master)
                except DivergenceNotFoundError as exc:
                    telemetry.record_event(
                        "load.suffix_dropped",
                        level="warning",
                        data={"client": client_id, "missing": exc.divergence_id},
                    )
                else:
                    tree = regrafted.master
                    suffix = [tree.get(new_id) for new_id in regrafted.id_remap.values()]

            cursor = self._resume_cursor(master, stored, current)
            in_sync = (
                stored is not None
                and stored.last_synced_file_hash == current
                and stored.divergence_id in master
            )
            divergence = stored.divergence_id if in_sync and stored else cursor
            handle.add_metadata("divergence_id", divergence)
            tree.cursor = cursor
            state = SyncState(
                client_id=client_id,
                last_synced_file_hash=current,
                divergence_id=divergence,
                cursor=cursor,
                suffix=suffix,
            )
            return tree, state

    def _resume_cursor(
        self, master: UndoTree, stored: Optional[SyncState], current: str
    ) -> int:
        if stored is not None:
            local_ids = {rev.id for rev in stored.suffix}
            if (
                stored.cursor not in local_ids
                and stored.cursor in master
                and master.get(stored.cursor).file_hash == current
            ):
                return stored.cursor
        matched = master.find_by_hash(current)
        if matched is not None:
            return matched.id
        telemetry.record_event(
            "load.unmatched_hash",
            level="warning",
            data={"document": self.document.name, "hash": current},
        )
        return master.tip.id

    def open(self, client_id: Optional[str] = None) -> ClientSession:
        tree, state = self.load(client_id)
        return ClientSession(
            tree, state, enabled=self.settings.enabled, blobs=self.blobs
        )

    def require_fresh(self, client: ClientSession) -> None:
        """Raise ``StaleClientError`` if the document changed under ``client``."""

        require_fresh(client.sync_state, self.current_hash())

    def save(self, client: ClientSession, content: Content) -> SaveOutcome:
        """Write ``content`` and merge the client's history into the master.

        A stale client, or one whose divergence point vanished, gets a
        ``warned`` outcome and nothing on disk changes. If persisting the
        master fails after the document was written, the document is restored
        from its backup before ``StorageIOError`` propagates.
        """

        data = as_bytes(content)
        with telemetry.span(
            "session::save",
            component="session",
            metadata={"client": client.client_id, "document": self.document.name},
        ) as handle:
            if not client.enabled:
                self._write(self.document, data)
                telemetry.record_event(
                    "save.skipped", data={"client": client.client_id}
                )
                return SaveOutcome(
                    status=SKIPPED,
                    reason=UNDOFILE_DISABLED,
                    file_hash=hash_bytes(data),
                )

            current = self.current_hash()
            if check(client.sync_state, current) is Freshness.STALE:
                return self._warn(client, current)

            master = self.read_master()
            try:
                result = merge(
                    client.unmerged(), client.sync_state.divergence_id, master
                )
            except DivergenceNotFoundError:
                return self._warn(client, current)

            written_hash = hash_bytes(data)
            receipt = self._write(self.document, data)
            self._persist_master(result, receipt)
            handle.add_metadata("grafted", len(result.id_remap))

            client.reconcile(result, written_hash)
            self._sessions(client.client_id).save(client.sync_state)
            telemetry.record_event(
                "save.saved",
                data={
                    "client": client.client_id,
                    "grafted": len(result.id_remap),
                    "divergence_id": client.sync_state.divergence_id,
                },
            )
            return SaveOutcome(
                status=SAVED, file_hash=written_hash, id_remap=dict(result.id_remap)
            )

    def _persist_master(self, result: MergeResult, receipt: WriteReceipt) -> None:
        try:
            self._write(self.undo_path, result.master.serialize())
        except StorageIOError:
            telemetry.record_event(
                "save.rollback",
                level="error",
                data={"document": self.document.name},
            )
            rollback(receipt, fsync=self.settings.fsync)
            raise

    def _warn(self, client: ClientSession, current: str) -> SaveOutcome:
        telemetry.record_event(
            "save.warned",
            level="warning",
            data={
                "client": client.client_id,
                "expected": client.sync_state.last_synced_file_hash,
                "actual": current,
            },
        )
        return SaveOutcome(status=WARNED, reason=RELOAD_REQUIRED)

    def close(self, client: ClientSession) -> None:
        """Persist the client's sync state, unmerged revisions included.

        A client with the undo file turned off leaves no session behind.
        """

        if not client.enabled:
            self._sessions(client.client_id).discard()
            return
        self._sessions(client.client_id).save(client.sync_state)


def load(
    document: Union[str, Path],
    client_id: Optional[str] = None,
    *,
    settings: Optional[StoreSettings] = None,
) -> Tuple[UndoTree, SyncState]:
    return SaveCoordinator(document, settings=settings).load(client_id)


def save(
    document: Union[str, Path],
    client: ClientSession,
    content: Content,
    *,
    settings: Optional[StoreSettings] = None,
) -> SaveOutcome:
    return SaveCoordinator(document, settings=settings).save(client, content)


__all__ = [
    "RELOAD_REQUIRED",
    "SAVED",
    "SKIPPED",
    "SaveCoordinator",
    "SaveOutcome",
    "UNDOFILE_DISABLED",
    "WARNED",
    "load",
    "save",
]
