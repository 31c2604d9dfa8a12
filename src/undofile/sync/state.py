"""Per-client sync state and its session file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

from undofile.errors import CorruptTreeError, StorageIOError
from undofile.history import Revision
from undofile.storage import atomic_write, read_bytes

SESSION_VERSION = 1


@dataclass(slots=True)
class SyncState:
    """What a client last saw of the master, plus its unmerged edits."""

    client_id: str
    last_synced_file_hash: str
    divergence_id: int
    cursor: int
    suffix: List[Revision] = field(default_factory=list)

    @property
    def has_unmerged(self) -> bool:
        return bool(self.suffix)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": SESSION_VERSION,
            "client_id": self.client_id,
            "last_synced_file_hash": self.last_synced_file_hash,
            "divergence_id": self.divergence_id,
            "cursor": self.cursor,
            "suffix": [rev.to_dict() for rev in self.suffix],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SyncState":
        return cls(
            client_id=str(data["client_id"]),
            last_synced_file_hash=str(data["last_synced_file_hash"]),
            divergence_id=int(data["divergence_id"]),
            cursor=int(data["cursor"]),
            suffix=[Revision.from_dict(raw) for raw in data.get("suffix", [])],
        )


class SessionStore:
    """Reads and writes one client's sync state next to the undo file."""

    def __init__(
        self, path: Path, *, backup_suffix: str = ".bak", fsync: bool = True
    ) -> None:
        self.path = Path(path)
        self.backup_suffix = backup_suffix
        self.fsync = fsync

    def load(self) -> Optional[SyncState]:
        raw = read_bytes(self.path)
        if raw is None:
            return None
        try:
            data = json.loads(raw.decode("utf-8"))
            if data.get("version", 0) > SESSION_VERSION:
                raise CorruptTreeError(
                    f"Session file {self.path} was written by a newer version"
                )
            return SyncState.from_dict(data)
        except (UnicodeDecodeError, json.JSONDecodeError, AttributeError) as exc:
            raise CorruptTreeError(f"Session file {self.path} is unreadable: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptTreeError(f"Session file {self.path} is malformed: {exc}") from exc

    def save(self, state: SyncState) -> None:
        payload = json.dumps(state.to_dict(), indent=2, sort_keys=True)
        atomic_write(
            self.path,
            payload.encode("utf-8"),
            backup_suffix=self.backup_suffix,
            fsync=self.fsync,
        )

    def discard(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageIOError(
                f"Unable to remove {self.path}: {exc}", path=self.path
            ) from exc


__all__ = ["SESSION_VERSION", "SessionStore", "SyncState"]
