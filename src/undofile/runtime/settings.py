"""Environment-driven settings for the undo-file store."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

ENV_PREFIX = "UNDOFILE_"

UNDO_SUFFIX = ".undo"
SESSION_DIRNAME = ".sessions"
BLOB_DIRNAME = ".blobs"


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_flag(name: str, default: bool) -> bool:
    raw = env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _default_client_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


@dataclass(frozen=True, slots=True)
class StoreSettings:
    """Where the undo file lives and how it is written.

    ``undo_dir`` of ``None`` keeps the undo file next to the document.
    """

    undo_dir: Optional[Path] = None
    backup_suffix: str = ".bak"
    enabled: bool = True
    fsync: bool = True
    client_id: str = ""

    def __post_init__(self) -> None:
        if not self.backup_suffix:
            raise ValueError("backup_suffix cannot be empty")
        if self.backup_suffix == UNDO_SUFFIX:
            raise ValueError("backup_suffix must differ from the undo-file suffix")
        if not self.client_id:
            object.__setattr__(self, "client_id", _default_client_id())

    @classmethod
    def from_env(cls) -> "StoreSettings":
        undo_dir = env("UNDO_DIR")
        return cls(
            undo_dir=Path(undo_dir).expanduser() if undo_dir else None,
            backup_suffix=env("BACKUP_SUFFIX") or ".bak",
            enabled=env_flag("ENABLED", True),
            fsync=env_flag("FSYNC", True),
            client_id=env("CLIENT_ID") or "",
        )

    def with_overrides(self, **changes: object) -> "StoreSettings":
        return replace(self, **changes)  # type: ignore[arg-type]

    def undo_dir_for(self, document: Path) -> Path:
        return self.undo_dir if self.undo_dir is not None else document.parent

    def undo_path_for(self, document: Path) -> Path:
        return self.undo_dir_for(document) / f"{document.name}{UNDO_SUFFIX}"

    def session_path_for(self, document: Path, client_id: str) -> Path:
        return (
            self.undo_dir_for(document)
            / SESSION_DIRNAME
            / f"{document.name}.{client_id}.json"
        )

    def blob_dir_for(self, document: Path) -> Path:
        return self.undo_dir_for(document) / BLOB_DIRNAME


__all__ = [
    "ENV_PREFIX",
    "StoreSettings",
    "env",
    "env_flag",
]
