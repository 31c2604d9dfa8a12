"""Backup-protected write-temp-then-rename helpers.

At every instant the live path holds either the complete old bytes or the
complete new bytes. Backups are refreshed the same way, so a crash while
taking the backup never truncates it either.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from undofile.errors import StorageIOError

DEFAULT_BACKUP_SUFFIX = ".bak"
TEMP_SUFFIX = ".tmp"


@dataclass(frozen=True, slots=True)
class WriteReceipt:
    """What ``atomic_write`` changed, enough to undo it with ``rollback``."""

    path: Path
    backup: Optional[Path]


def backup_path(path: Path, suffix: str = DEFAULT_BACKUP_SUFFIX) -> Path:
    return path.with_name(path.name + suffix)


def read_bytes(path: Path) -> Optional[bytes]:
    """Return the file contents, or ``None`` when it does not exist."""

    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise StorageIOError(f"Unable to read {path}: {exc}", path=path) from exc


def _fsync_dir(directory: Path) -> None:
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _temp_sibling(path: Path) -> Path:
    fd, name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=TEMP_SUFFIX, dir=path.parent
    )
    os.close(fd)
    return Path(name)


def _write_temp(path: Path, data: bytes, *, fsync: bool) -> Path:
    temp = _temp_sibling(path)
    try:
        with open(temp, "wb") as handle:
            handle.write(data)
            handle.flush()
            if fsync:
                os.fsync(handle.fileno())
    except BaseException:
        temp.unlink(missing_ok=True)
        raise
    return temp


def _copy_over(source: Path, target: Path, *, fsync: bool) -> None:
    temp = _temp_sibling(target)
    try:
        shutil.copy2(source, temp)
        if fsync:
            with open(temp, "rb") as handle:
                os.fsync(handle.fileno())
        os.replace(temp, target)
    except BaseException:
        temp.unlink(missing_ok=True)
        raise


def atomic_write(
    path: Path,
    data: bytes,
    *,
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX,
    fsync: bool = True,
) -> WriteReceipt:
    """Replace ``path`` with ``data``, keeping the previous version as a backup.

    Raises ``StorageIOError`` on any failure; the live file is then exactly as
    it was before the call.
    """

    path = Path(path)
    temp: Optional[Path] = None
    backup: Optional[Path] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp = _write_temp(path, data, fsync=fsync)
        if path.exists():
            backup = backup_path(path, backup_suffix)
            _copy_over(path, backup, fsync=fsync)
        os.replace(temp, path)
        temp = None
        if fsync:
            _fsync_dir(path.parent)
    except OSError as exc:
        raise StorageIOError(f"Unable to write {path}: {exc}", path=path) from exc
    finally:
        if temp is not None:
            temp.unlink(missing_ok=True)
    return WriteReceipt(path=path, backup=backup)


def rollback(receipt: WriteReceipt, *, fsync: bool = True) -> None:
    """Put back the version ``atomic_write`` replaced.

    A write that created the file is undone by removing it.
    """

    try:
        if receipt.backup is None:
            receipt.path.unlink(missing_ok=True)
        else:
            _copy_over(receipt.backup, receipt.path, fsync=fsync)
    except OSError as exc:
        raise StorageIOError(
            f"Unable to restore {receipt.path}: {exc}", path=receipt.path
        ) from exc


__all__ = [
    "DEFAULT_BACKUP_SUFFIX",
    "WriteReceipt",
    "atomic_write",
    "backup_path",
    "read_bytes",
    "rollback",
]
