"""Detects clients whose view of the document fell behind the disk."""

from __future__ import annotations

from enum import Enum

from undofile.errors import StaleClientError

from .state import SyncState


class Freshness(str, Enum):
    FRESH = "fresh"
    STALE = "stale"


def check(sync_state: SyncState, current_file_hash: str) -> Freshness:
    """Compare the client's last synced hash with the document's actual hash.

    The hash comes from the file content itself rather than the master tip, so
    edits made by tools outside the store are caught too.
    """

    if sync_state.last_synced_file_hash == current_file_hash:
        return Freshness.FRESH
    return Freshness.STALE


def require_fresh(sync_state: SyncState, current_file_hash: str) -> None:
    if check(sync_state, current_file_hash) is Freshness.STALE:
        raise StaleClientError(sync_state.last_synced_file_hash, current_file_hash)


__all__ = ["Freshness", "check", "require_fresh"]
