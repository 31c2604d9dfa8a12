"""Staleness detection, branch merging and per-client sync state."""

from .merge import MergeResult, causal_order, merge
from .staleness import Freshness, check, require_fresh
from .state import SessionStore, SyncState

__all__ = [
    "Freshness",
    "MergeResult",
    "SessionStore",
    "SyncState",
    "causal_order",
    "check",
    "merge",
    "require_fresh",
]
