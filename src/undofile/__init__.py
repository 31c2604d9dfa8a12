"""Shared, persistent undo history for documents edited by several clients."""

__all__ = [
    "adapters",
    "errors",
    "history",
    "runtime",
    "session",
    "storage",
    "sync",
]

__version__ = "0.1.0"
