"""Client sessions and the save coordinator."""

from .client import ClientSession
from .coordinator import (
    RELOAD_REQUIRED,
    SAVED,
    SKIPPED,
    WARNED,
    SaveCoordinator,
    SaveOutcome,
    load,
    save,
)

__all__ = [
    "ClientSession",
    "RELOAD_REQUIRED",
    "SAVED",
    "SKIPPED",
    "SaveCoordinator",
    "SaveOutcome",
    "WARNED",
    "load",
    "save",
]
