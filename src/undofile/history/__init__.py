"""Revision nodes, the undo tree and its persisted encoding."""

from .format import FORMAT_VERSION, MAGIC, TreeRecord
from .revision import Revision
from .tree import ROOT_ID, Direction, UndoTree

__all__ = [
    "Direction",
    "FORMAT_VERSION",
    "MAGIC",
    "ROOT_ID",
    "Revision",
    "TreeRecord",
    "UndoTree",
]
