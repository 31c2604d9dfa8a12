"""UI-agnostic controller behind the Textual history browser."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from undofile.errors import CorruptTreeError, NoSuchTransitionError
from undofile.history import Direction, UndoTree
from undofile.session import SaveCoordinator


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class HistoryRow:
    """One revision as rendered in the browser."""

    id: int
    column: int
    label: str
    is_cursor: bool = False
    is_branch: bool = False

    def render(self) -> str:
        marker = ">" if self.is_cursor else " "
        fork = "+" if self.is_branch else "|"
        return f"{marker} {'  ' * self.column}{fork} {self.label}"


@dataclass(slots=True)
class HistoryHooks:
    """Callbacks invoked by the browser to update Textual widgets."""

    update_rows: Callable[[Sequence[HistoryRow]], None]
    update_status: Callable[[str], None] = _noop
    log: Callable[[str], None] = _noop


def _label(tree: UndoTree, rev_id: int) -> str:
    revision = tree.get(rev_id)
    if revision.is_root:
        return f"{rev_id} (empty)"
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(revision.created_at))
    return f"{rev_id} {revision.file_hash[:8]} {stamp}"


def build_rows(tree: UndoTree) -> List[HistoryRow]:
    """Flatten ``tree`` depth-first; later siblings are indented one column."""

    rows: List[HistoryRow] = []
    stack: List[tuple[int, int]] = [(tree.root.id, 0)]
    while stack:
        rev_id, column = stack.pop()
        children = tree.children(rev_id)
        rows.append(
            HistoryRow(
                id=rev_id,
                column=column,
                label=_label(tree, rev_id),
                is_cursor=rev_id == tree.cursor,
                is_branch=len(children) > 1,
            )
        )
        # push in reverse so the oldest child is visited first
        for offset, child in reversed(list(enumerate(children))):
            stack.append((child, column + (1 if offset else 0)))
    return rows


class HistoryBrowser:
    """Loads the master tree of a document and walks it for display."""

    def __init__(self, coordinator: SaveCoordinator, hooks: HistoryHooks) -> None:
        self.coordinator = coordinator
        self.hooks = hooks
        self.tree: Optional[UndoTree] = None

    def refresh(self) -> Optional[UndoTree]:
        try:
            self.tree = self.coordinator.read_master()
        except CorruptTreeError as exc:
            self.tree = None
            self.hooks.update_rows(())
            self.hooks.update_status(f"corrupt undo file: {exc.reason}")
            self.hooks.log(f"refresh failed reason={exc.reason!r}")
            return None
        self._publish()
        return self.tree

    def move(self, direction: Direction) -> Optional[int]:
        if self.tree is None:
            return None
        try:
            target = self.tree.navigate(direction)
        except NoSuchTransitionError:
            self.hooks.update_status(f"no revision {Direction(direction).value}")
            return None
        self._publish()
        return target

    def summary(self) -> Dict[str, object]:
        if self.tree is None:
            return {"revisions": 0}
        return {
            "revisions": len(self.tree),
            "cursor": self.tree.cursor,
            "tip": self.tree.tip.id,
            "branches": sum(1 for row in build_rows(self.tree) if row.is_branch),
        }

    def _publish(self) -> None:
        if self.tree is None:
            return
        rows = build_rows(self.tree)
        self.hooks.update_rows(rows)
        current = self.tree.current
        self.hooks.update_status(
            f"{self.coordinator.document.name} @ {current.id} "
            f"({len(self.tree)} revisions)"
        )
        self.hooks.log(f"publish rows={len(rows)} cursor={current.id}")


__all__ = ["HistoryBrowser", "HistoryHooks", "HistoryRow", "build_rows"]
