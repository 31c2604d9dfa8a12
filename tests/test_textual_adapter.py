from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from undofile.adapters.textual import HistoryBrowser, HistoryHooks, HistoryRow, build_rows
from undofile.history import Direction, UndoTree
from undofile.runtime.settings import StoreSettings
from undofile.session import SaveCoordinator
from undofile.storage import hash_bytes


def make_branching_tree() -> UndoTree:
    tree = UndoTree.new()
    first = tree.create_revision("a", 0, file_hash=hash_bytes(b"a"), created_at=1.0)
    tree.create_revision("b", first, file_hash=hash_bytes(b"b"), created_at=2.0)
    tree.create_revision("c", first, file_hash=hash_bytes(b"c"), created_at=3.0)
    return tree


def make_browser(tmp_path: Path) -> tuple[HistoryBrowser, List[Sequence[HistoryRow]], List[str]]:
    coordinator = SaveCoordinator(
        tmp_path / "doc.txt", settings=StoreSettings(fsync=False, client_id="viewer")
    )
    rows: List[Sequence[HistoryRow]] = []
    statuses: List[str] = []
    hooks = HistoryHooks(update_rows=rows.append, update_status=statuses.append)
    return HistoryBrowser(coordinator, hooks), rows, statuses


def test_build_rows_indents_later_siblings() -> None:
    rows = build_rows(make_branching_tree())

    assert [(row.id, row.column) for row in rows] == [(0, 0), (1, 0), (2, 0), (3, 1)]
    assert [row.id for row in rows if row.is_branch] == [1]
    assert rows[-1].is_cursor


def test_row_render_marks_cursor_and_branches() -> None:
    rows = build_rows(make_branching_tree())

    assert rows[0].render() == "  | 0 (empty)"
    assert rows[1].render().startswith("  + 1 ")
    assert rows[3].render().startswith(">   | 3 ")


def test_browser_publishes_rows_for_saved_history(tmp_path: Path) -> None:
    browser, rows, statuses = make_browser(tmp_path)
    client = browser.coordinator.open("writer")
    client.commit("hello")
    browser.coordinator.save(client, "hello")

    tree = browser.refresh()

    assert tree is not None and len(tree) == 2
    assert [row.id for row in rows[-1]] == [0, 1]
    assert statuses[-1] == "doc.txt @ 1 (2 revisions)"
    assert browser.summary() == {"revisions": 2, "cursor": 1, "tip": 1, "branches": 0}


def test_browser_navigation_stops_at_edges(tmp_path: Path) -> None:
    browser, _rows, statuses = make_browser(tmp_path)
    browser.refresh()

    assert browser.move(Direction.UNDO) is None
    assert statuses[-1] == "no revision undo"


def test_browser_reports_corrupt_undo_file(tmp_path: Path) -> None:
    browser, rows, statuses = make_browser(tmp_path)
    browser.coordinator.undo_path.write_bytes(b"garbage")

    assert browser.refresh() is None
    assert rows[-1] == ()
    assert statuses[-1].startswith("corrupt undo file:")
    assert browser.summary() == {"revisions": 0}


def test_browser_publishes_nothing_before_first_refresh(tmp_path: Path) -> None:
    browser, rows, statuses = make_browser(tmp_path)

    browser._publish()

    assert browser.move(Direction.LATER) is None
    assert rows == [] and statuses == []
