"""Executable Textual app that browses a document's undo history."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

try:  # pragma: no cover - imported only when the browser is run
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use undofile.adapters.textual.app"
    ) from exc

from undofile.history import Direction
from undofile.runtime import telemetry
from undofile.runtime.settings import StoreSettings
from undofile.session import SaveCoordinator

from .controller import HistoryBrowser, HistoryHooks, HistoryRow


@dataclass
class UIState:
    history_text: str = ""
    status_text: str = ""


class UndoHistoryApp(App[None]):
    """Read-only view of the master undo tree for one document."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#history-view {
		height: 1fr;
		border: round $accent;
		padding: 1 1;
		content-align: left top;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("up", "earlier", "Earlier"),
        ("down", "later", "Later"),
        ("left", "undo", "Parent"),
        ("right", "redo", "Child"),
        ("r", "reload", "Reload"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, coordinator: SaveCoordinator) -> None:
        super().__init__()
        self._state = UIState()
        self.coordinator = coordinator
        self.browser: HistoryBrowser | None = None
        self._history_widget: Static | None = None
        self._status_widget: Static | None = None
        self._logger = telemetry.get_logger("undofile.adapters.textual")

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="history-area"):
            self._history_widget = Static("", id="history-view")
            yield self._history_widget
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        hooks = HistoryHooks(
            update_rows=self._update_rows,
            update_status=self._update_status,
            log=self._logger.debug,
        )
        self.browser = HistoryBrowser(self.coordinator, hooks)
        self.browser.refresh()

    def action_earlier(self) -> None:
        self._move(Direction.EARLIER)

    def action_later(self) -> None:
        self._move(Direction.LATER)

    def action_undo(self) -> None:
        self._move(Direction.UNDO)

    def action_redo(self) -> None:
        self._move(Direction.REDO)

    def action_reload(self) -> None:
        if self.browser:
            self.browser.refresh()

    def _move(self, direction: Direction) -> None:
        if self.browser:
            self.browser.move(direction)

    def _update_rows(self, rows: Sequence[HistoryRow]) -> None:
        self._state.history_text = "\n".join(row.render() for row in rows)
        if self._history_widget:
            self._history_widget.update(self._state.history_text)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse a document's undo history.")
    parser.add_argument("document", type=Path, help="Document whose undo file to open")
    parser.add_argument(
        "--undo-dir",
        type=Path,
        default=None,
        help="Directory holding the undo file (default: next to the document)",
    )
    parser.add_argument(
        "--log-preset",
        choices=("development", "production", "quiet"),
        default=None,
        help="telelog preset to use instead of the UNDOFILE_LOG_* settings",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    settings = StoreSettings.from_env()
    if args.undo_dir is not None:
        settings = settings.with_overrides(undo_dir=args.undo_dir)
    app = UndoHistoryApp(SaveCoordinator(args.document, settings=settings))
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual browser
    main()
