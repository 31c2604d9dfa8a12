"""Textual history browser for undo files."""

from .controller import HistoryBrowser, HistoryHooks, HistoryRow, build_rows

__all__ = ["HistoryBrowser", "HistoryHooks", "HistoryRow", "build_rows"]
