"""Host adapters for browsing undo history."""
