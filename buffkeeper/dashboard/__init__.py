"""BuffKeeper Dashboard — Textual TUI for a running rotation."""
