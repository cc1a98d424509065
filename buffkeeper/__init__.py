"""
BuffKeeper — buff-refresh rotation controller.

Packages:
    data/      — world snapshot types, capability registry, scenario reader
    rotation/  — gate, selector, tracker, executor, state machine
    bot/       — controller, input backends, CLI entry point
    dashboard/ — Textual status TUI
"""

__version__ = "0.3.0"
