"""
BuffKeeper Dashboard — Textual TUI App

Real-time terminal view of a running RotationController: state, gate
reason, buff and weapon set, counters, and a log of every transition.

The controller loop runs in a worker thread; the UI only reads controller
status on a timer and receives transitions via call_from_thread.

Keys:
  p — pause / resume the rotation
  c — clear the transition log
  q — quit (stops the loop)
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.timer import Timer
from textual.widgets import Footer, Static

from buffkeeper.bot.controller import RotationController
from buffkeeper.dashboard.widgets import StatsPanel, StatusPanel, TransitionPanel
from buffkeeper.rotation.types import RotationState


class RotationDashboard(App):
    """BuffKeeper rotation dashboard."""

    CSS = """
    #header-bar { height: 1; background: $boost; }
    #status-label { width: 1fr; }
    #body { height: 9; }
    StatusPanel { width: 2fr; border: round $accent; padding: 0 1; }
    StatsPanel { width: 1fr; border: round $accent; padding: 0 1; }
    TransitionPanel { border: round $secondary; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("p", "toggle_pause", "Pause"),
        Binding("c", "clear_log", "Clear"),
    ]

    def __init__(
        self,
        controller: RotationController,
        should_continue: Callable[[], bool] | None = None,
        title: str = "",
    ):
        super().__init__()
        self.controller = controller
        self._should_continue = should_continue
        self._title = title or controller.config.name
        self._refresh_timer: Timer | None = None
        self._loop_done = False

    def compose(self) -> ComposeResult:
        with Horizontal(id="header-bar"):
            yield Static("BuffKeeper", id="status-label")
        with Horizontal(id="body"):
            yield StatusPanel(id="status")
            yield StatsPanel(id="stats")
        yield TransitionPanel()
        yield Footer()

    def on_mount(self) -> None:
        self.controller.on_transition(self._on_transition)
        self._refresh_timer = self.set_interval(0.5, self._periodic_refresh)
        thread = threading.Thread(target=self._run_loop, daemon=True, name="rotation")
        thread.start()
        self._periodic_refresh()

    # ---- Controller loop (worker thread) ----

    def _run_loop(self) -> None:
        self.controller.run(self._should_continue)
        self._loop_done = True
        self.call_from_thread(self._periodic_refresh)

    def _on_transition(self, old: RotationState, new: RotationState, why: str) -> None:
        self.call_from_thread(self._log_transition, time.time(), old, new, why)

    def _log_transition(self, ts: float, old: RotationState, new: RotationState, why: str) -> None:
        self.query_one(TransitionPanel).log_transition(ts, old, new, why)

    # ---- Refresh ----

    def _periodic_refresh(self) -> None:
        c = self.controller
        mode = "DONE" if self._loop_done else ("PAUSED" if c.paused else "RUNNING")
        self.query_one("#status-label", Static).update(f"BuffKeeper | {self._title} | {mode}")
        self.query_one(StatusPanel).refresh_status(
            c.machine.ctx, c.last_gate.reason, c.last_gate.eligible, c.paused,
        )
        self.query_one(StatsPanel).refresh_stats(c.stats)

    # ---- Actions ----

    def action_toggle_pause(self) -> None:
        if self.controller.paused:
            self.controller.resume()
        else:
            self.controller.pause()
        self._periodic_refresh()

    def action_clear_log(self) -> None:
        self.query_one(TransitionPanel).clear()

    async def action_quit(self) -> None:
        self.controller.stop()
        self.exit()
