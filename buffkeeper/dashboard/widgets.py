"""
BuffKeeper Dashboard — Panel Widgets

Three panels for the TUI dashboard:
1. StatusPanel     — current state, gate reason, buff, weapon set, target
2. StatsPanel      — rotation counters
3. TransitionPanel — coloured log of state transitions
"""

from __future__ import annotations

import time

from rich.text import Text
from textual.containers import Vertical
from textual.widgets import RichLog, Static

from buffkeeper.rotation.machine import RotationStats
from buffkeeper.rotation.types import Phase, RotationContext, RotationState


def _fmt_time(ts: float) -> str:
    return time.strftime("%H:%M:%S", time.localtime(ts))


# ---- Color map for states ----

_STATE_COLORS: dict[Phase, str] = {
    Phase.IDLE: "green",
    Phase.AWAITING_TIMER: "cyan",
    Phase.AIMING_AND_CASTING: "yellow",
    Phase.AWAITING_VERIFICATION: "magenta",
    Phase.RETRYING: "red",
}


def state_text(state: RotationState) -> Text:
    return Text(state.label, style=f"bold {_STATE_COLORS.get(state.phase, 'white')}")


def transition_text(ts: float, old: RotationState, new: RotationState, why: str) -> Text:
    """One log line: time, old → new, reason."""
    line = Text()
    line.append(f"{_fmt_time(ts)} ", style="dim")
    line.append_text(state_text(old))
    line.append(" → ")
    line.append_text(state_text(new))
    if why:
        line.append(f"  {why}", style="italic")
    return line


def status_text(ctx: RotationContext, gate_reason: str, eligible: bool, paused: bool) -> Text:
    text = Text()
    text.append("State: ")
    text.append_text(state_text(ctx.state))
    if paused:
        text.append("  PAUSED", style="bold red")
    text.append("\nGate:  ")
    text.append(gate_reason, style="green" if eligible else "yellow")
    text.append("\nBuff:  ")
    text.append("present" if ctx.has_buff else "missing", style="green" if ctx.has_buff else "red")
    text.append(f"\nSet:   {ctx.active_loadout}")
    text.append(f"\nTarget: {ctx.selected_target if ctx.selected_target is not None else '-'}")
    if ctx.swap_back_pending:
        text.append("\nSwap back pending", style="cyan")
    return text


def stats_text(stats: RotationStats) -> Text:
    rows = [
        ("Ticks", stats.ticks),
        ("Gate blocks", stats.gate_blocks),
        ("Sequences", f"{stats.sequences_completed}/{stats.sequences_started}"),
        ("Aborted", stats.sequences_aborted),
        ("Casts", stats.casts),
        ("Swaps", stats.swaps),
        ("Retries", stats.retries),
        ("Buff checks", stats.verification_polls),
    ]
    text = Text()
    for i, (label, value) in enumerate(rows):
        if i:
            text.append("\n")
        text.append(f"{label:<12s}", style="bold")
        text.append(str(value))
    return text


# ---- 1. Status Panel ----

class StatusPanel(Static):
    """Current rotation status."""

    def refresh_status(self, ctx: RotationContext, gate_reason: str,
                       eligible: bool, paused: bool) -> None:
        self.update(status_text(ctx, gate_reason, eligible, paused))


# ---- 2. Stats Panel ----

class StatsPanel(Static):
    """Rotation counters."""

    def refresh_stats(self, stats: RotationStats) -> None:
        self.update(stats_text(stats))


# ---- 3. Transition Panel ----

class TransitionPanel(Vertical):
    """Live log of state transitions."""

    def compose(self):
        yield RichLog(highlight=False, markup=False, max_lines=500, id="transition-log")

    def log_transition(self, ts: float, old: RotationState, new: RotationState, why: str) -> None:
        self.query_one("#transition-log", RichLog).write(transition_text(ts, old, new, why))

    def clear(self) -> None:
        self.query_one("#transition-log", RichLog).clear()
