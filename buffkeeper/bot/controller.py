"""
BuffKeeper — Rotation Controller

Tick driver that reads the world, runs the eligibility gate and advances
the rotation state machine.

Architecture:
    WorldReader ──► capture_snapshot() ──► Snapshot
                                             ↓
                                     RotationController (this file)
                                      ├── gate.evaluate()     blocked → reset to Idle
                                      └── RotationMachine.step()
                                           ├── selector / tracker
                                           └── ActionExecutor
                                                  ↓
                                     InputEffector (Win32 / dry-run)

The controller publishes "<name>.IsActive" in the capability registry so
other automations can yield while a rotation is running, and reads the
peer controller's flag the same way.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from buffkeeper.data.bridge import CapabilityRegistry, active_flag_name
from buffkeeper.data.state import WorldReader, capture_snapshot
from buffkeeper.rotation import gate, tracker
from buffkeeper.rotation.config import RotationConfig
from buffkeeper.rotation.executor import ActionExecutor
from buffkeeper.rotation.machine import RotationMachine, RotationStats, TransitionCallback
from buffkeeper.rotation.timing import Clock, SystemClock
from buffkeeper.rotation.types import GateResult, RotationState, StatusFlags
from buffkeeper.bot.effector import InputEffector

log = logging.getLogger(__name__)


class RotationController:
    """Runs the buff-refresh rotation on a fixed tick."""

    def __init__(
        self,
        reader: WorldReader,
        inp: InputEffector,
        config: RotationConfig | None = None,
        registry: CapabilityRegistry | None = None,
        clock: Clock | None = None,
    ):
        self.reader = reader
        self.inp = inp
        self.config = config or RotationConfig()
        self.registry = registry or CapabilityRegistry()
        self.clock = clock or SystemClock()
        self._stats = RotationStats()
        self.executor = ActionExecutor(
            reader, inp, self.config, registry=self.registry, clock=self.clock,
        )
        self.machine = RotationMachine(
            self.config, self.executor, self.poll_status,
            clock=self.clock, stats=self._stats,
        )
        self.last_gate = GateResult(False, "Not started")
        self._running = False
        self._paused = False
        self._area_name: str | None = None
        self._tick_hooks: list[Callable[[RotationController], None]] = []
        self.publish()

    # ---- Capability registry ----

    @property
    def is_active(self) -> bool:
        """True while a rotation sequence is in progress."""
        return self.machine.ctx.sequence_active

    def publish(self) -> None:
        """Expose our IsActive flag to cooperating controllers."""
        name = active_flag_name(self.config.name)
        self.registry.publish(name, lambda: self.is_active)
        self._say("%s registered in capability registry", name)

    def on_area_change(self, area_name: str) -> None:
        self._area_name = area_name
        self.publish()
        log.info("area changed: %s", area_name or "?")

    def _say(self, msg: str, *args) -> None:
        if self.config.verbose_logging:
            log.info(msg, *args)

    # ---- Status ----

    def poll_status(self) -> StatusFlags:
        """Fresh status read, used by the verification poll."""
        return tracker.refresh(self.reader.player(), self.config.buff_name)

    def on_transition(self, callback: TransitionCallback) -> None:
        self.machine.on_transition(callback)

    def on_tick(self, callback: Callable[[RotationController], None]) -> None:
        self._tick_hooks.append(callback)

    @property
    def state(self) -> RotationState:
        return self.machine.state

    @property
    def stats(self) -> RotationStats:
        return self._stats

    # ---- Decision loop ----

    def tick(self) -> RotationState:
        """Run one decision tick. Returns the rotation state afterwards."""
        if self._paused:
            if self.machine.ctx.sequence_active:
                self.machine.reset("paused")
            return self.machine.state

        self._stats.ticks += 1
        snapshot = capture_snapshot(self.reader)
        if snapshot.area.name != self._area_name:
            self.on_area_change(snapshot.area.name)

        result = gate.evaluate(snapshot, self.config, self.registry)
        if result.reason != self.last_gate.reason:
            level = logging.INFO if result.eligible else logging.DEBUG
            log.log(level, "gate: %s", result.reason)
        self.last_gate = result

        if not result.eligible:
            self._stats.gate_blocks += 1
            self.machine.reset(result.reason)
        else:
            self.machine.step(snapshot)

        for hook in self._tick_hooks:
            hook(self)
        return self.machine.state

    def run(self, should_continue: Callable[[], bool] | None = None) -> None:
        """Run the tick loop until stopped. Blocks."""
        self._running = True
        log.info("rotation loop started (tick=%.2fs)", self.config.tick_interval)

        try:
            while self._running:
                if should_continue is not None and not should_continue():
                    break
                self.tick()
                self.clock.sleep(self.config.tick_interval)
        except KeyboardInterrupt:
            log.info("rotation loop stopped by user")
        finally:
            self._running = False

    def stop(self) -> None:
        """Signal the loop to stop."""
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def pause(self) -> None:
        """Pause the rotation; the next tick drops any sequence in progress."""
        self._paused = True
        log.info("rotation paused")

    def resume(self) -> None:
        self._paused = False
        log.info("rotation resumed")

    @property
    def paused(self) -> bool:
        return self._paused

    def status_line(self) -> str:
        """One-line status for display."""
        ctx = self.machine.ctx
        parts = [
            f"[{ctx.state}]",
            f"gate={self.last_gate.reason}",
            f"buff={'yes' if ctx.has_buff else 'no'}",
            f"set={ctx.active_loadout}",
        ]
        if ctx.selected_target is not None:
            parts.append(f"target={ctx.selected_target}")
        parts.append(
            f"casts={self._stats.casts} swaps={self._stats.swaps} "
            f"retries={self._stats.retries} done={self._stats.sequences_completed}"
        )
        if self._paused:
            parts.insert(0, "PAUSED")
        return " | ".join(parts)


def run_with_status(controller: RotationController, interval: float = 3.0,
                    should_continue: Callable[[], bool] | None = None) -> None:
    """Run the loop, printing the status line every `interval` seconds."""
    last_status = 0.0

    def _status(c: RotationController) -> None:
        nonlocal last_status
        now = time.monotonic()
        if (now - last_status) >= interval:
            print(f"\r  {c.status_line():<110s}", end="", flush=True)
            last_status = now

    controller.on_tick(_status)
    controller.run(should_continue)
    print()
