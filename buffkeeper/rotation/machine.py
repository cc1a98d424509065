"""
BuffKeeper — Rotation State Machine

Advances the buff-refresh rotation by at most one transition per tick.

    Idle ──(no buff, weapon set 0)── swap ──► AwaitingTimer(SwapToMain)
      │                                              │ swap_delay elapsed
      └──(no buff, weapon set 1)──► AimingAndCasting ◄──────┘
                                        │      ▲
                         cast ok        │      │ (next tick)
                                        ▼      │
                              AwaitingVerification ──(no buff x3)──► Retrying
                                        │ buff found
                 swap back owed ────────┴──────── nothing owed
                        │                              │
                        ▼                              ▼
              AwaitingTimer(SwapBack) ──elapsed──►   Idle

Long waits (swap animation, cast check) are state + timestamp pairs checked
each tick. The only in-tick loop is the verification poll: at most three
status reads with action_delay between them.

Retrying has no cap and no backoff. The rotation keeps trying until the
buff shows up or the gate stops it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from buffkeeper.data.state import Snapshot
from buffkeeper.rotation import selector, tracker
from buffkeeper.rotation.config import RotationConfig
from buffkeeper.rotation.executor import ActionExecutor
from buffkeeper.rotation.timing import Clock, Stopwatch
from buffkeeper.rotation.types import (
    AIMING_AND_CASTING,
    AWAITING_SWAP_BACK,
    AWAITING_SWAP_TO_MAIN,
    AWAITING_VERIFICATION,
    IDLE,
    RETRYING,
    ActionError,
    ActionResult,
    Phase,
    RotationContext,
    RotationState,
    StatusFlags,
    SwapReason,
)

log = logging.getLogger(__name__)

VERIFY_ATTEMPTS = 3
OFF_HAND_LOADOUT = 0

# Called with (old_state, new_state, why) on every transition
TransitionCallback = Callable[[RotationState, RotationState, str], None]


@dataclass
class RotationStats:
    """Counters for rotation activity."""
    ticks: int = 0
    gate_blocks: int = 0
    sequences_started: int = 0
    sequences_completed: int = 0
    sequences_aborted: int = 0
    casts: int = 0
    swaps: int = 0
    retries: int = 0
    verification_polls: int = 0


class RotationMachine:
    """Owns the rotation context and its transition rules."""

    def __init__(
        self,
        config: RotationConfig,
        executor: ActionExecutor,
        poll_status: Callable[[], StatusFlags],
        clock: Clock | None = None,
        stats: RotationStats | None = None,
    ):
        self.config = config
        self.executor = executor
        self.poll_status = poll_status
        self.clock = clock or executor.clock
        self.ctx = RotationContext()
        self.stats = stats or RotationStats()
        self.last_failure: ActionResult | None = None
        self._cast_timer = Stopwatch(self.clock)
        self._callbacks: list[TransitionCallback] = []

    # ---- Observers ----

    def on_transition(self, callback: TransitionCallback) -> None:
        self._callbacks.append(callback)

    def _say(self, msg: str, *args) -> None:
        if self.config.verbose_logging:
            log.info(msg, *args)

    @property
    def state(self) -> RotationState:
        return self.ctx.state

    def _notify(self, old: RotationState, new: RotationState, why: str) -> None:
        self._say("%s → %s: %s", old, new, why)
        for cb in self._callbacks:
            try:
                cb(old, new, why)
            except Exception:
                log.exception("transition callback failed")

    def _go(self, new: RotationState, why: str) -> None:
        old = self.ctx.state
        self.ctx.state = new
        if new == RETRYING:
            self.stats.retries += 1
        self._notify(old, new, why)

    def _apply(self, flags: StatusFlags) -> None:
        self.ctx.has_buff = flags.has_buff
        self.ctx.active_loadout = flags.active_loadout

    # ---- Reset ----

    def reset(self, why: str) -> None:
        """Force Idle and drop all transient data (gate block or completion)."""
        old = self.ctx.state
        self.ctx.reset()
        if old != IDLE:
            self._notify(old, IDLE, why)

    # ---- Tick ----

    def step(self, snapshot: Snapshot) -> RotationState:
        """Advance by at most one transition. Returns the resulting state."""
        self._apply(tracker.refresh(snapshot.player, self.config.buff_name))

        match self.ctx.state.phase:
            case Phase.IDLE:
                self._step_idle()
            case Phase.AWAITING_TIMER:
                self._step_awaiting_timer()
            case Phase.AIMING_AND_CASTING:
                self._step_aim_and_cast(snapshot)
            case Phase.AWAITING_VERIFICATION:
                self._step_verify()
            case Phase.RETRYING:
                self._go(AIMING_AND_CASTING, "retrying cast")

        return self.ctx.state

    def _step_idle(self) -> None:
        if self.ctx.has_buff:
            return

        self.ctx.sequence_active = True
        self.stats.sequences_started += 1
        self._say(
            "No %s buff detected, starting sequence. Current weapon set: %d",
            self.config.buff_name, self.ctx.active_loadout,
        )

        if self.ctx.active_loadout != OFF_HAND_LOADOUT:
            self._go(AIMING_AND_CASTING, "main weapon set active")
            return

        result = self.executor.swap_loadout(self.config.swap_key, with_settle_delay=True)
        if not result:
            self.last_failure = result
            log.warning("Weapon swap failed (%s), staying idle", result)
            self.ctx.reset()
            self.stats.sequences_aborted += 1
            self._notify(IDLE, IDLE, f"sequence aborted, swap failed: {result}")
            return
        self.stats.swaps += 1
        self.ctx.swap_timer_start = self.executor.swap_timer.started_at
        self.ctx.swap_back_pending = True
        self._go(AWAITING_SWAP_TO_MAIN, "swapping weapons")

    def _step_awaiting_timer(self) -> None:
        if self.executor.swap_timer.elapsed() < self.config.swap_delay:
            return

        if self.ctx.state.reason is SwapReason.SWAP_TO_MAIN:
            self._go(AIMING_AND_CASTING, "weapon swap complete")
        else:
            self.stats.sequences_completed += 1
            self.reset("sequence complete")

    def _step_aim_and_cast(self, snapshot: Snapshot) -> None:
        target = selector.select_target(
            snapshot, self.config.target_path, self.config.target_range,
        )
        if target is None:
            self.ctx.selected_target = None
            self.last_failure = ActionResult.failure(ActionError.NO_TARGET)
            self._go(RETRYING, "no valid target found")
            return
        self.ctx.selected_target = target.entity_id

        result = self.executor.aim_and_cast(target, self.config.skill_key)
        if not result:
            self.last_failure = result
            self._go(RETRYING, f"cast failed: {result}")
            return

        self.stats.casts += 1
        self.ctx.cast_timer_start = self._cast_timer.restart()
        self._go(AWAITING_VERIFICATION, f"cast at eid={target.entity_id}")

    def _step_verify(self) -> None:
        if self._cast_timer.elapsed() < self.config.cast_delay:
            return

        found = False
        for attempt in range(VERIFY_ATTEMPTS):
            self.stats.verification_polls += 1
            flags = self.poll_status()
            self._apply(flags)
            if flags.has_buff:
                found = True
                break
            if attempt < VERIFY_ATTEMPTS - 1:
                self.clock.sleep(self.config.action_delay)

        if not found:
            self._go(RETRYING, f"no buff after {VERIFY_ATTEMPTS} checks")
            return

        self.ctx.selected_target = None
        if not self.ctx.swap_back_pending:
            self.stats.sequences_completed += 1
            self.reset("buff acquired")
            return

        result = self.executor.swap_loadout(self.config.swap_key, with_settle_delay=False)
        if not result:
            # Buff is up; the swap back is tried again next tick
            self.last_failure = result
            log.warning("Swap back failed (%s), will try again", result)
            return
        self.stats.swaps += 1
        self.ctx.swap_timer_start = self.executor.swap_timer.started_at
        self.ctx.swap_back_pending = False
        self._go(AWAITING_SWAP_BACK, "buff acquired, swapping back")
