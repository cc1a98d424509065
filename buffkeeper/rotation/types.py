"""
BuffKeeper — Rotation Types

State value, context and result types shared by the rotation components.

    RotationState = Idle
                  | AwaitingTimer(SwapToMain | SwapBack)
                  | AimingAndCasting
                  | AwaitingVerification
                  | Retrying
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


# ---- State ----

class Phase(Enum):
    IDLE = auto()
    AWAITING_TIMER = auto()
    AIMING_AND_CASTING = auto()
    AWAITING_VERIFICATION = auto()
    RETRYING = auto()


class SwapReason(Enum):
    """Why the machine is waiting on the swap timer."""
    SWAP_TO_MAIN = auto()
    SWAP_BACK = auto()


_PHASE_LABELS = {
    Phase.IDLE: "Idle",
    Phase.AWAITING_TIMER: "AwaitingTimer",
    Phase.AIMING_AND_CASTING: "AimingAndCasting",
    Phase.AWAITING_VERIFICATION: "AwaitingVerification",
    Phase.RETRYING: "Retrying",
}

_REASON_LABELS = {
    SwapReason.SWAP_TO_MAIN: "SwapToMain",
    SwapReason.SWAP_BACK: "SwapBack",
}


@dataclass(frozen=True)
class RotationState:
    """Current state of the rotation, with the swap reason when waiting."""
    phase: Phase
    reason: SwapReason | None = None

    def __post_init__(self) -> None:
        if (self.phase is Phase.AWAITING_TIMER) != (self.reason is not None):
            raise ValueError(f"swap reason is only valid for AwaitingTimer: {self.phase}/{self.reason}")

    @classmethod
    def awaiting(cls, reason: SwapReason) -> RotationState:
        return cls(Phase.AWAITING_TIMER, reason)

    @property
    def label(self) -> str:
        if self.reason is not None:
            return f"{_PHASE_LABELS[self.phase]}({_REASON_LABELS[self.reason]})"
        return _PHASE_LABELS[self.phase]

    def __str__(self) -> str:
        return self.label


IDLE = RotationState(Phase.IDLE)
AIMING_AND_CASTING = RotationState(Phase.AIMING_AND_CASTING)
AWAITING_VERIFICATION = RotationState(Phase.AWAITING_VERIFICATION)
RETRYING = RotationState(Phase.RETRYING)
AWAITING_SWAP_TO_MAIN = RotationState.awaiting(SwapReason.SWAP_TO_MAIN)
AWAITING_SWAP_BACK = RotationState.awaiting(SwapReason.SWAP_BACK)


# ---- Context ----

@dataclass
class RotationContext:
    """Mutable rotation data, owned by the state machine."""
    state: RotationState = IDLE
    swap_timer_start: float = 0.0
    cast_timer_start: float = 0.0
    active_loadout: int = 1
    has_buff: bool = False
    # Entity id only; re-resolved from each snapshot, never held as an object
    selected_target: int | None = None
    sequence_active: bool = False
    swap_back_pending: bool = False

    def reset(self) -> None:
        """Back to Idle with all transient data cleared."""
        self.state = IDLE
        self.selected_target = None
        self.sequence_active = False
        self.swap_back_pending = False


# ---- Results ----

class ActionError(Enum):
    INVALID_POSITION = "InvalidPosition"
    NO_TARGET = "NoTarget"
    INPUT_ERROR = "InputError"
    CAPABILITY_UNAVAILABLE = "CapabilityUnavailable"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one executor action. Falsy on failure."""
    ok: bool
    error: ActionError | None = None
    detail: str = ""

    @classmethod
    def success(cls) -> ActionResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: ActionError, detail: str = "") -> ActionResult:
        return cls(ok=False, error=error, detail=detail)

    def __bool__(self) -> bool:
        return self.ok

    def __str__(self) -> str:
        if self.ok:
            return "Success"
        if self.detail:
            return f"Failure({self.error.value}: {self.detail})"
        return f"Failure({self.error.value})"


@dataclass(frozen=True)
class StatusFlags:
    """Buff presence and active weapon set, derived from one snapshot."""
    has_buff: bool
    active_loadout: int


@dataclass(frozen=True)
class GateResult:
    eligible: bool
    reason: str

    def __bool__(self) -> bool:
        return self.eligible
