"""
BuffKeeper — Input Effector Interface

What the executor needs from an input backend, plus a dry-run backend that
records events instead of sending them.

Backends:
    input.py    — Win32 (PostMessage keyboard + SetCursorPos pointer)
    DryRunInput — records + logs, no OS calls (CLI --dry-run, tests)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

log = logging.getLogger(__name__)


class InputEffector(Protocol):
    def key_down(self, vk: int) -> None: ...

    def key_up(self, vk: int) -> None: ...

    def set_pointer(self, x: int, y: int) -> None: ...

    def get_pointer(self) -> tuple[int, int]: ...


@dataclass(frozen=True)
class InputEvent:
    kind: str  # "key_down", "key_up", "pointer"
    key: int = 0
    x: int = 0
    y: int = 0


# Called after every recorded event
EventHook = Callable[[InputEvent], None]


class DryRunInput:
    """Input backend that only records what it was asked to do."""

    def __init__(self, start: tuple[int, int] = (0, 0)):
        self.events: list[InputEvent] = []
        self._pointer: tuple[int, int] = start
        self._hooks: list[EventHook] = []

    def on_event(self, hook: EventHook) -> None:
        """Subscribe to recorded events (scenario worlds react to key presses)."""
        self._hooks.append(hook)

    def _record(self, event: InputEvent) -> None:
        self.events.append(event)
        for hook in self._hooks:
            hook(event)

    def key_down(self, vk: int) -> None:
        log.debug("dry-run key_down vk=0x%02X", vk)
        self._record(InputEvent("key_down", key=vk))

    def key_up(self, vk: int) -> None:
        log.debug("dry-run key_up vk=0x%02X", vk)
        self._record(InputEvent("key_up", key=vk))

    def set_pointer(self, x: int, y: int) -> None:
        self._pointer = (int(x), int(y))
        self._record(InputEvent("pointer", x=self._pointer[0], y=self._pointer[1]))

    def get_pointer(self) -> tuple[int, int]:
        return self._pointer

    def presses(self, vk: int) -> int:
        """Number of completed presses (key_up events) of a key."""
        return sum(1 for e in self.events if e.kind == "key_up" and e.key == vk)
