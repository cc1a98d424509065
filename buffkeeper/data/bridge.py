"""
BuffKeeper — Capability Registry

Named-function bus shared between cooperating controllers. Each controller
publishes small callables under well-known names ("SoulOffering.IsActive")
and looks up the ones it cares about:

    bridge.publish("SoulOffering.IsActive", lambda: controller.is_active)
    bridge.is_active("AutoBlink")           # -> bool
    bridge.lookup("InputHumanizer")         # -> HumanizedMouse | None
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

log = logging.getLogger(__name__)

ACTIVE_SUFFIX = ".IsActive"


def active_flag_name(controller: str) -> str:
    return f"{controller}{ACTIVE_SUFFIX}"


class CapabilityRegistry:
    """Publish/lookup table for named capabilities."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._lock = threading.Lock()

    def publish(self, name: str, capability: Any) -> None:
        """Register (or replace) a capability under a name."""
        with self._lock:
            replaced = name in self._entries
            self._entries[name] = capability
        log.debug("%s capability %s", "replaced" if replaced else "published", name)

    def unpublish(self, name: str) -> None:
        with self._lock:
            self._entries.pop(name, None)

    def lookup(self, name: str) -> Any | None:
        with self._lock:
            return self._entries.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)

    def is_active(self, controller: str) -> bool:
        """Ask another controller whether it is mid-action.

        A missing controller counts as inactive; one whose flag raises counts
        as active, so callers hold off rather than act alongside it.
        """
        fn: Callable[[], bool] | None = self.lookup(active_flag_name(controller))
        if fn is None:
            return False
        try:
            return bool(fn())
        except Exception:
            log.exception("%s IsActive check failed, treating it as active", controller)
            return True
