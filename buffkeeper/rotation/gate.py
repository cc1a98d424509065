"""
BuffKeeper — Eligibility Gate

Per-tick predicate: may the rotation run at all right now?

Checks run cheapest first and stop at the first blocking condition, so the
reason string always names the first condition that holds:

    disabled → unfocused → peer active → safe zone → UI panel
             → hostiles in range → dead → grace period → "Ready"

The gate never touches the rotation context. Resetting the machine when the
gate blocks is the controller's job.
"""

from __future__ import annotations

from buffkeeper.data.bridge import CapabilityRegistry
from buffkeeper.data.state import Snapshot, UiPanel
from buffkeeper.rotation.config import GRACE_PERIOD_BUFF, RotationConfig
from buffkeeper.rotation.types import GateResult

READY = "Ready"

# Panel order matters: the first visible one names the reason
PANEL_REASONS: list[tuple[UiPanel, str]] = [
    (UiPanel.INVENTORY, "Inventory is open"),
    (UiPanel.CHAT, "Chat is open"),
    (UiPanel.LEFT, "Left panel is open"),
    (UiPanel.RIGHT, "Right panel is open"),
    (UiPanel.FULLSCREEN, "Fullscreen panel is open"),
    (UiPanel.LARGE, "Large panel is open"),
    (UiPanel.ESCAPE_MENU, "Game menu is open"),
]


def hostiles_in_range(snapshot: Snapshot, safe_range: float) -> bool:
    """Any visible, living, hostile monster at or inside safe_range."""
    return any(
        ent.is_hostile and ent.is_alive and not ent.is_hidden
        and ent.distance <= safe_range
        for ent in snapshot.monsters
    )


def evaluate(
    snapshot: Snapshot,
    config: RotationConfig,
    peers: CapabilityRegistry | None = None,
) -> GateResult:
    """Decide whether the rotation may run this tick."""
    if not config.enabled:
        return GateResult(False, "Plugin is disabled")

    if not snapshot.window_foreground:
        return GateResult(False, "Game window is not focused")

    if peers is not None and config.peer_name and peers.is_active(config.peer_name):
        return GateResult(False, f"Paused: {config.peer_name} is active")

    if config.pause_in_safe_zones and snapshot.area.is_safe_zone:
        return GateResult(False, f"Player is in a safe zone ({snapshot.area.name})")

    for panel, reason in PANEL_REASONS:
        if snapshot.panel_visible(panel):
            return GateResult(False, reason)

    if hostiles_in_range(snapshot, config.safe_range):
        return GateResult(
            False,
            f"Hostile mobs within {config.safe_range:g} units - pausing for safety",
        )

    if snapshot.player.hp <= 0:
        return GateResult(False, "Player is dead")

    if snapshot.player.has_buff(GRACE_PERIOD_BUFF):
        return GateResult(False, "Grace period is active")

    return GateResult(True, READY)
