"""
BuffKeeper — World Snapshot

Per-tick read-only view of the game world, captured from a WorldReader:
- AreaInfo: current area name + hideout/town flags
- PlayerInfo: HP, active weapon set, buffs with remaining time
- EntityView: one monster as seen this tick (path, liveness, distance)
- Snapshot: everything the gate, tracker and selector look at

A Snapshot is only valid for the tick that captured it. Nothing keeps a
reference to it once the tick is over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


# ---- UI panels ----

class UiPanel(Enum):
    """Panels that block the rotation while visible (checked in this order)."""
    INVENTORY = "inventory"
    CHAT = "chat"
    LEFT = "left"
    RIGHT = "right"
    FULLSCREEN = "fullscreen"
    LARGE = "large"
    ESCAPE_MENU = "escape_menu"


# ---- Data classes ----

Vec3 = tuple[float, float, float]
Point = tuple[float, float]


@dataclass(frozen=True)
class AreaInfo:
    """Current area."""
    name: str = ""
    is_hideout: bool = False
    is_town: bool = False

    @property
    def is_safe_zone(self) -> bool:
        return self.is_hideout or self.is_town


@dataclass(frozen=True)
class Buff:
    """A status effect on the player."""
    name: str
    remaining: float = 0.0  # seconds left; 0 for permanent/unknown


@dataclass(frozen=True)
class PlayerInfo:
    """Player stats relevant to the rotation."""
    hp: int = 1
    active_loadout: int = 1  # weapon set index: 0 = off-hand, 1 = main
    buffs: tuple[Buff, ...] = ()

    def find_buff(self, name: str) -> Buff | None:
        for buff in self.buffs:
            if buff.name == name:
                return buff
        return None

    def has_buff(self, name: str) -> bool:
        return self.find_buff(name) is not None


@dataclass(frozen=True)
class EntityView:
    """A monster entity as reported this tick."""
    entity_id: int
    path: str = ""
    is_alive: bool = True
    is_hidden: bool = False
    is_hostile: bool = False
    distance: float = 0.0  # distance to player, reader-defined metric
    position: Vec3 = (0.0, 0.0, 0.0)  # world render position


@dataclass(frozen=True)
class Snapshot:
    """Read-only per-tick world view."""
    area: AreaInfo = field(default_factory=AreaInfo)
    player: PlayerInfo = field(default_factory=PlayerInfo)
    monsters: tuple[EntityView, ...] = ()
    window_foreground: bool = True
    visible_panels: frozenset[UiPanel] = frozenset()

    def panel_visible(self, panel: UiPanel) -> bool:
        return panel in self.visible_panels


# ---- Reader interface ----

class WorldReader(Protocol):
    """Source of world state. Implementations are opaque to the rotation."""

    def current_area(self) -> AreaInfo: ...

    def player(self) -> PlayerInfo: ...

    def nearby_entities(self, type_filter: str = "monster") -> list[EntityView]: ...

    def project_to_screen(self, position: Vec3) -> Point | None: ...

    def is_window_foreground(self) -> bool: ...

    def ui_panel_visible(self, panel: UiPanel) -> bool: ...

    def is_menu_open(self) -> bool: ...


def capture_snapshot(reader: WorldReader) -> Snapshot:
    """Read everything the tick needs from the reader in one pass."""
    panels = {
        panel for panel in UiPanel
        if panel is not UiPanel.ESCAPE_MENU and reader.ui_panel_visible(panel)
    }
    if reader.is_menu_open():
        panels.add(UiPanel.ESCAPE_MENU)
    return Snapshot(
        area=reader.current_area(),
        player=reader.player(),
        monsters=tuple(reader.nearby_entities("monster")),
        window_foreground=reader.is_window_foreground(),
        visible_panels=frozenset(panels),
    )


def is_degenerate(point: Point | None) -> bool:
    """Projection result that cannot be aimed at (off-screen / unrenderable)."""
    return point is None or (point[0] == 0 and point[1] == 0)
