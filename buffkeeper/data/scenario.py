"""
BuffKeeper — Scenario World

A scripted WorldReader loaded from JSON, for dry runs and the dashboard
demo. A scenario is a list of frames; each frame is held for `ticks` ticks
and only needs the fields that change (the rest carry over; "player" merges
key by key, so {"loadout": 0} keeps the previous hp and buffs):

    {
      "name": "farm run",
      "camera": {"center": [960, 540], "scale": 4.0, "screen": [1920, 1080]},
      "react": {"skill_key": "Q", "swap_key": "X", "buff": "infusion", "duration": 8.0},
      "frames": [
        {"ticks": 20,
         "area": {"name": "Ogham Farmlands", "hideout": false, "town": false},
         "player": {"hp": 500, "loadout": 0, "buffs": []},
         "monsters": [{"id": 7, "path": "Metadata/...SkeletonClericPlayerSummoned_1",
                       "distance": 12, "position": [30, -20, 0]}],
         "focused": true, "panels": [], "menu_open": false},
        {"ticks": 10, "panels": ["inventory"]}
      ]
    }

With "react" set and the world attached to a DryRunInput, releasing the
skill key grants the buff for `duration` seconds and releasing the swap key
flips the weapon set, so a dry run can complete whole sequences.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable

from buffkeeper.bot.effector import DryRunInput, InputEvent
from buffkeeper.bot.keys import parse_key
from buffkeeper.data.state import (
    AreaInfo,
    Buff,
    EntityView,
    PlayerInfo,
    Point,
    UiPanel,
    Vec3,
)
from buffkeeper.rotation.config import ConfigError
from buffkeeper.rotation.timing import Clock, SystemClock

log = logging.getLogger(__name__)

FRAME_KEYS = {"ticks", "area", "player", "monsters", "focused", "panels", "menu_open"}


# ---- Frame parsing ----

def _area(d: dict) -> AreaInfo:
    return AreaInfo(
        name=str(d.get("name", "")),
        is_hideout=bool(d.get("hideout", False)),
        is_town=bool(d.get("town", False)),
    )


def _monster(d: dict) -> EntityView:
    if "id" not in d:
        raise ConfigError(f"monster without id: {d}")
    pos = d.get("position", [0, 0, 0])
    if len(pos) != 3:
        raise ConfigError(f"monster {d['id']} position needs 3 coordinates")
    return EntityView(
        entity_id=int(d["id"]),
        path=str(d.get("path", "")),
        is_alive=bool(d.get("alive", True)),
        is_hidden=bool(d.get("hidden", False)),
        is_hostile=bool(d.get("hostile", False)),
        distance=float(d.get("distance", 0.0)),
        position=(float(pos[0]), float(pos[1]), float(pos[2])),
    )


def _panels(names: list[str]) -> frozenset[UiPanel]:
    try:
        return frozenset(UiPanel(n) for n in names)
    except ValueError as e:
        raise ConfigError(str(e)) from None


class Frame:
    """One resolved scenario frame."""

    def __init__(self, raw: dict, previous: Frame | None = None):
        unknown = set(raw) - FRAME_KEYS
        if unknown:
            raise ConfigError(f"unknown frame keys: {sorted(unknown)}")
        self.ticks = int(raw.get("ticks", 1))
        if self.ticks < 1:
            raise ConfigError(f"frame ticks must be >= 1, got {self.ticks}")

        self.area = _area(raw["area"]) if "area" in raw else (
            previous.area if previous else AreaInfo())
        # player fields merge key by key into the previous frame's
        self.player_raw: dict = {
            **(previous.player_raw if previous else {}), **raw.get("player", {}),
        }
        self.monsters = (
            tuple(_monster(m) for m in raw["monsters"]) if "monsters" in raw
            else (previous.monsters if previous else ())
        )
        self.focused = bool(raw.get("focused", previous.focused if previous else True))
        self.panels = _panels(raw["panels"]) if "panels" in raw else (
            previous.panels if previous else frozenset())
        self.menu_open = bool(raw.get("menu_open", previous.menu_open if previous else False))


# ---- Reader ----

class ScenarioWorld:
    """WorldReader that replays scripted frames, one tick at a time."""

    def __init__(
        self,
        frames: list[dict],
        camera: dict | None = None,
        react: dict | None = None,
        name: str = "",
        clock: Clock | None = None,
    ):
        if not frames:
            raise ConfigError("scenario has no frames")
        self.name = name
        self.clock = clock or SystemClock()
        self.frames: list[Frame] = []
        for raw in frames:
            self.frames.append(Frame(raw, self.frames[-1] if self.frames else None))

        camera = camera or {}
        self.center: tuple[float, float] = tuple(camera.get("center", (960, 540)))
        self.scale: float = float(camera.get("scale", 1.0))
        self.screen: tuple[float, float] = tuple(camera.get("screen", (1920, 1080)))

        self._react = react or {}
        self._skill_key = parse_key(self._react["skill_key"]) if "skill_key" in self._react else None
        self._swap_key = parse_key(self._react["swap_key"]) if "swap_key" in self._react else None
        self._granted: dict[str, float] = {}  # buff name -> expiry (clock time)
        self._loadout_flips = 0

        self._index = 0
        self._tick_in_frame = 0
        self.finished = False
        # Overrides the scripted focus flag (real game window under Win32 input)
        self.focus_source: Callable[[], bool] | None = None

    @classmethod
    def load(cls, path: str | Path, clock: Clock | None = None) -> ScenarioWorld:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"{path}: {e}") from None
        if not isinstance(data, dict) or "frames" not in data:
            raise ConfigError(f"{path}: expected an object with 'frames'")
        try:
            return cls(
                data["frames"],
                camera=data.get("camera"),
                react=data.get("react"),
                name=data.get("name", Path(path).stem),
                clock=clock,
            )
        except ConfigError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"{path}: {e}") from None

    # ---- Playback ----

    @property
    def frame(self) -> Frame:
        return self.frames[self._index]

    @property
    def frame_index(self) -> int:
        return self._index

    def advance(self) -> None:
        """Move one tick forward; the last frame is held once reached."""
        self._tick_in_frame += 1
        if self._tick_in_frame < self.frame.ticks:
            return
        if self._index + 1 < len(self.frames):
            self._index += 1
            self._tick_in_frame = 0
            log.debug("scenario frame %d/%d", self._index + 1, len(self.frames))
        else:
            self.finished = True

    def attach(self, inp: DryRunInput) -> None:
        """React to recorded key presses (buff grants, weapon swaps)."""
        inp.on_event(self._on_input)

    def _on_input(self, event: InputEvent) -> None:
        if event.kind != "key_up":
            return
        if self._skill_key is not None and event.key == self._skill_key:
            buff = self._react.get("buff", "infusion")
            self._granted[buff] = self.clock.now() + float(self._react.get("duration", 8.0))
            log.debug("scenario: granted %s", buff)
        elif self._swap_key is not None and event.key == self._swap_key:
            self._loadout_flips += 1

    # ---- WorldReader ----

    def current_area(self) -> AreaInfo:
        return self.frame.area

    def player(self) -> PlayerInfo:
        raw = self.frame.player_raw
        now = self.clock.now()
        buffs = [
            Buff(name=str(b["name"]), remaining=float(b.get("remaining", 0.0)))
            for b in raw.get("buffs", [])
        ]
        scripted = {b.name for b in buffs}
        for name, expires in self._granted.items():
            if name not in scripted and expires > now:
                buffs.append(Buff(name=name, remaining=expires - now))
        loadout = int(raw.get("loadout", 1))
        if self._loadout_flips % 2:
            loadout = 1 - loadout
        return PlayerInfo(hp=int(raw.get("hp", 1)), active_loadout=loadout, buffs=tuple(buffs))

    def nearby_entities(self, type_filter: str = "monster") -> list[EntityView]:
        if type_filter != "monster":
            return []
        return list(self.frame.monsters)

    def project_to_screen(self, position: Vec3) -> Point | None:
        """Top-down camera centered on the player; off-screen → origin."""
        x = self.center[0] + position[0] * self.scale
        y = self.center[1] + position[1] * self.scale
        if not (0 < x < self.screen[0] and 0 < y < self.screen[1]):
            return (0.0, 0.0)
        return (x, y)

    def is_window_foreground(self) -> bool:
        if self.focus_source is not None:
            return self.focus_source()
        return self.frame.focused

    def ui_panel_visible(self, panel: UiPanel) -> bool:
        return panel in self.frame.panels

    def is_menu_open(self) -> bool:
        return self.frame.menu_open
