"""Shared fixtures for BuffKeeper tests."""

import pytest

from buffkeeper.bot.controller import RotationController
from buffkeeper.bot.effector import DryRunInput, InputEvent
from buffkeeper.bot.keys import VK
from buffkeeper.data.bridge import CapabilityRegistry
from buffkeeper.data.state import (
    AreaInfo, Buff, EntityView, PlayerInfo, Snapshot, UiPanel,
)
from buffkeeper.rotation.config import DEFAULT_TARGET_PATH, RotationConfig

SKELETON = DEFAULT_TARGET_PATH + "1"


class FakeClock:
    """Clock whose sleep() only advances the reading."""

    def __init__(self, start: float = 1000.0):
        self.t = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds

    def advance(self, seconds: float) -> None:
        self.t += seconds


class FakeWorld:
    """Mutable in-memory WorldReader.

    attach() makes it react like the game: releasing the skill key grants
    the buff, releasing the swap key flips the weapon set.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.area = AreaInfo(name="Ogham Farmlands")
        self.hp = 500
        self.loadout = 1
        self.buffs: list[Buff] = []
        self.monsters: list[EntityView] = []
        self.focused = True
        self.panels: set[UiPanel] = set()
        self.menu_open = False
        self.center = (960.0, 540.0)
        self.offscreen: set[tuple[float, float, float]] = set()
        self.player_reads = 0
        self.buff_duration = 8.0
        self.grants = True

    def attach(self, inp: DryRunInput, skill_key: int = VK.Q, swap_key: int = VK.X) -> None:
        def _react(event: InputEvent) -> None:
            if event.kind != "key_up":
                return
            if event.key == skill_key and self.grants:
                self.buffs = [b for b in self.buffs if b.name != "infusion"]
                self.buffs.append(Buff("infusion", self.buff_duration))
            elif event.key == swap_key:
                self.loadout = 1 - self.loadout
        inp.on_event(_react)

    def current_area(self) -> AreaInfo:
        return self.area

    def player(self) -> PlayerInfo:
        self.player_reads += 1
        return PlayerInfo(hp=self.hp, active_loadout=self.loadout, buffs=tuple(self.buffs))

    def nearby_entities(self, type_filter: str = "monster") -> list[EntityView]:
        return list(self.monsters)

    def project_to_screen(self, position):
        if tuple(position) in self.offscreen:
            return (0.0, 0.0)
        return (self.center[0] + position[0], self.center[1] + position[1])

    def is_window_foreground(self) -> bool:
        return self.focused

    def ui_panel_visible(self, panel: UiPanel) -> bool:
        return panel in self.panels

    def is_menu_open(self) -> bool:
        return self.menu_open


def skeleton(entity_id: int = 1, distance: float = 10.0, **kw) -> EntityView:
    kw.setdefault("position", (distance, 0.0, 0.0))
    return EntityView(entity_id=entity_id, path=SKELETON, distance=distance, **kw)


def hostile(entity_id: int = 100, distance: float = 30.0, **kw) -> EntityView:
    return EntityView(
        entity_id=entity_id, path="Metadata/Monsters/Zombie", is_hostile=True,
        distance=distance, **kw,
    )


def make_snapshot(
    buffs: tuple[Buff, ...] = (),
    loadout: int = 1,
    hp: int = 500,
    monsters: tuple[EntityView, ...] = (),
    area: AreaInfo | None = None,
    focused: bool = True,
    panels: frozenset[UiPanel] = frozenset(),
) -> Snapshot:
    return Snapshot(
        area=area or AreaInfo(name="Ogham Farmlands"),
        player=PlayerInfo(hp=hp, active_loadout=loadout, buffs=buffs),
        monsters=monsters,
        window_foreground=focused,
        visible_panels=panels,
    )


def run_ticks(controller: RotationController, clock: FakeClock, n: int,
              step: float = 0.5) -> list[str]:
    """Tick n times, advancing the clock between ticks. Returns state labels."""
    states = []
    for _ in range(n):
        states.append(controller.tick().label)
        clock.advance(step)
    return states


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def world(clock) -> FakeWorld:
    return FakeWorld(clock)


@pytest.fixture
def inp() -> DryRunInput:
    return DryRunInput(start=(960, 540))


@pytest.fixture
def registry() -> CapabilityRegistry:
    return CapabilityRegistry()


@pytest.fixture
def config() -> RotationConfig:
    return RotationConfig(enabled=True)


@pytest.fixture
def controller(world, inp, config, registry, clock) -> RotationController:
    world.attach(inp)
    return RotationController(world, inp, config, registry=registry, clock=clock)
