"""Tests for the scripted scenario world."""

import json

import pytest

from buffkeeper.bot.controller import RotationController
from buffkeeper.bot.effector import DryRunInput
from buffkeeper.bot.keys import VK
from buffkeeper.data.state import UiPanel, capture_snapshot
from buffkeeper.data.scenario import ScenarioWorld
from buffkeeper.rotation.config import ConfigError, RotationConfig

from conftest import SKELETON

FARM = {
    "name": "farm",
    "camera": {"center": [960, 540], "scale": 4.0, "screen": [1920, 1080]},
    "react": {"skill_key": "Q", "swap_key": "X", "buff": "infusion", "duration": 8.0},
    "frames": [
        {
            "ticks": 2,
            "area": {"name": "Ogham Farmlands"},
            "player": {"hp": 500, "loadout": 0, "buffs": []},
            "monsters": [
                {"id": 7, "path": SKELETON, "distance": 12, "position": [30, -20, 0]},
            ],
        },
        {"ticks": 1, "panels": ["inventory"]},
        {"ticks": 3, "area": {"name": "Hideout", "hideout": True}, "panels": []},
    ],
}


def _write(tmp_path, data, name="farm.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def test_load_from_file(tmp_path, clock):
    world = ScenarioWorld.load(_write(tmp_path, FARM), clock=clock)
    assert world.name == "farm"
    assert len(world.frames) == 3
    assert world.current_area().name == "Ogham Farmlands"
    assert world.player().active_loadout == 0
    assert world.nearby_entities()[0].entity_id == 7
    assert world.nearby_entities("player") == []


def test_name_defaults_to_file_stem(tmp_path, clock):
    data = {k: v for k, v in FARM.items() if k != "name"}
    world = ScenarioWorld.load(_write(tmp_path, data, "ledge.json"), clock=clock)
    assert world.name == "ledge"


def test_frames_carry_over(clock):
    world = ScenarioWorld(FARM["frames"], clock=clock)
    second = world.frames[1]
    assert second.area.name == "Ogham Farmlands"
    assert second.monsters == world.frames[0].monsters
    assert second.panels == frozenset({UiPanel.INVENTORY})
    third = world.frames[2]
    assert third.area.is_safe_zone
    assert third.panels == frozenset()
    assert third.player_raw["loadout"] == 0


def test_advance_holds_last_frame(clock):
    world = ScenarioWorld(FARM["frames"], clock=clock)
    seen = []
    for _ in range(8):
        seen.append(world.frame_index)
        world.advance()
    assert seen == [0, 0, 1, 2, 2, 2, 2, 2]
    assert world.finished


def test_panels_and_focus_visible_in_snapshot(clock):
    world = ScenarioWorld(FARM["frames"], clock=clock)
    world.advance()
    world.advance()
    snap = capture_snapshot(world)
    assert snap.panel_visible(UiPanel.INVENTORY)
    assert snap.window_foreground


def test_projection_uses_camera(clock):
    world = ScenarioWorld(FARM["frames"], camera=FARM["camera"], clock=clock)
    assert world.project_to_screen((30.0, -20.0, 0.0)) == (1080.0, 460.0)


def test_offscreen_projects_to_origin(clock):
    world = ScenarioWorld(FARM["frames"], camera=FARM["camera"], clock=clock)
    assert world.project_to_screen((500.0, 0.0, 0.0)) == (0.0, 0.0)


def test_react_grants_buff_and_flips_loadout(clock):
    world = ScenarioWorld(FARM["frames"], react=FARM["react"], clock=clock)
    inp = DryRunInput()
    world.attach(inp)

    inp.key_up(VK.X)
    assert world.player().active_loadout == 1

    inp.key_up(VK.Q)
    clock.advance(3.0)
    buff = world.player().find_buff("infusion")
    assert buff is not None
    assert buff.remaining == pytest.approx(5.0)

    clock.advance(6.0)
    assert world.player().find_buff("infusion") is None


def test_key_down_does_not_react(clock):
    world = ScenarioWorld(FARM["frames"], react=FARM["react"], clock=clock)
    inp = DryRunInput()
    world.attach(inp)
    inp.key_down(VK.Q)
    inp.key_down(VK.X)
    assert world.player().buffs == ()
    assert world.player().active_loadout == 0


def test_dry_run_completes_sequence(tmp_path, clock, registry):
    world = ScenarioWorld.load(_write(tmp_path, FARM), clock=clock)
    inp = DryRunInput(start=(960, 540))
    world.attach(inp)
    controller = RotationController(
        world, inp, RotationConfig(enabled=True), registry=registry, clock=clock,
    )
    controller.on_tick(lambda _c: world.advance())

    for _ in range(2):
        controller.tick()
        clock.advance(0.5)
    # Swap in happened, then the inventory frame blocks and resets
    assert inp.presses(VK.X) == 1
    controller.tick()
    assert controller.last_gate.reason == "Inventory is open"
    assert not controller.is_active
    controller.tick()
    assert controller.last_gate.reason == "Player is in a safe zone (Hideout)"


@pytest.mark.parametrize("data, match", [
    ({"frames": []}, "no frames"),
    ({"name": "x"}, "frames"),
    ({"frames": [{"ticks": 0}]}, "ticks"),
    ({"frames": [{"bogus": 1}]}, "unknown frame keys"),
    ({"frames": [{"panels": ["stash"]}]}, "stash"),
    ({"frames": [{"monsters": [{"path": "a"}]}]}, "without id"),
    ({"frames": [{"monsters": [{"id": 1, "position": [1, 2]}]}]}, "3 coordinates"),
    ({"frames": [{}], "react": {"skill_key": "NOPE"}}, "NOPE"),
])
def test_malformed_scenarios(tmp_path, data, match):
    with pytest.raises(ConfigError, match=match):
        ScenarioWorld.load(_write(tmp_path, data))


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{frames: ")
    with pytest.raises(ConfigError):
        ScenarioWorld.load(path)


def test_missing_file(tmp_path):
    with pytest.raises(OSError):
        ScenarioWorld.load(tmp_path / "nope.json")


def test_player_fields_merge_across_frames(clock):
    frames = [
        {"player": {"hp": 500, "loadout": 1, "buffs": [{"name": "haste", "remaining": 4.0}]}},
        {"player": {"loadout": 0}},
    ]
    world = ScenarioWorld(frames, clock=clock)
    world.advance()
    player = world.player()
    assert player.active_loadout == 0
    assert player.hp == 500
    assert player.has_buff("haste")


def test_focus_source_overrides_scripted_flag(clock):
    world = ScenarioWorld([{"focused": True}], clock=clock)
    focused = [False]
    world.focus_source = lambda: focused[0]
    assert not capture_snapshot(world).window_foreground
    focused[0] = True
    assert world.is_window_foreground()


def test_non_utf8_file(tmp_path):
    path = tmp_path / "latin.json"
    path.write_bytes(b'{"frames":[{"area":{"name":"\xff"}}]}')
    with pytest.raises(ConfigError):
        ScenarioWorld.load(path)
