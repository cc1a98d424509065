"""End-to-end tests for RotationController against an in-memory world."""

from buffkeeper.bot.controller import RotationController
from buffkeeper.bot.effector import DryRunInput
from buffkeeper.bot.keys import VK
from buffkeeper.data.state import AreaInfo, Buff, UiPanel
from buffkeeper.rotation.config import RotationConfig
from buffkeeper.rotation.types import IDLE

from conftest import FakeWorld, hostile, run_ticks, skeleton


def _record_transitions(controller: RotationController) -> list[str]:
    path = [controller.state.label]
    controller.on_transition(lambda old, new, why: path.append(new.label))
    return path


def _spy_swaps(controller: RotationController) -> list[bool]:
    calls: list[bool] = []
    original = controller.executor.swap_loadout

    def spy(vk, with_settle_delay):
        calls.append(with_settle_delay)
        return original(vk, with_settle_delay)

    controller.executor.swap_loadout = spy
    return calls


class TestScenarioA:
    """Buff missing, main weapon set, target in range."""

    def test_single_cast_no_swaps(self, controller, world, inp, clock):
        world.loadout = 1
        world.monsters = [skeleton(1, 10.0)]
        path = _record_transitions(controller)
        swaps = _spy_swaps(controller)

        run_ticks(controller, clock, 6)

        assert path == ["Idle", "AimingAndCasting", "AwaitingVerification", "Idle"]
        assert inp.presses(VK.Q) == 1
        assert inp.presses(VK.X) == 0
        assert swaps == []
        assert controller.stats.sequences_completed == 1
        assert controller.state == IDLE

    def test_reaches_casting_on_first_tick(self, controller, world, clock):
        world.monsters = [skeleton(1, 10.0)]
        assert controller.tick().label == "AimingAndCasting"


class TestScenarioB:
    """Buff missing, off-hand weapon set: swap in, cast, swap back."""

    def test_two_swaps_bracket_one_cast(self, controller, world, inp, clock):
        world.loadout = 0
        world.monsters = [skeleton(1, 10.0)]
        path = _record_transitions(controller)
        swaps = _spy_swaps(controller)

        run_ticks(controller, clock, 10)

        assert path == [
            "Idle",
            "AwaitingTimer(SwapToMain)",
            "AimingAndCasting",
            "AwaitingVerification",
            "AwaitingTimer(SwapBack)",
            "Idle",
        ]
        assert swaps == [True, False]
        assert inp.presses(VK.Q) == 1
        keys = [e.key for e in inp.events if e.kind == "key_up"]
        assert keys == [VK.X, VK.Q, VK.X]
        assert world.loadout == 0
        assert controller.stats.sequences_completed == 1

    def test_swap_to_main_visited_before_casting(self, controller, world, clock):
        world.loadout = 0
        world.monsters = [skeleton(1, 10.0)]
        path = _record_transitions(controller)
        run_ticks(controller, clock, 3)
        assert path.index("AwaitingTimer(SwapToMain)") < path.index("AimingAndCasting")


class TestScenarioC:
    """Target missing at first, then appears; retries are never capped."""

    def test_retry_then_cast(self, controller, world, inp, clock):
        world.loadout = 1
        path = _record_transitions(controller)

        run_ticks(controller, clock, 2)   # Idle → AimingAndCasting → Retrying
        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 2)   # → AimingAndCasting → AwaitingVerification

        assert path == [
            "Idle", "AimingAndCasting", "Retrying", "AimingAndCasting", "AwaitingVerification",
        ]
        assert inp.presses(VK.Q) == 1

    def test_no_retry_cap(self, controller, world, clock):
        world.loadout = 1
        run_ticks(controller, clock, 401)

        assert controller.stats.retries == 200
        assert controller.machine.ctx.sequence_active
        assert controller.state.label in ("AimingAndCasting", "Retrying")

        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 4)
        assert controller.state == IDLE
        assert controller.stats.sequences_completed == 1

    def test_buff_not_landing_keeps_recasting(self, controller, world, inp, clock):
        world.grants = False
        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 13)
        # Idle, then (cast, verify, retry) x 4
        assert inp.presses(VK.Q) == 4
        assert controller.stats.retries == 4


class TestGateIntegration:

    def test_gate_block_resets_mid_sequence(self, controller, world, clock):
        world.loadout = 0
        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 1)
        assert controller.is_active
        assert controller.machine.ctx.swap_back_pending

        world.panels = {UiPanel.INVENTORY}
        run_ticks(controller, clock, 1)
        assert controller.state == IDLE
        assert not controller.is_active
        assert not controller.machine.ctx.swap_back_pending
        assert controller.machine.ctx.selected_target is None
        assert controller.last_gate.reason == "Inventory is open"
        assert controller.stats.gate_blocks == 1

    def test_disabled_never_acts(self, world, inp, registry, clock):
        c = RotationController(world, inp, RotationConfig(), registry=registry, clock=clock)
        run_ticks(c, clock, 5)
        assert inp.events == []
        assert c.last_gate.reason == "Plugin is disabled"

    def test_hostiles_block(self, controller, world, inp, clock):
        world.monsters = [skeleton(1, 10.0), hostile(2, 40.0)]
        run_ticks(controller, clock, 3)
        assert inp.events == []
        assert controller.last_gate.reason.startswith("Hostile mobs")

    def test_grace_period_blocks(self, controller, world, inp, clock):
        world.buffs = [Buff("grace_period", 5.0)]
        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 3)
        assert inp.events == []

    def test_buff_present_stays_idle(self, controller, world, inp, clock):
        world.buffs = [Buff("infusion", 30.0)]
        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 5)
        assert inp.events == []
        assert controller.last_gate.reason == "Ready"


class TestCapabilityRegistry:

    def test_publishes_active_flag(self, controller, registry, world, clock):
        flag = registry.lookup("SoulOffering.IsActive")
        assert flag is not None
        assert flag() is False
        assert registry.is_active("SoulOffering") is False

        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 1)
        assert flag() is True
        assert registry.is_active("SoulOffering")

    def test_yields_to_active_peer(self, controller, registry, world, inp, clock):
        peer_busy = True
        registry.publish("AutoBlink.IsActive", lambda: peer_busy)
        world.monsters = [skeleton(1, 10.0)]

        run_ticks(controller, clock, 3)
        assert inp.events == []
        assert controller.last_gate.reason == "Paused: AutoBlink is active"

        peer_busy = False
        run_ticks(controller, clock, 2)
        assert inp.presses(VK.Q) == 1

    def test_two_controllers_exclude_each_other(self, registry, clock):
        world_a, world_b = FakeWorld(clock), FakeWorld(clock)
        inp_a, inp_b = DryRunInput(), DryRunInput()
        world_a.attach(inp_a)
        world_b.attach(inp_b)
        world_a.monsters = world_b.monsters = [skeleton(1, 10.0)]
        a = RotationController(
            world_a, inp_a, RotationConfig(enabled=True, name="Alpha", peer_name="Beta"),
            registry=registry, clock=clock,
        )
        b = RotationController(
            world_b, inp_b, RotationConfig(enabled=True, name="Beta", peer_name="Alpha"),
            registry=registry, clock=clock,
        )

        a.tick()
        b.tick()
        assert a.is_active
        assert not b.is_active
        assert b.last_gate.reason == "Paused: Alpha is active"

    def test_failing_peer_flag_pauses(self, controller, registry, world, inp, clock, caplog):
        def broken():
            raise RuntimeError("peer crashed")
        registry.publish("AutoBlink.IsActive", broken)
        world.monsters = [skeleton(1, 10.0)]
        ticks = []
        controller.on_tick(lambda c: ticks.append(c.stats.ticks))

        controller.run(should_continue=lambda: len(ticks) < 3)

        assert ticks == [1, 2, 3]
        assert inp.events == []
        assert controller.last_gate.reason == "Paused: AutoBlink is active"
        assert "AutoBlink IsActive check failed" in caplog.text

    def test_republishes_on_area_change(self, controller, registry, world, clock, caplog):
        registry.unpublish("SoulOffering.IsActive")
        world.area = AreaInfo(name="The Grelwood")
        with caplog.at_level("INFO", logger="buffkeeper.bot.controller"):
            run_ticks(controller, clock, 1)
        assert registry.lookup("SoulOffering.IsActive") is not None
        assert "area changed: The Grelwood" in caplog.text


class TestLoop:

    def test_pause_drops_sequence(self, controller, world, inp, clock):
        world.monsters = [skeleton(1, 10.0)]
        run_ticks(controller, clock, 1)
        assert controller.is_active

        controller.pause()
        run_ticks(controller, clock, 3)
        assert controller.state == IDLE
        assert not controller.is_active
        assert inp.events == []
        assert controller.status_line().startswith("PAUSED")

        controller.resume()
        run_ticks(controller, clock, 2)
        assert inp.presses(VK.Q) == 1

    def test_run_until_condition(self, controller, clock):
        ticks = []
        controller.on_tick(lambda c: ticks.append(c.stats.ticks))
        controller.run(should_continue=lambda: len(ticks) < 5)
        assert ticks == [1, 2, 3, 4, 5]
        assert not controller.running
        assert clock.sleeps.count(controller.config.tick_interval) == 5

    def test_stop_from_hook(self, controller):
        controller.on_tick(lambda c: c.stop())
        controller.run()
        assert controller.stats.ticks == 1

    def test_status_line(self, controller, world, clock):
        world.monsters = [skeleton(3, 10.0)]
        run_ticks(controller, clock, 2)
        line = controller.status_line()
        assert line.startswith("[AwaitingVerification]")
        assert "gate=Ready" in line
        assert "target=3" in line
        assert "casts=1" in line
