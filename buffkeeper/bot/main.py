"""
BuffKeeper — Rotation Entry Point

Loads a scenario world, builds the input backend and runs the rotation
loop (optionally under the dashboard).

Usage:
    python -m buffkeeper.bot.main --scenario run.json --dry-run --enable
    python -m buffkeeper.bot.main --scenario run.json --dry-run --enable --dashboard
    python -m buffkeeper.bot.main --scenario run.json --enable --humanize   # Win32 input
"""

from __future__ import annotations

import argparse
import logging
import sys

from buffkeeper.bot.controller import RotationController, run_with_status
from buffkeeper.bot.effector import DryRunInput, InputEffector
from buffkeeper.bot.humanizer import HUMANIZER_CAPABILITY, HumanizedMouse
from buffkeeper.data.bridge import CapabilityRegistry
from buffkeeper.data.scenario import ScenarioWorld
from buffkeeper.rotation.config import ConfigError, RotationConfig
from buffkeeper.rotation.timing import SystemClock

log = logging.getLogger("buffkeeper")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="BuffKeeper buff-refresh rotation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--scenario", required=True,
                        help="Scenario JSON file describing the world")
    parser.add_argument("--enable", action="store_true",
                        help="Enable the rotation (disabled by default)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Record input instead of sending it to the game")
    parser.add_argument("--dashboard", action="store_true",
                        help="Show the Textual dashboard")
    parser.add_argument("--humanize", action="store_true",
                        help="Register the humanized pointer mover")
    parser.add_argument("--window", type=str, default="Path of Exile 2",
                        help="Game window title (Win32 input only)")
    parser.add_argument("--swap-key", type=str, default="X",
                        help="Weapon swap key (default: X)")
    parser.add_argument("--skill-key", type=str, default="Q",
                        help="Skill key (default: Q)")
    parser.add_argument("--swap-delay", type=float, default=1.065,
                        help="Seconds to wait after a weapon swap (0.5-2.0)")
    parser.add_argument("--cast-delay", type=float, default=0.1,
                        help="Seconds before checking for the buff (0.05-2.0)")
    parser.add_argument("--action-delay", type=float, default=0.1,
                        help="Seconds between buff checks (0.05-2.0)")
    parser.add_argument("--safe-range", type=float, default=60.0,
                        help="Pause while hostiles are this close (0-200)")
    parser.add_argument("--tick", type=float, default=0.1,
                        help="Tick interval in seconds (default: 0.1)")
    parser.add_argument("--no-safe-zone-pause", action="store_true",
                        help="Keep running in towns and hideouts")
    parser.add_argument("--peer", type=str, default="AutoBlink",
                        help="Controller to yield to while it is active")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging and rotation activity messages")
    return parser


def config_from_args(args: argparse.Namespace) -> RotationConfig:
    return RotationConfig(
        enabled=args.enable,
        swap_key=args.swap_key,
        skill_key=args.skill_key,
        swap_delay=args.swap_delay,
        cast_delay=args.cast_delay,
        action_delay=args.action_delay,
        safe_range=args.safe_range,
        tick_interval=args.tick,
        pause_in_safe_zones=not args.no_safe_zone_pause,
        peer_name=args.peer,
        verbose_logging=args.verbose,
        require_humanized_input=args.humanize,
    )


def build_input(args: argparse.Namespace, world: ScenarioWorld) -> InputEffector:
    """Dry-run recorder, or the Win32 backend bound to the game window."""
    if args.dry_run:
        inp = DryRunInput(start=(int(world.center[0]), int(world.center[1])))
        world.attach(inp)
        return inp

    from buffkeeper.bot.input import GameWindow, InputController

    if not InputController.is_admin():
        log.warning("Not running as Administrator; input may be ignored by the game")
    window = GameWindow(title=args.window)
    if not window.find():
        log.error("Game window '%s' not found. Is the game running?", args.window)
        sys.exit(1)
    rect = window.get_rect()
    log.info("Found game window: hwnd=0x%X rect=%s", window.hwnd,
             f"{rect.width}x{rect.height}" if rect else "?")
    world.focus_source = window.is_foreground
    return InputController(window)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    clock = SystemClock()
    try:
        config = config_from_args(args)
        world = ScenarioWorld.load(args.scenario, clock=clock)
    except (ConfigError, OSError) as e:
        log.error("%s", e)
        sys.exit(2)

    inp = build_input(args, world)
    registry = CapabilityRegistry()
    if args.humanize:
        registry.publish(HUMANIZER_CAPABILITY, HumanizedMouse(inp, clock=clock))

    controller = RotationController(world, inp, config, registry=registry, clock=clock)
    controller.on_tick(lambda _c: world.advance())

    log.info(
        "Scenario '%s': %d frames | swap=%s skill=%s swap_delay=%.3fs cast_delay=%.3fs",
        world.name, len(world.frames), config.swap_key.name, config.skill_key.name,
        config.swap_delay, config.cast_delay,
    )

    if args.dashboard:
        from buffkeeper.dashboard.app import RotationDashboard
        RotationDashboard(
            controller, should_continue=lambda: not world.finished, title=world.name,
        ).run()
    else:
        log.info("Starting rotation loop... Press Ctrl+C to stop")
        run_with_status(controller, should_continue=lambda: not world.finished)

    s = controller.stats
    log.info(
        "Stats: ticks=%d blocks=%d sequences=%d/%d casts=%d swaps=%d retries=%d",
        s.ticks, s.gate_blocks, s.sequences_completed, s.sequences_started,
        s.casts, s.swaps, s.retries,
    )


if __name__ == "__main__":
    main()
