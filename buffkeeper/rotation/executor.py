"""
BuffKeeper — Action Executor

The three atomic actions of a rotation, each returning an ActionResult:

    aim_at(target)               → project, move pointer, settle
    trigger_skill(key)           → press, hold, release, post-cast wait
    swap_loadout(key, settle)    → press/release swap key, restart swap timer,
                                   optionally wait for the swap animation

aim_and_cast() runs aim + cast as one attempt, holding the humanized mover
(when one is registered) until the attempt ends.

Nothing raised by the input backend escapes: it comes back as InputError.
Waits go through the clock, so they only hold up the tick that asked.
"""

from __future__ import annotations

import logging

from buffkeeper.bot.effector import InputEffector
from buffkeeper.bot.humanizer import HUMANIZER_CAPABILITY, CapabilityBusy, HumanizedMouse
from buffkeeper.data.bridge import CapabilityRegistry
from buffkeeper.data.state import EntityView, WorldReader, is_degenerate
from buffkeeper.rotation.config import RotationConfig
from buffkeeper.rotation.timing import Clock, Stopwatch, SystemClock
from buffkeeper.rotation.types import ActionError, ActionResult

log = logging.getLogger(__name__)

# Pointer settle after an instant move, and again after any aim
POINTER_SETTLE = 0.025
# Key held between down and up when casting
KEY_HOLD = 0.05
# Wait after releasing the skill key before anything else is trusted
POST_CAST_DELAY = 1.0
# Weapon-swap animation; input is ignored by the client until it finishes
SWAP_SETTLE_DELAY = 1.1


class ActionExecutor:
    """Performs aim/cast/swap against the input backend."""

    def __init__(
        self,
        reader: WorldReader,
        effector: InputEffector,
        config: RotationConfig,
        registry: CapabilityRegistry | None = None,
        clock: Clock | None = None,
    ):
        self.reader = reader
        self.effector = effector
        self.config = config
        self.registry = registry
        self.clock = clock or SystemClock()
        self.swap_timer = Stopwatch(self.clock)
        # Humanized mover held for the current aim+cast attempt
        self._held: HumanizedMouse | None = None

    def _say(self, msg: str, *args) -> None:
        if self.config.verbose_logging:
            log.info(msg, *args)

    def humanizer(self) -> HumanizedMouse | None:
        if self.registry is None:
            return None
        return self.registry.lookup(HUMANIZER_CAPABILITY)

    # ---- Aim ----

    def aim_at(self, target: EntityView) -> ActionResult:
        """Put the pointer on the target's screen position."""
        screen = self.reader.project_to_screen(target.position)
        if is_degenerate(screen):
            self._say("Invalid target position for eid=%d", target.entity_id)
            return ActionResult.failure(
                ActionError.INVALID_POSITION, f"eid={target.entity_id} not on screen",
            )
        x, y = screen

        mouse = self._held or self.humanizer()
        if mouse is None and self.config.require_humanized_input:
            return ActionResult.failure(
                ActionError.CAPABILITY_UNAVAILABLE, f"{HUMANIZER_CAPABILITY} not registered",
            )

        try:
            if mouse is None:
                self.effector.set_pointer(round(x), round(y))
                self.clock.sleep(POINTER_SETTLE)
            elif mouse is self._held:
                mouse.move_to(x, y)
            else:
                with mouse.acquire():
                    mouse.move_to(x, y)
        except CapabilityBusy as e:
            return ActionResult.failure(ActionError.CAPABILITY_UNAVAILABLE, str(e))
        except Exception as e:
            log.error("Error moving pointer: %s", e)
            return ActionResult.failure(ActionError.INPUT_ERROR, str(e))

        self.clock.sleep(POINTER_SETTLE)
        self._say("Pointer at (%d, %d) for eid=%d", x, y, target.entity_id)
        return ActionResult.success()

    # ---- Cast ----

    def trigger_skill(self, vk: int) -> ActionResult:
        """Press and release the skill key, then wait out the cast."""
        try:
            self._say("Starting key press sequence for key: 0x%02X", vk)
            self.effector.key_down(vk)
            self.clock.sleep(KEY_HOLD)
            self.effector.key_up(vk)
        except Exception as e:
            log.error("Error during key press: %s", e)
            return ActionResult.failure(ActionError.INPUT_ERROR, str(e))

        self.clock.sleep(POST_CAST_DELAY)
        return ActionResult.success()

    def aim_and_cast(self, target: EntityView, vk: int) -> ActionResult:
        """One attempt: aim, then cast if the aim landed.

        A registered humanized mover is held for the whole attempt and
        released however it ends.
        """
        mouse = self.humanizer()
        if mouse is None:
            result = self.aim_at(target)
            return self.trigger_skill(vk) if result else result

        try:
            with mouse.acquire():
                self._held = mouse
                result = self.aim_at(target)
                if result:
                    result = self.trigger_skill(vk)
        except CapabilityBusy as e:
            return ActionResult.failure(ActionError.CAPABILITY_UNAVAILABLE, str(e))
        finally:
            self._held = None
        return result

    # ---- Weapon swap ----

    def swap_loadout(self, vk: int, with_settle_delay: bool) -> ActionResult:
        """Press the swap key and restart the swap timer.

        with_settle_delay waits for the swap-in animation; swapping back
        returns right after the key event.
        """
        try:
            self.effector.key_down(vk)
            self.effector.key_up(vk)
        except Exception as e:
            log.error("Error during weapon swap: %s", e)
            return ActionResult.failure(ActionError.INPUT_ERROR, str(e))

        self.swap_timer.restart()
        self._say("Weapon swap performed")
        if with_settle_delay:
            self.clock.sleep(SWAP_SETTLE_DELAY)
        return ActionResult.success()
