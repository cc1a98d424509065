"""
BuffKeeper — Rotation Configuration

Read-only settings for the gate, executor and state machine. Defaults and
allowed ranges come from the plugin's settings menu; delays are seconds.
"""

from __future__ import annotations

from dataclasses import dataclass

from buffkeeper.bot.keys import VK, parse_key

DEFAULT_BUFF = "infusion"
DEFAULT_TARGET_PATH = "Metadata/Monsters/Skeletons/PlayerSummoned/SkeletonClericPlayerSummoned_"
DEFAULT_PEER = "AutoBlink"
DEFAULT_NAME = "SoulOffering"
GRACE_PERIOD_BUFF = "grace_period"

# (min, max) for each ranged setting
LIMITS: dict[str, tuple[float, float]] = {
    "swap_delay": (0.5, 2.0),
    "cast_delay": (0.05, 2.0),
    "action_delay": (0.05, 2.0),
    "safe_range": (0.0, 200.0),
}


class ConfigError(ValueError):
    """Raised for invalid settings or malformed scenario input."""


@dataclass
class RotationConfig:
    """Rotation behavior configuration."""
    # Master switch
    enabled: bool = False
    # Key bindings (name, code or VK)
    swap_key: VK | str | int = VK.X
    skill_key: VK | str | int = VK.Q
    # Wait after a weapon swap before the next step (seconds)
    swap_delay: float = 1.065
    # Wait after casting before checking for the buff (seconds)
    cast_delay: float = 0.1
    # Pause between buff checks during verification (seconds)
    action_delay: float = 0.1
    # Pause while a hostile monster is this close (world units)
    safe_range: float = 60.0
    # Only target entities strictly closer than this (world units)
    target_range: float = 100.0
    # Skip towns and hideouts
    pause_in_safe_zones: bool = True
    # Log plugin activity (sequence start, swaps, casts, retries)
    verbose_logging: bool = False
    # Fail aiming when no humanized mover is registered
    require_humanized_input: bool = False
    # How often the run loop ticks (seconds)
    tick_interval: float = 0.1
    # What to refresh, what to aim at, who to yield to, who we are
    buff_name: str = DEFAULT_BUFF
    target_path: str = DEFAULT_TARGET_PATH
    peer_name: str = DEFAULT_PEER
    name: str = DEFAULT_NAME

    def __post_init__(self) -> None:
        try:
            self.swap_key = parse_key(self.swap_key)
            self.skill_key = parse_key(self.skill_key)
        except ValueError as e:
            raise ConfigError(str(e)) from None

        for attr, (lo, hi) in LIMITS.items():
            value = getattr(self, attr)
            if not lo <= value <= hi:
                raise ConfigError(f"{attr}={value} outside [{lo}, {hi}]")
        if self.target_range <= 0:
            raise ConfigError(f"target_range must be positive, got {self.target_range}")
        if self.tick_interval <= 0:
            raise ConfigError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.swap_key == self.skill_key:
            raise ConfigError(f"swap and skill keys are both {self.swap_key.name}")
        if not self.buff_name:
            raise ConfigError("buff_name is empty")
        if not self.name:
            raise ConfigError("controller name is empty")
