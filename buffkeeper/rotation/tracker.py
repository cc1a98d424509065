"""
BuffKeeper — Buff/Status Tracker

Derives the two flags the state machine branches on from the player view.
A buff with 0.1 s or less left counts as gone; otherwise the rotation could
skip a refresh on the very tick the buff expires.
"""

from __future__ import annotations

from buffkeeper.data.state import PlayerInfo
from buffkeeper.rotation.types import StatusFlags

MIN_REMAINING = 0.1


def refresh(player: PlayerInfo, buff_name: str) -> StatusFlags:
    buff = player.find_buff(buff_name)
    has_buff = buff is not None and buff.remaining > MIN_REMAINING
    return StatusFlags(has_buff=has_buff, active_loadout=player.active_loadout)
