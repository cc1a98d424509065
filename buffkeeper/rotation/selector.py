"""
BuffKeeper — Target Selector

Finds the nearest living entity whose path matches the target pattern.
Stateless: safe to call every tick, same snapshot → same answer.
"""

from __future__ import annotations

from buffkeeper.data.state import EntityView, Snapshot


def matches(entity: EntityView, path_filter: str, max_range: float) -> bool:
    return (
        path_filter in entity.path
        and entity.is_alive
        and entity.distance < max_range
    )


def select_target(
    snapshot: Snapshot,
    path_filter: str,
    max_range: float,
) -> EntityView | None:
    """Nearest matching entity strictly inside max_range, or None.

    Ties keep snapshot order (first one wins).
    """
    best: EntityView | None = None
    for ent in snapshot.monsters:
        if not matches(ent, path_filter, max_range):
            continue
        if best is None or ent.distance < best.distance:
            best = ent
    return best
