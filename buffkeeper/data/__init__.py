from .state import (
    AreaInfo, Buff, PlayerInfo, EntityView, Snapshot, UiPanel, WorldReader,
    capture_snapshot,
)
from .bridge import CapabilityRegistry, active_flag_name

__all__ = [
    "AreaInfo", "Buff", "PlayerInfo", "EntityView", "Snapshot", "UiPanel",
    "WorldReader", "capture_snapshot", "CapabilityRegistry", "active_flag_name",
]
