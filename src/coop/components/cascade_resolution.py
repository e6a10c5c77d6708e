from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping

from coop.components.tile import TileKind, TilePosition


@dataclass(frozen=True, slots=True)
class CascadeResolution:
    """Aggregated outcome of one ``resolve`` call across all of its waves.

    ``cleared_by_kind`` is a read-only mapping so the summary can be handed to
    bus subscribers as is.
    """
    cleared_positions: FrozenSet[TilePosition] = frozenset()
    cleared_by_kind: Mapping[TileKind, int] = field(default_factory=lambda: MappingProxyType({}))
    score_awarded: int = 0
    feathers_earned: int = 0
    power_gain: float = 0.0
    cascades: int = 0
