from dataclasses import dataclass
from typing import FrozenSet

from coop.components.tile import TilePosition


@dataclass(slots=True)
class PendingHighlightClear:
    """Deferred removal of the cleared-tile highlight set it was scheduled for."""
    positions: FrozenSet[TilePosition]
    remaining: float
