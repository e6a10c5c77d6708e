from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, NamedTuple, Tuple


class TileKind(str, Enum):
    """The six coop tile kinds.

    CORN doubles as the filler kind: a non-static corn tile is treated as an
    emptied cell waiting for refill. GOLDEN_EGG is what the coop hammer forges.
    """
    EGG = "egg"
    NEST = "nest"
    CORN = "corn"
    BROODY_HEN = "broody_hen"
    GOLDEN_EGG = "golden_egg"
    FEATHER_FAN = "feather_fan"


ALL_KINDS: tuple[TileKind, ...] = tuple(TileKind)
FILLER_KIND = TileKind.CORN
SPECIAL_KIND = TileKind.GOLDEN_EGG


class TilePosition(NamedTuple):
    row: int
    column: int


@dataclass(frozen=True, slots=True)
class Tile:
    """A single board cell value.

    Tiles are immutable; solver steps produce replaced copies. ``id`` keeps a
    tile recognisable while it falls, newly spawned tiles get a fresh one.
    """
    kind: TileKind
    position: TilePosition
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    is_static: bool = False
    power_charge: int = 0

    def relocated(self, position: Tuple[int, int]) -> "Tile":
        return replace(self, position=TilePosition(*position))

    def with_kind(self, kind: TileKind, *, is_static: bool | None = None) -> "Tile":
        return replace(
            self,
            kind=kind,
            is_static=self.is_static if is_static is None else is_static,
        )

    @property
    def is_filler(self) -> bool:
        return self.kind is FILLER_KIND and not self.is_static

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "kind": self.kind.value,
            "position": [self.position.row, self.position.column],
            "is_static": self.is_static,
            "power_charge": self.power_charge,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Tile":
        row, column = payload["position"]
        return cls(
            kind=TileKind(payload["kind"]),
            position=TilePosition(int(row), int(column)),
            id=uuid.UUID(payload["id"]),
            is_static=bool(payload.get("is_static", False)),
            power_charge=int(payload.get("power_charge", 0)),
        )
