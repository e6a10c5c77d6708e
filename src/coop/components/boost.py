from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List


class BoostType(str, Enum):
    POWER_SURGE = "power_surge"
    ROW_SWEEP = "row_sweep"
    BOARD_SHUFFLE = "board_shuffle"
    COOP_HAMMER = "coop_hammer"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def price(self) -> int:
        return _PRICES[self]


_DESCRIPTIONS = {
    BoostType.POWER_SURGE: "Instantly charge the coop meter by 50% to unleash big combos sooner.",
    BoostType.ROW_SWEEP: "Clear a full row of tiles to open space for new cascades.",
    BoostType.BOARD_SHUFFLE: "Remix the board when moves feel stuck.",
    BoostType.COOP_HAMMER: "Smash a single tile and upgrade it into a gleaming golden egg wild.",
}

_PRICES = {
    BoostType.POWER_SURGE: 280,
    BoostType.ROW_SWEEP: 360,
    BoostType.BOARD_SHUFFLE: 420,
    BoostType.COOP_HAMMER: 300,
}

DEFAULT_BOOST_COUNTS: Dict[BoostType, int] = {
    BoostType.POWER_SURGE: 3,
    BoostType.ROW_SWEEP: 2,
    BoostType.BOARD_SHUFFLE: 1,
    BoostType.COOP_HAMMER: 2,
}


@dataclass(slots=True)
class Boost:
    type: BoostType
    available_count: int
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": str(self.id), "type": self.type.value, "available_count": self.available_count}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Boost":
        return cls(
            id=uuid.UUID(payload["id"]),
            type=BoostType(payload["type"]),
            available_count=int(payload["available_count"]),
        )


@dataclass(frozen=True, slots=True)
class BoostUsage:
    type: BoostType
    date: datetime
    context: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "type": self.type.value,
            "date": self.date.isoformat(),
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "BoostUsage":
        return cls(
            id=uuid.UUID(payload["id"]),
            type=BoostType(payload["type"]),
            date=datetime.fromisoformat(payload["date"]),
            context=payload.get("context", ""),
        )


@dataclass(slots=True)
class BoostMilestones:
    """Last streak/feather milestones already rewarded with boosts."""
    streak_milestone: int = 0
    feather_milestone: int = 0


@dataclass(slots=True)
class BoostInventory:
    """Singleton component with owned boosts (one entry per BoostType, in enum order)."""
    boosts: List[Boost] = field(default_factory=list)
    usage_history: List[BoostUsage] = field(default_factory=list)
    milestones: BoostMilestones = field(default_factory=BoostMilestones)

    def count(self, boost_type: BoostType) -> int:
        for boost in self.boosts:
            if boost.type is boost_type:
                return boost.available_count
        return 0

    def entry(self, boost_type: BoostType) -> Boost | None:
        for boost in self.boosts:
            if boost.type is boost_type:
                return boost
        return None
