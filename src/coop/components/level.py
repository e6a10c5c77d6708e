from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class LevelDifficulty(str, Enum):
    COZY = "cozy"
    ROOST = "roost"
    FLOCK = "flock"
    FRENZY = "frenzy"


class ObjectiveType(str, Enum):
    GATHER_EGGS = "gather_eggs"
    CLEAR_STRAW = "clear_straw"
    CHARGE_POWER = "charge_power"
    RESCUE_CHICKS = "rescue_chicks"


@dataclass(frozen=True, slots=True)
class LevelObjective:
    type: ObjectiveType
    target_count: int


@dataclass(frozen=True, slots=True)
class Level:
    chapter_index: int
    level_index: int
    title: str
    description: str
    difficulty: LevelDifficulty
    move_limit: int
    objectives: tuple[LevelObjective, ...] = ()
    score_thresholds: tuple[int, ...] = ()
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "chapter_index": self.chapter_index,
            "level_index": self.level_index,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty.value,
            "objectives": [
                {"type": objective.type.value, "target_count": objective.target_count}
                for objective in self.objectives
            ],
            "move_limit": self.move_limit,
            "score_thresholds": list(self.score_thresholds),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Level":
        objectives: List[LevelObjective] = [
            LevelObjective(type=ObjectiveType(item["type"]), target_count=int(item["target_count"]))
            for item in payload.get("objectives", [])
        ]
        return cls(
            id=uuid.UUID(payload["id"]),
            chapter_index=int(payload["chapter_index"]),
            level_index=int(payload["level_index"]),
            title=payload["title"],
            description=payload["description"],
            difficulty=LevelDifficulty(payload["difficulty"]),
            objectives=tuple(objectives),
            move_limit=int(payload["move_limit"]),
            score_thresholds=tuple(int(v) for v in payload.get("score_thresholds", [])),
        )
