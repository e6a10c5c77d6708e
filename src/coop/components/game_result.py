from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict


class Outcome(str, Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"


@dataclass(frozen=True, slots=True)
class GameResult:
    """Summary handed to the results screen once a session is finalized."""
    outcome: Outcome
    score: int
    feathers: int
    moves_used: int
    cascades: int
    completion_date: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "score": self.score,
            "feathers": self.feathers,
            "moves_used": self.moves_used,
            "cascades": self.cascades,
            "completion_date": self.completion_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GameResult":
        return cls(
            outcome=Outcome(payload["outcome"]),
            score=int(payload["score"]),
            feathers=int(payload["feathers"]),
            moves_used=int(payload["moves_used"]),
            cascades=int(payload["cascades"]),
            completion_date=datetime.fromisoformat(payload["completion_date"]),
        )
