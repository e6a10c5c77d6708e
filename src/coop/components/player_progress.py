from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class LevelCompletion:
    """Best record for one level (or one mode, keyed by its persistence id)."""
    level_id: uuid.UUID
    best_score: int
    best_feather_count: int
    best_moves_remaining: int
    completion_date: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level_id": str(self.level_id),
            "best_score": self.best_score,
            "best_feather_count": self.best_feather_count,
            "best_moves_remaining": self.best_moves_remaining,
            "completion_date": self.completion_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "LevelCompletion":
        return cls(
            level_id=uuid.UUID(payload["level_id"]),
            best_score=int(payload["best_score"]),
            best_feather_count=int(payload["best_feather_count"]),
            best_moves_remaining=int(payload["best_moves_remaining"]),
            completion_date=datetime.fromisoformat(payload["completion_date"]),
        )


@dataclass(slots=True)
class PlayerProgress:
    """Singleton component holding cross-session player progress.

    Also the resource ledger: ``total_feathers`` is the spendable currency.
    """
    current_level_index: int = 0
    completed_levels: List[LevelCompletion] = field(default_factory=list)
    total_feathers: int = 0
    daily_streak: int = 0
    longest_combo: int = 0
    deepest_cascade: int = 0
    total_play_time: float = 0.0

    def completion_for(self, level_id: uuid.UUID) -> Optional[LevelCompletion]:
        for completion in self.completed_levels:
            if completion.level_id == level_id:
                return completion
        return None

    def best_score(self, level_id: uuid.UUID) -> int:
        completion = self.completion_for(level_id)
        return completion.best_score if completion else 0

    def copy(self) -> "PlayerProgress":
        return PlayerProgress.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_level_index": self.current_level_index,
            "completed_levels": [completion.to_dict() for completion in self.completed_levels],
            "total_feathers": self.total_feathers,
            "daily_streak": self.daily_streak,
            "longest_combo": self.longest_combo,
            "deepest_cascade": self.deepest_cascade,
            "total_play_time": self.total_play_time,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PlayerProgress":
        return cls(
            current_level_index=int(payload.get("current_level_index", 0)),
            completed_levels=[
                LevelCompletion.from_dict(item) for item in payload.get("completed_levels", [])
            ],
            total_feathers=int(payload.get("total_feathers", 0)),
            daily_streak=int(payload.get("daily_streak", 0)),
            longest_combo=int(payload.get("longest_combo", 0)),
            deepest_cascade=int(payload.get("deepest_cascade", 0)),
            total_play_time=float(payload.get("total_play_time", 0.0)),
        )
