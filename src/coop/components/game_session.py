from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet

from coop.components.board import Board
from coop.components.game_mode import GameMode
from coop.components.level import Level, ObjectiveType
from coop.components.tile import TilePosition


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class GameSession:
    """Snapshot of the live session.

    The controller never mutates a session in place; every accepted action
    publishes a replaced copy so subscribers can keep older snapshots safely.
    """
    level: Level
    board: Board
    mode: GameMode = GameMode.FREE_PLAY
    remaining_moves: int = 0
    score: int = 0
    combo_multiplier: int = 1
    collected_feathers: int = 0
    power_charge: float = 0.0
    cascades_triggered: int = 0
    objective_progress: Dict[ObjectiveType, int] = field(default_factory=dict)
    start_date: datetime = field(default_factory=utc_now)
    last_cleared_positions: FrozenSet[TilePosition] = frozenset()
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": str(self.id),
            "level": self.level.to_dict(),
            "mode": self.mode.value,
            "board": self.board.to_dict(),
            "remaining_moves": self.remaining_moves,
            "score": self.score,
            "combo_multiplier": self.combo_multiplier,
            "collected_feathers": self.collected_feathers,
            "power_charge": self.power_charge,
            "cascades_triggered": self.cascades_triggered,
            "objective_progress": {key.value: value for key, value in self.objective_progress.items()},
            "start_date": self.start_date.isoformat(),
        }
        if self.last_cleared_positions:
            payload["last_cleared_positions"] = [list(pos) for pos in sorted(self.last_cleared_positions)]
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GameSession":
        cleared = payload.get("last_cleared_positions") or []
        return cls(
            id=uuid.UUID(payload["id"]),
            level=Level.from_dict(payload["level"]),
            mode=GameMode(payload.get("mode", GameMode.FREE_PLAY.value)),
            board=Board.from_dict(payload["board"]),
            remaining_moves=int(payload["remaining_moves"]),
            score=int(payload["score"]),
            combo_multiplier=int(payload["combo_multiplier"]),
            collected_feathers=int(payload["collected_feathers"]),
            power_charge=float(payload["power_charge"]),
            cascades_triggered=int(payload["cascades_triggered"]),
            objective_progress={
                ObjectiveType(key): int(value)
                for key, value in payload.get("objective_progress", {}).items()
            },
            start_date=datetime.fromisoformat(payload["start_date"]),
            last_cleared_positions=frozenset(TilePosition(int(r), int(c)) for r, c in cleared),
        )
