"""Play modes and their read-only catalogue metadata."""
from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional


class GameMode(str, Enum):
    FREE_PLAY = "free_play"
    TIME_ATTACK = "time_attack"
    MOVE_CHALLENGE = "move_challenge"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def persistence_id(self) -> uuid.UUID:
        """Stable id used as the best-record key for a mode session."""
        return _PERSISTENCE_IDS[self]

    @property
    def consumes_moves(self) -> bool:
        return self is GameMode.MOVE_CHALLENGE

    @property
    def default_move_limit(self) -> Optional[int]:
        return 25 if self is GameMode.MOVE_CHALLENGE else None

    @property
    def time_limit(self) -> Optional[int]:
        return 90 if self is GameMode.TIME_ATTACK else None

    @property
    def badge_text(self) -> Optional[str]:
        if self is GameMode.FREE_PLAY:
            return "Relaxed"
        if self is GameMode.TIME_ATTACK:
            return f"{self.time_limit}s"
        return f"{self.default_move_limit} moves"

    @classmethod
    def play_options(cls) -> list["GameMode"]:
        return [cls.FREE_PLAY, cls.TIME_ATTACK, cls.MOVE_CHALLENGE]


_DISPLAY_NAMES = {
    GameMode.FREE_PLAY: "Free Play",
    GameMode.TIME_ATTACK: "Time Attack",
    GameMode.MOVE_CHALLENGE: "Move Challenge",
}

_PERSISTENCE_IDS = {
    GameMode.FREE_PLAY: uuid.UUID("6D6D1412-6D47-4D81-AEB0-8D7A07B9A2A0"),
    GameMode.TIME_ATTACK: uuid.UUID("D93BE4A0-0834-4CF5-A64A-67F4AE5280CF"),
    GameMode.MOVE_CHALLENGE: uuid.UUID("91F5D93A-5A7D-47AB-A5CD-3A91A9A8C2E1"),
}
