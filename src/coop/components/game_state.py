"""Game state resource describing the live session and its phase."""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from coop.components.game_mode import GameMode
from coop.components.game_result import GameResult
from coop.components.game_session import GameSession


class SessionPhase(Enum):
    IDLE = auto()
    ACTIVE = auto()
    VICTORY = auto()
    DEFEAT = auto()


@dataclass(slots=True)
class GameState:
    """Singleton component owned by the GameSystem."""
    phase: SessionPhase = SessionPhase.IDLE
    active_mode: GameMode = GameMode.FREE_PLAY
    session: Optional[GameSession] = None
    last_result: Optional[GameResult] = None
    last_result_mode: GameMode = GameMode.FREE_PLAY
    time_remaining: Optional[int] = None
