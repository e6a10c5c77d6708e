"""Read-only level and mode catalogue."""
from __future__ import annotations

import sys
from typing import List, Optional

from coop.components.game_mode import GameMode
from coop.components.level import Level, LevelDifficulty, LevelObjective, ObjectiveType
from coop.constants import LEVEL_COUNT, LEVELS_PER_CHAPTER

UNLIMITED_MOVES = sys.maxsize

_CHAPTER_DIFFICULTY = [
    LevelDifficulty.COZY,
    LevelDifficulty.ROOST,
    LevelDifficulty.FLOCK,
]

_BASE_THRESHOLDS = (2000, 3500, 5000)

_MODE_DESCRIPTIONS = {
    GameMode.FREE_PLAY: ("Relax and experiment with unlimited cascades.", LevelDifficulty.COZY),
    GameMode.TIME_ATTACK: ("Race the timer to set new high scores.", LevelDifficulty.FRENZY),
    GameMode.MOVE_CHALLENGE: ("Limited swaps, plan every move carefully.", LevelDifficulty.FRENZY),
}


def build_levels(count: int = LEVEL_COUNT) -> List[Level]:
    levels: List[Level] = []
    for index in range(count):
        chapter = index // LEVELS_PER_CHAPTER
        chapter_level_index = index % LEVELS_PER_CHAPTER
        if chapter < len(_CHAPTER_DIFFICULTY):
            difficulty = _CHAPTER_DIFFICULTY[chapter]
        else:
            difficulty = LevelDifficulty.FRENZY

        objectives = [
            LevelObjective(type=ObjectiveType.GATHER_EGGS, target_count=15),
            LevelObjective(type=ObjectiveType.CLEAR_STRAW, target_count=8),
        ]
        if chapter >= 1:
            objectives.append(LevelObjective(type=ObjectiveType.CHARGE_POWER, target_count=3))
        if chapter >= 2:
            objectives.append(LevelObjective(type=ObjectiveType.RESCUE_CHICKS, target_count=4))

        levels.append(
            Level(
                chapter_index=chapter,
                level_index=index,
                title=f"Puzzle {index + 1}",
                description="Guide the hens through the coop lanes and keep cascades flowing.",
                difficulty=difficulty,
                objectives=tuple(objectives),
                move_limit=max(18 - chapter_level_index, 12),
                score_thresholds=tuple(
                    base + chapter * 500 + chapter_level_index * 80 for base in _BASE_THRESHOLDS
                ),
            )
        )
    return levels


class LevelCatalogue:
    def __init__(self, levels: List[Level] | None = None):
        self.levels: List[Level] = levels if levels is not None else build_levels()

    def level(self, index: int) -> Optional[Level]:
        if 0 <= index < len(self.levels):
            return self.levels[index]
        return None

    @staticmethod
    def mode_level(mode: GameMode) -> Level:
        """Synthetic level backing a mode session; its id is the mode's record key."""
        description, difficulty = _MODE_DESCRIPTIONS[mode]
        move_limit = mode.default_move_limit if mode.consumes_moves else UNLIMITED_MOVES
        return Level(
            id=mode.persistence_id,
            chapter_index=-1,
            level_index=-1,
            title=mode.display_name,
            description=description,
            difficulty=difficulty,
            move_limit=move_limit,
        )
