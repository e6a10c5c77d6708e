"""Achievement definitions and their pure evaluation."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Sequence

from coop.components.achievement import Achievement, AchievementCategory
from coop.components.game_mode import GameMode
from coop.components.player_progress import PlayerProgress


@dataclass(frozen=True, slots=True)
class AchievementDefinition:
    id: uuid.UUID
    title: str
    description: str
    category: AchievementCategory
    icon_name: str
    requirement: Callable[[PlayerProgress], bool]


DEFINITIONS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id=uuid.UUID("5B30ED4B-82E9-46C6-846B-0638C407F412"),
        title="Feather Collector",
        description="Earn 1,000 feathers across puzzles.",
        category=AchievementCategory.COLLECTION,
        icon_name="leaf.fill",
        requirement=lambda p: p.total_feathers >= 1_000,
    ),
    AchievementDefinition(
        id=uuid.UUID("7F9E42DF-8CF3-45C7-948C-9B0E9C414B8C"),
        title="Feather Tycoon",
        description="Accumulate 10,000 feathers across your career.",
        category=AchievementCategory.COLLECTION,
        icon_name="coins",
        requirement=lambda p: p.total_feathers >= 10_000,
    ),
    AchievementDefinition(
        id=uuid.UUID("4B03D091-0CB2-4FD1-880F-ADFBC7A78039"),
        title="Cascade Maestro",
        description="Trigger a five-step cascade in one puzzle.",
        category=AchievementCategory.SKILL,
        icon_name="waveform.path.ecg",
        requirement=lambda p: p.deepest_cascade >= 5,
    ),
    AchievementDefinition(
        id=uuid.UUID("C787C7E2-518A-49EE-A6D2-7A9F51B7F5C4"),
        title="Combo Conductor",
        description="Chain seven cascades in a single match.",
        category=AchievementCategory.SKILL,
        icon_name="sparkles",
        requirement=lambda p: p.longest_combo >= 7,
    ),
    AchievementDefinition(
        id=uuid.UUID("3F6B9DD5-95F1-41B4-BC92-9F609F8D0C82"),
        title="Tempo Chaser",
        description="Score 25,000 points in a Time Attack run.",
        category=AchievementCategory.SKILL,
        icon_name="timer",
        requirement=lambda p: p.best_score(GameMode.TIME_ATTACK.persistence_id) >= 25_000,
    ),
    AchievementDefinition(
        id=uuid.UUID("4CA7A383-7D5A-4F8C-A754-71FAD88856F7"),
        title="Move Maestro",
        description="Reach 15,000 points in a Move Challenge session.",
        category=AchievementCategory.PROGRESSION,
        icon_name="target",
        requirement=lambda p: p.best_score(GameMode.MOVE_CHALLENGE.persistence_id) >= 15_000,
    ),
    AchievementDefinition(
        id=uuid.UUID("D9A4C9F0-5B58-489F-9C0C-2A67B1C1244E"),
        title="Streak Guardian",
        description="Keep a seven-day streak alive.",
        category=AchievementCategory.STREAK,
        icon_name="calendar",
        requirement=lambda p: p.daily_streak >= 7,
    ),
    AchievementDefinition(
        id=uuid.UUID("E53F4355-4970-4F6E-AD05-716B4C559F2E"),
        title="Marathon Runner",
        description="Play for three consecutive hours in a single day.",
        category=AchievementCategory.STREAK,
        icon_name="figure.run",
        requirement=lambda p: p.total_play_time >= 10_800,
    ),
)


def evaluate(
    progress: PlayerProgress,
    existing: Sequence[Achievement],
    now: datetime,
    definitions: Sequence[AchievementDefinition] = DEFINITIONS,
) -> List[Achievement]:
    """Recompute every achievement from a progress snapshot.

    An unlock date already present in ``existing`` is kept even if the
    requirement no longer holds; newly met requirements are stamped ``now``.
    """
    previous: Dict[uuid.UUID, Achievement] = {item.id: item for item in existing}
    evaluated: List[Achievement] = []
    for definition in definitions:
        prior = previous.get(definition.id)
        if prior is not None and prior.unlocked_date is not None:
            unlocked = prior.unlocked_date
        elif definition.requirement(progress):
            unlocked = now
        else:
            unlocked = None
        evaluated.append(
            Achievement(
                id=definition.id,
                title=definition.title,
                description=definition.description,
                category=definition.category,
                icon_name=definition.icon_name,
                unlocked_date=unlocked,
            )
        )
    return evaluated
