from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class AchievementCategory(str, Enum):
    PROGRESSION = "progression"
    SKILL = "skill"
    COLLECTION = "collection"
    STREAK = "streak"


@dataclass(frozen=True, slots=True)
class Achievement:
    id: uuid.UUID
    title: str
    description: str
    category: AchievementCategory
    icon_name: str
    unlocked_date: Optional[datetime] = None

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_date is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "icon_name": self.icon_name,
            "unlocked_date": self.unlocked_date.isoformat() if self.unlocked_date else None,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Achievement":
        unlocked = payload.get("unlocked_date")
        return cls(
            id=uuid.UUID(payload["id"]),
            title=payload["title"],
            description=payload["description"],
            category=AchievementCategory(payload["category"]),
            icon_name=payload.get("icon_name", ""),
            unlocked_date=datetime.fromisoformat(unlocked) if unlocked else None,
        )


@dataclass(slots=True)
class AchievementLedger:
    """Singleton component caching the evaluated achievement list."""
    achievements: List[Achievement] = field(default_factory=list)
