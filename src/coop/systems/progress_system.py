from __future__ import annotations

import logging
from typing import Callable, List, Optional

from esper import World

from coop.components.achievement import Achievement
from coop.components.player_progress import PlayerProgress
from coop.components.game_session import utc_now
from coop.constants import (
    KEY_ACHIEVEMENTS,
    KEY_ANIMATIONS_ENABLED,
    KEY_HAPTICS_ENABLED,
    KEY_HAS_SEEN_ONBOARDING,
    KEY_LEVEL_PROGRESS,
)
from coop.events.bus import EVENT_ACHIEVEMENT_UNLOCKED, EVENT_PROGRESS_CHANGED, EventBus
from coop.systems import achievements
from coop.systems.boost_system import BoostSystem
from coop.systems.feedback import BusFeedback
from coop.systems.state_utils import get_achievement_ledger, get_player_progress, get_settings

logger = logging.getLogger(__name__)


class ProgressSystem:
    """Keeps the stored progress, achievements and settings in step with play.

    Every EVENT_PROGRESS_CHANGED persists the snapshot and re-evaluates the
    achievement list; newly unlocked entries are announced one event each.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        boosts: Optional[BoostSystem] = None,
        feedback: Optional[BusFeedback] = None,
        clock: Callable = utc_now,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.storage = getattr(world, "storage")
        self.boosts = boosts
        self.feedback = feedback
        self.clock = clock
        self.event_bus.subscribe(EVENT_PROGRESS_CHANGED, self._on_progress_changed)
        self.refresh_achievements(get_player_progress(world))

    @property
    def achievements(self) -> List[Achievement]:
        return get_achievement_ledger(self.world).achievements

    @property
    def has_seen_onboarding(self) -> bool:
        return bool(self.storage.load_value(KEY_HAS_SEEN_ONBOARDING, False))

    def complete_onboarding(self) -> None:
        self.storage.save_value(KEY_HAS_SEEN_ONBOARDING, True)

    def refresh_achievements(self, progress: PlayerProgress) -> List[Achievement]:
        """Re-evaluate, persist and return the achievements unlocked by this call."""
        ledger = get_achievement_ledger(self.world)
        previously_unlocked = {item.id for item in ledger.achievements if item.is_unlocked}
        ledger.achievements = achievements.evaluate(progress, ledger.achievements, self.clock())
        self.storage.save_value(KEY_ACHIEVEMENTS, [item.to_dict() for item in ledger.achievements])

        unlocked = [
            item for item in ledger.achievements
            if item.is_unlocked and item.id not in previously_unlocked
        ]
        for achievement in unlocked:
            logger.info("Achievement unlocked: %s", achievement.title)
            self.event_bus.emit(EVENT_ACHIEVEMENT_UNLOCKED, achievement=achievement)
        return unlocked

    def set_haptics(self, enabled: bool) -> None:
        settings = get_settings(self.world)
        settings.haptics_enabled = enabled
        if self.feedback is not None:
            self.feedback.update(enabled)
        else:
            self.storage.save_value(KEY_HAPTICS_ENABLED, enabled)

    def set_animations(self, enabled: bool) -> None:
        get_settings(self.world).animations_enabled = enabled
        self.storage.save_value(KEY_ANIMATIONS_ENABLED, enabled)

    def reset_progress(self) -> None:
        """Wipe storage and return progress, achievements, boosts and settings to defaults."""
        self.storage.clear_all()
        progress = get_player_progress(self.world)
        fresh = PlayerProgress()
        for name in PlayerProgress.__slots__:
            setattr(progress, name, getattr(fresh, name))
        self.storage.save_value(KEY_LEVEL_PROGRESS, progress.to_dict())

        get_achievement_ledger(self.world).achievements = []
        self.refresh_achievements(progress)
        if self.boosts is not None:
            self.boosts.reset()
        self.set_haptics(True)
        self.set_animations(True)
        logger.info("Player progress reset")

    def _on_progress_changed(self, sender, **kwargs) -> None:
        progress = kwargs.get("progress")
        if progress is None:
            return
        self.storage.save_value(KEY_LEVEL_PROGRESS, progress.to_dict())
        self.refresh_achievements(progress)
