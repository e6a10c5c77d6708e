import random

from esper import World

from coop.components.achievement import Achievement, AchievementLedger
from coop.components.boost import BoostInventory
from coop.components.game_state import GameState
from coop.components.player_progress import PlayerProgress
from coop.components.settings import Settings
from coop.constants import (
    KEY_ACHIEVEMENTS,
    KEY_ANIMATIONS_ENABLED,
    KEY_HAPTICS_ENABLED,
    KEY_LEVEL_PROGRESS,
)
from coop.events.bus import EventBus
from coop.systems.storage import MemoryStorage, StorageSink, load_model


def create_world(
    event_bus: EventBus,
    *,
    rng: random.Random | None = None,
    storage: StorageSink | None = None,
) -> World:
    """Build the world with its singleton resources loaded from storage.

    The random source and storage sink are attached to the world as
    ``world.random`` and ``world.storage`` so systems share them.
    """
    world = World()
    setattr(world, "random", rng or random.Random())
    storage = storage if storage is not None else MemoryStorage()
    setattr(world, "storage", storage)

    progress = load_model(storage, KEY_LEVEL_PROGRESS, PlayerProgress.from_dict, PlayerProgress)
    settings = Settings(
        haptics_enabled=bool(storage.load_value(KEY_HAPTICS_ENABLED, True)),
        animations_enabled=bool(storage.load_value(KEY_ANIMATIONS_ENABLED, True)),
    )
    world.create_entity(GameState(), progress, settings)

    achievements = load_model(
        storage,
        KEY_ACHIEVEMENTS,
        lambda payload: [Achievement.from_dict(item) for item in payload],
        list,
    )
    world.create_entity(AchievementLedger(achievements=achievements))
    # Boost entries are filled in by BoostSystem from storage.
    world.create_entity(BoostInventory())
    return world
