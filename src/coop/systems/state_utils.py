from esper import World

from coop.components.achievement import AchievementLedger
from coop.components.boost import BoostInventory
from coop.components.game_state import GameState
from coop.components.player_progress import PlayerProgress
from coop.components.settings import Settings


def get_state_entity(world: World) -> int:
    """Return the entity carrying GameState, creating it if absent."""
    existing = list(world.get_component(GameState))
    if existing:
        return existing[0][0]
    return world.create_entity(GameState())


def get_game_state(world: World) -> GameState:
    return world.component_for_entity(get_state_entity(world), GameState)


def get_player_progress(world: World) -> PlayerProgress:
    existing = list(world.get_component(PlayerProgress))
    if existing:
        return existing[0][1]
    progress = PlayerProgress()
    world.add_component(get_state_entity(world), progress)
    return progress


def get_settings(world: World) -> Settings:
    existing = list(world.get_component(Settings))
    if existing:
        return existing[0][1]
    settings = Settings()
    world.add_component(get_state_entity(world), settings)
    return settings


def get_boost_inventory(world: World) -> BoostInventory:
    existing = list(world.get_component(BoostInventory))
    if existing:
        return existing[0][1]
    world.create_entity(BoostInventory())
    return list(world.get_component(BoostInventory))[0][1]


def get_achievement_ledger(world: World) -> AchievementLedger:
    existing = list(world.get_component(AchievementLedger))
    if existing:
        return existing[0][1]
    world.create_entity(AchievementLedger())
    return list(world.get_component(AchievementLedger))[0][1]
