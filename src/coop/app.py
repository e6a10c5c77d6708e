"""Headless wiring of the coop game: world, bus and every system.

A presentation layer builds one of these, feeds EVENT_TICK from its frame
loop and listens to the session/feedback events.
"""
import random
from dataclasses import dataclass

from esper import World

from coop.events.bus import EventBus
from coop.systems.boost_system import BoostSystem
from coop.systems.feedback import BusFeedback
from coop.systems.game_system import GameSystem
from coop.systems.progress_system import ProgressSystem
from coop.systems.storage import JsonFileStorage, StorageSink
from coop.systems.timer_system import TimerSystem
from coop.world import create_world


@dataclass
class CoopApp:
    event_bus: EventBus
    world: World
    feedback: BusFeedback
    timer_system: TimerSystem
    game_system: GameSystem
    boost_system: BoostSystem
    progress_system: ProgressSystem


def create_app(*, rng: random.Random | None = None, storage: StorageSink | None = None) -> CoopApp:
    event_bus = EventBus()
    world = create_world(event_bus, rng=rng, storage=storage if storage is not None else JsonFileStorage())
    feedback = BusFeedback(event_bus, world.storage)
    timer_system = TimerSystem(world, event_bus)
    game_system = GameSystem(world, event_bus, feedback=feedback)
    boost_system = BoostSystem(world, event_bus, game_system)
    progress_system = ProgressSystem(world, event_bus, boosts=boost_system, feedback=feedback)
    return CoopApp(
        event_bus=event_bus,
        world=world,
        feedback=feedback,
        timer_system=timer_system,
        game_system=game_system,
        boost_system=boost_system,
        progress_system=progress_system,
    )
