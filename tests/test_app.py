import random

from coop.app import create_app
from coop.components.boost import BoostType
from coop.components.game_mode import GameMode
from coop.events.bus import EVENT_BOOST_REQUEST, EVENT_FEEDBACK, EVENT_TICK
from coop.systems.storage import JsonFileStorage
from tests.helpers import NO_MATCH_ROWS, capture, install_board


def test_app_wires_every_system(tmp_path):
    storage = JsonFileStorage(tmp_path / "save.json")
    app = create_app(rng=random.Random(5), storage=storage)
    feedback = capture(app.event_bus, EVENT_FEEDBACK)

    app.game_system.start_game(GameMode.TIME_ATTACK)
    install_board(app.game_system, NO_MATCH_ROWS)
    app.event_bus.emit(EVENT_BOOST_REQUEST, boost_type=BoostType.COOP_HAMMER)
    assert app.boost_system.count(BoostType.COOP_HAMMER) == 1
    assert [item["kind"] for item in feedback] == ["heavy_impact"]

    for _ in range(90):
        app.event_bus.emit(EVENT_TICK, dt=1.0)

    result = app.game_system.last_result
    assert result is not None
    assert result.score == 150
    assert app.game_system.player_progress.total_feathers == 1

    reloaded = create_app(rng=random.Random(6), storage=JsonFileStorage(tmp_path / "save.json"))
    assert reloaded.game_system.player_progress.total_feathers == 1
    assert reloaded.boost_system.count(BoostType.COOP_HAMMER) == 1
    assert len(reloaded.boost_system.inventory.usage_history) == 1
