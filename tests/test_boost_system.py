from coop.components.boost import BoostType
from coop.components.game_mode import GameMode
from coop.components.player_progress import PlayerProgress
from coop.constants import KEY_AVAILABLE_BOOSTS, KEY_BOOST_USAGE_HISTORY
from coop.events.bus import (
    EVENT_BOOST_APPLIED,
    EVENT_BOOST_FAILED,
    EVENT_BOOST_PURCHASE_REQUEST,
    EVENT_BOOST_REQUEST,
)
from coop.systems.boost_system import BoostSystem
from coop.systems.storage import MemoryStorage
from tests.helpers import NO_MATCH_ROWS, ManualClock, capture, install_board, make_game


def make_boosts(storage=None):
    storage = storage or MemoryStorage()
    bus, world, game, feedback = make_game(storage=storage)
    boosts = BoostSystem(world, bus, game, clock=ManualClock())
    return bus, world, game, boosts


def counts(boosts):
    return {boost.type: boost.available_count for boost in boosts.inventory.boosts}


def test_default_inventory():
    _, _, _, boosts = make_boosts()
    assert counts(boosts) == {
        BoostType.POWER_SURGE: 3,
        BoostType.ROW_SWEEP: 2,
        BoostType.BOARD_SHUFFLE: 1,
        BoostType.COOP_HAMMER: 2,
    }
    assert [boost.type for boost in boosts.inventory.boosts] == list(BoostType)


def test_missing_types_are_filled_in_from_storage():
    storage = MemoryStorage({KEY_AVAILABLE_BOOSTS: [
        {"id": "6f1f1b2e-8a3c-4a8e-9d59-8f43f7f0c6b1", "type": "row_sweep", "available_count": 4},
    ]})
    _, _, _, boosts = make_boosts(storage)
    assert counts(boosts) == {
        BoostType.POWER_SURGE: 0,
        BoostType.ROW_SWEEP: 4,
        BoostType.BOARD_SHUFFLE: 0,
        BoostType.COOP_HAMMER: 0,
    }


def test_prices_and_purchase_rules():
    _, _, _, boosts = make_boosts()
    assert boosts.price(BoostType.POWER_SURGE) == 280
    assert boosts.price(BoostType.ROW_SWEEP) == 360
    assert boosts.price(BoostType.BOARD_SHUFFLE) == 420
    assert boosts.price(BoostType.COOP_HAMMER) == 300
    assert boosts.can_purchase(BoostType.COOP_HAMMER, 300)
    assert not boosts.can_purchase(BoostType.COOP_HAMMER, 299)
    boosts.inventory.entry(BoostType.COOP_HAMMER).available_count = 5
    assert not boosts.can_purchase(BoostType.COOP_HAMMER, 10_000)


def test_purchase_debits_feathers_and_adds_boost():
    _, _, game, boosts = make_boosts()
    game.player_progress.total_feathers = 400
    assert boosts.purchase(BoostType.ROW_SWEEP)
    assert game.player_progress.total_feathers == 40
    assert boosts.count(BoostType.ROW_SWEEP) == 3


def test_purchase_without_feathers_fails():
    bus, _, game, boosts = make_boosts()
    failures = capture(bus, EVENT_BOOST_FAILED)
    game.player_progress.total_feathers = 100
    bus.emit(EVENT_BOOST_PURCHASE_REQUEST, boost_type=BoostType.POWER_SURGE)
    assert game.player_progress.total_feathers == 100
    assert boosts.count(BoostType.POWER_SURGE) == 3
    assert failures[-1]["reason"] == "cannot_purchase"


def test_purchase_refunds_when_inventory_fills_up_midway():
    bus, _, game, boosts = make_boosts()
    failures = capture(bus, EVENT_BOOST_FAILED)
    boosts.inventory.entry(BoostType.POWER_SURGE).available_count = 4
    game.player_progress.total_feathers = 800

    # Spending leaves 520 feathers, which crosses the first feather milestone
    # and tops power surge up to the cap before it can be added.
    assert not boosts.purchase(BoostType.POWER_SURGE)

    assert game.player_progress.total_feathers == 800
    assert boosts.count(BoostType.POWER_SURGE) == 5
    assert failures[-1]["reason"] == "inventory_full"


def test_use_applies_boost_and_records_usage():
    bus, _, game, boosts = make_boosts()
    applied = capture(bus, EVENT_BOOST_APPLIED)
    game.start_game(GameMode.FREE_PLAY)
    install_board(game, NO_MATCH_ROWS)

    bus.emit(EVENT_BOOST_REQUEST, boost_type="power_surge")

    assert boosts.count(BoostType.POWER_SURGE) == 2
    assert game.session.power_charge == 0.5
    history = boosts.inventory.usage_history
    assert len(history) == 1
    assert history[0].type is BoostType.POWER_SURGE
    assert history[0].context == GameMode.FREE_PLAY.value
    assert applied == [{"boost_type": BoostType.POWER_SURGE}]


def test_use_refunds_when_boost_cannot_apply():
    bus, _, _, boosts = make_boosts()
    failures = capture(bus, EVENT_BOOST_FAILED)
    assert not boosts.use(BoostType.ROW_SWEEP)
    assert boosts.count(BoostType.ROW_SWEEP) == 2
    assert boosts.inventory.usage_history == []
    assert failures[-1]["reason"] == "not_applicable"


def test_use_without_stock_fails():
    _, _, game, boosts = make_boosts()
    game.start_game(GameMode.FREE_PLAY)
    boosts.inventory.entry(BoostType.BOARD_SHUFFLE).available_count = 0
    before = game.session
    assert not boosts.use(BoostType.BOARD_SHUFFLE)
    assert game.session is before


def test_usage_history_is_newest_first_and_bounded():
    _, _, _, boosts = make_boosts()
    for index in range(35):
        boosts.record_usage(BoostType.COOP_HAMMER, f"ctx-{index}")
    history = boosts.inventory.usage_history
    assert len(history) == 30
    assert history[0].context == "ctx-34"
    assert history[-1].context == "ctx-5"
    assert len(boosts.storage.load_value(KEY_BOOST_USAGE_HISTORY)) == 30


def test_refresh_rewards_milestones_once():
    _, _, _, boosts = make_boosts()
    progress = PlayerProgress(daily_streak=6)
    boosts.refresh_inventory(progress)
    assert counts(boosts)[BoostType.BOARD_SHUFFLE] == 3
    assert counts(boosts)[BoostType.POWER_SURGE] == 5
    boosts.refresh_inventory(progress)
    assert counts(boosts)[BoostType.BOARD_SHUFFLE] == 3

    boosts.refresh_inventory(PlayerProgress(daily_streak=6, total_feathers=1_500))
    assert counts(boosts) == {
        BoostType.POWER_SURGE: 5,
        BoostType.ROW_SWEEP: 5,
        BoostType.BOARD_SHUFFLE: 5,
        BoostType.COOP_HAMMER: 5,
    }
    assert boosts.inventory.milestones.feather_milestone == 3


def test_streak_rewards_ignore_the_cap():
    _, _, _, boosts = make_boosts()
    boosts.refresh_inventory(PlayerProgress(daily_streak=9))
    assert counts(boosts)[BoostType.POWER_SURGE] == 6


def test_inventory_survives_restart():
    storage = MemoryStorage()
    _, _, _, boosts = make_boosts(storage)
    assert boosts.consume_boost(BoostType.COOP_HAMMER)
    boosts.record_usage(BoostType.COOP_HAMMER, "free_play")
    boosts.refresh_inventory(PlayerProgress(daily_streak=3))

    _, _, _, reloaded = make_boosts(storage)
    assert reloaded.count(BoostType.COOP_HAMMER) == 2
    assert reloaded.inventory.milestones.streak_milestone == 1
    assert len(reloaded.inventory.usage_history) == 1


def test_reset_restores_defaults():
    _, _, _, boosts = make_boosts()
    boosts.refresh_inventory(PlayerProgress(daily_streak=9))
    boosts.record_usage(BoostType.ROW_SWEEP, "x")
    boosts.reset()
    assert counts(boosts)[BoostType.POWER_SURGE] == 3
    assert boosts.inventory.usage_history == []
    assert boosts.inventory.milestones.streak_milestone == 0


def test_unknown_boost_requests_change_nothing():
    bus, _, game, boosts = make_boosts()
    failures = capture(bus, EVENT_BOOST_FAILED)
    game.player_progress.total_feathers = 1_000
    before = counts(boosts)

    bus.emit(EVENT_BOOST_REQUEST, boost_type="rocket")
    bus.emit(EVENT_BOOST_PURCHASE_REQUEST, boost_type="rocket")

    assert counts(boosts) == before
    assert game.player_progress.total_feathers == 1_000
    assert boosts.inventory.usage_history == []
    assert failures == [
        {"boost_type": "rocket", "reason": "unknown_boost"},
        {"boost_type": "rocket", "reason": "unknown_boost"},
    ]
