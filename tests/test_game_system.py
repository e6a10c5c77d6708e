from coop.components.game_mode import GameMode
from coop.components.game_result import Outcome
from coop.components.game_state import SessionPhase
from coop.components.tile import TileKind, TilePosition
from coop.constants import KEY_LEVEL_PROGRESS
from coop.events.bus import (
    EVENT_COOP_POWER_REQUEST,
    EVENT_FORFEIT_REQUEST,
    EVENT_PROGRESS_CHANGED,
    EVENT_SESSION_CHANGED,
    EVENT_SESSION_FINISHED,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_REQUEST,
)
from coop.systems.feedback import (
    FEEDBACK_HEAVY,
    FEEDBACK_LIGHT,
    FEEDBACK_MEDIUM,
    FEEDBACK_SUCCESS,
    FEEDBACK_WARNING,
)
from coop.systems.storage import MemoryStorage
from tests.helpers import (
    NO_MATCH_ROWS,
    SWAP_READY_ROWS,
    ManualClock,
    capture,
    install_board,
    make_game,
)


def test_start_game_builds_a_stable_board():
    _, _, game, _ = make_game()
    session = game.start_game(GameMode.FREE_PLAY)
    assert game.state.phase is SessionPhase.ACTIVE
    assert session.board.size == 6
    assert not game.solver.has_matches(session.board)
    assert session.score == 0
    assert session.combo_multiplier == 1
    assert session.level.id == GameMode.FREE_PLAY.persistence_id


def test_move_challenge_starts_with_25_moves_and_no_timer():
    _, _, game, _ = make_game()
    session = game.start_game(GameMode.MOVE_CHALLENGE)
    assert session.remaining_moves == 25
    assert game.time_remaining is None


def test_time_attack_starts_countdown():
    _, _, game, _ = make_game()
    game.start_game(GameMode.TIME_ATTACK)
    assert game.time_remaining == 90


def test_valid_swap_commits_and_scores():
    bus, _, game, feedback = make_game()
    game.start_game(GameMode.MOVE_CHALLENGE)
    install_board(game, SWAP_READY_ROWS)
    changes = capture(bus, EVENT_SESSION_CHANGED)

    assert game.perform_swap((0, 2), (0, 3))

    session = game.session
    assert session.remaining_moves == 24
    assert session.score >= 360
    assert session.cascades_triggered >= 1
    assert session.combo_multiplier == 2
    assert 0.0 < session.power_charge <= 1.0
    assert {TilePosition(0, 0), TilePosition(0, 1), TilePosition(0, 2)} <= session.last_cleared_positions
    assert feedback.events == [FEEDBACK_SUCCESS]
    assert changes and changes[-1]["session"] is session


def test_swap_without_match_reverts_and_resets_combo():
    bus, _, game, feedback = make_game()
    game.start_game(GameMode.MOVE_CHALLENGE)
    before = install_board(game, NO_MATCH_ROWS, combo_multiplier=4)
    rejected = capture(bus, EVENT_TILE_SWAP_INVALID)

    assert not game.perform_swap((0, 0), (0, 1))

    session = game.session
    assert session.board == before.board
    assert session.remaining_moves == 25
    assert session.score == 0
    assert session.combo_multiplier == 1
    assert feedback.events == [FEEDBACK_WARNING]
    assert rejected[-1]["reason"] == "no_match"


def test_non_adjacent_swap_is_rejected_without_change():
    _, _, game, feedback = make_game()
    game.start_game(GameMode.FREE_PLAY)
    before = install_board(game, SWAP_READY_ROWS)

    assert not game.perform_swap((0, 0), (0, 2))
    assert game.session is before
    assert feedback.events == [FEEDBACK_WARNING]


def test_swap_without_moves_left_is_rejected():
    _, _, game, feedback = make_game()
    game.start_game(GameMode.MOVE_CHALLENGE)
    before = install_board(game, SWAP_READY_ROWS, remaining_moves=0)
    assert not game.perform_swap((0, 2), (0, 3))
    assert game.session is before
    assert feedback.events == [FEEDBACK_WARNING]


def test_swap_without_session_is_ignored():
    _, _, game, feedback = make_game()
    assert not game.perform_swap((0, 2), (0, 3))
    assert feedback.events == []


def test_last_move_in_move_challenge_ends_in_victory():
    bus, _, game, _ = make_game()
    game.start_game(GameMode.MOVE_CHALLENGE)
    install_board(game, SWAP_READY_ROWS, remaining_moves=1)
    finished = capture(bus, EVENT_SESSION_FINISHED)

    assert game.perform_swap((0, 2), (0, 3))

    assert game.session is None
    result = game.last_result
    assert result.outcome is Outcome.VICTORY
    assert result.moves_used == 25
    assert result.score >= 360
    assert game.state.phase is SessionPhase.VICTORY
    assert finished[-1]["mode"] is GameMode.MOVE_CHALLENGE


def test_combo_is_capped_at_five():
    _, _, game, _ = make_game()
    game.start_game(GameMode.FREE_PLAY)
    install_board(game, SWAP_READY_ROWS, combo_multiplier=5)
    assert game.perform_swap((0, 2), (0, 3))
    assert game.session.combo_multiplier == 5


def test_bus_swap_request_reaches_controller():
    bus, _, game, _ = make_game()
    game.start_game(GameMode.FREE_PLAY)
    install_board(game, SWAP_READY_ROWS)
    bus.emit(EVENT_TILE_SWAP_REQUEST, src=(0, 2), dst=(0, 3))
    assert game.session.score >= 360


def test_coop_power_below_full_charge_does_nothing():
    _, _, game, feedback = make_game()
    game.start_game(GameMode.FREE_PLAY)
    before = install_board(game, NO_MATCH_ROWS, power_charge=0.999)
    assert not game.activate_coop_power()
    assert game.session is before
    assert feedback.events == []


def test_coop_power_at_full_charge():
    bus, _, game, feedback = make_game()
    game.start_game(GameMode.FREE_PLAY)
    install_board(game, NO_MATCH_ROWS, power_charge=1.0, combo_multiplier=5, score=10, collected_feathers=2)
    bus.emit(EVENT_COOP_POWER_REQUEST)
    session = game.session
    assert session.power_charge == 0.0
    assert session.score == 760
    assert session.collected_feathers == 7
    assert session.combo_multiplier == 6
    assert feedback.events == [FEEDBACK_HEAVY]


def test_power_surge_boost():
    _, _, game, feedback = make_game()
    game.start_game(GameMode.FREE_PLAY)
    install_board(game, NO_MATCH_ROWS, power_charge=0.7, last_cleared_positions=frozenset({TilePosition(0, 0)}))
    assert game.apply_power_surge_boost()
    assert game.session.power_charge == 1.0
    assert game.session.last_cleared_positions == frozenset()
    assert feedback.events == [FEEDBACK_MEDIUM]
    assert not game.apply_power_surge_boost()


def test_row_sweep_adds_flat_bonus():
    _, _, game, feedback = make_game(seed=11)
    game.start_game(GameMode.FREE_PLAY)
    install_board(game, NO_MATCH_ROWS)

    assert game.apply_row_sweep_boost()

    session = game.session
    # The swept row is itself a run, so the resolve pays at least as much again.
    assert session.score >= 720 + 720
    assert session.collected_feathers >= 2 + 3
    assert session.cascades_triggered >= 1
    highlight = session.last_cleared_positions
    assert any(all(TilePosition(row, col) in highlight for col in range(6)) for row in range(6))
    assert feedback.events == [FEEDBACK_SUCCESS]
    assert not game.solver.has_matches(session.board)


def test_board_shuffle_keeps_tiles_and_score():
    _, _, game, feedback = make_game()
    game.start_game(GameMode.FREE_PLAY)
    before = install_board(game, NO_MATCH_ROWS, score=40)
    assert game.apply_board_shuffle_boost()
    session = game.session
    assert sorted(str(t.id) for t in session.board) == sorted(str(t.id) for t in before.board)
    assert session.score == 40
    assert session.cascades_triggered == 0
    assert feedback.events == [FEEDBACK_LIGHT]


def test_coop_hammer_forges_a_golden_egg():
    _, _, game, feedback = make_game()
    game.start_game(GameMode.FREE_PLAY)
    before = install_board(game, NO_MATCH_ROWS)
    assert game.apply_coop_hammer_boost()
    session = game.session
    (target,) = tuple(session.last_cleared_positions)
    assert session.board.tile_at(target).kind is TileKind.GOLDEN_EGG
    changed = [pos for pos in session.board.positions()
               if session.board.tile_at(pos) != before.board.tile_at(pos)]
    assert changed in ([], [target])
    assert session.score == 150
    assert session.collected_feathers == 1
    assert session.cascades_triggered == 0
    assert feedback.events == [FEEDBACK_HEAVY]


def test_boosts_fail_without_session():
    _, _, game, _ = make_game()
    assert not game.apply_power_surge_boost()
    assert not game.apply_row_sweep_boost()
    assert not game.apply_board_shuffle_boost()
    assert not game.apply_coop_hammer_boost()


def test_forfeit_records_defeat_and_progress():
    clock = ManualClock()
    storage = MemoryStorage()
    bus, _, game, _ = make_game(storage=storage, clock=clock)
    game.start_game(GameMode.TIME_ATTACK)
    install_board(game, NO_MATCH_ROWS, score=500, collected_feathers=12, cascades_triggered=3)
    clock.advance(30)

    bus.emit(EVENT_FORFEIT_REQUEST)

    assert game.session is None
    assert game.time_remaining is None
    result = game.last_result
    assert result.outcome is Outcome.DEFEAT
    assert result.moves_used == 3
    progress = game.player_progress
    assert progress.total_feathers == 12
    assert progress.deepest_cascade == 3
    assert progress.total_play_time == 30
    assert progress.best_score(GameMode.TIME_ATTACK.persistence_id) == 500
    assert storage.load_value(KEY_LEVEL_PROGRESS)["total_feathers"] == 12


def test_best_records_keep_the_maximum():
    _, _, game, _ = make_game()
    game.start_game(GameMode.MOVE_CHALLENGE)
    install_board(game, NO_MATCH_ROWS, score=900, collected_feathers=3, remaining_moves=10)
    game.forfeit()
    game.start_game(GameMode.MOVE_CHALLENGE)
    install_board(game, NO_MATCH_ROWS, score=400, collected_feathers=8, remaining_moves=2)
    game.forfeit()

    progress = game.player_progress
    records = [c for c in progress.completed_levels if c.level_id == GameMode.MOVE_CHALLENGE.persistence_id]
    assert len(records) == 1
    assert records[0].best_score == 900
    assert records[0].best_feather_count == 8
    assert records[0].best_moves_remaining == 10
    assert game.last_result.moves_used == 23


def test_abandon_free_play_counts_as_victory_then_clears():
    bus, _, game, _ = make_game()
    game.start_game(GameMode.FREE_PLAY)
    install_board(game, NO_MATCH_ROWS, score=300)
    finished = capture(bus, EVENT_SESSION_FINISHED)

    game.abandon_session()

    assert finished[-1]["result"].outcome is Outcome.VICTORY
    assert game.session is None
    assert game.last_result is None
    assert game.state.active_mode is GameMode.FREE_PLAY
    assert game.state.phase is SessionPhase.IDLE
    assert game.player_progress.best_score(GameMode.FREE_PLAY.persistence_id) == 300


def test_abandon_other_modes_records_nothing():
    bus, _, game, _ = make_game()
    game.start_game(GameMode.TIME_ATTACK)
    finished = capture(bus, EVENT_SESSION_FINISHED)
    game.abandon_session()
    assert finished == []
    assert game.time_remaining is None
    assert game.player_progress.completed_levels == []


def test_feather_ledger():
    bus, _, game, _ = make_game()
    progress_events = capture(bus, EVENT_PROGRESS_CHANGED)
    game.player_progress.total_feathers = 100

    assert game.spend_feathers(0)
    assert not game.spend_feathers(101)
    assert game.spend_feathers(60)
    assert game.player_progress.total_feathers == 40
    game.refund_feathers(60)
    assert game.player_progress.total_feathers == 100
    assert len(progress_events) == 2


def test_dismiss_result_returns_to_idle():
    _, _, game, _ = make_game()
    game.start_game(GameMode.FREE_PLAY)
    game.forfeit()
    assert game.state.phase is SessionPhase.DEFEAT
    game.dismiss_result()
    assert game.last_result is None
    assert game.state.phase is SessionPhase.IDLE
