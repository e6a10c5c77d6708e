import random
from datetime import datetime, timezone

from coop.components.game_mode import GameMode
from coop.components.game_result import GameResult, Outcome
from coop.components.game_session import GameSession
from coop.components.tile import TileKind, TilePosition
from coop.systems.board_ops import random_board
from coop.systems.level_catalogue import LevelCatalogue


def test_session_snapshot_survives_serialisation():
    session = GameSession(
        level=LevelCatalogue.mode_level(GameMode.MOVE_CHALLENGE),
        board=random_board(random.Random(1)),
        mode=GameMode.MOVE_CHALLENGE,
        remaining_moves=12,
        score=480,
        power_charge=0.35,
        last_cleared_positions=frozenset({TilePosition(2, 3)}),
    )
    restored = GameSession.from_dict(session.to_dict())
    assert restored == session


def test_empty_highlight_is_left_out_of_payload():
    session = GameSession(
        level=LevelCatalogue.mode_level(GameMode.FREE_PLAY),
        board=random_board(random.Random(1)),
    )
    assert "last_cleared_positions" not in session.to_dict()


def test_result_payload():
    when = datetime(2024, 3, 2, tzinfo=timezone.utc)
    result = GameResult(outcome=Outcome.DEFEAT, score=10, feathers=1, moves_used=4, cascades=2, completion_date=when)
    payload = result.to_dict()
    assert payload["outcome"] == "defeat"
    assert GameResult.from_dict(payload) == result


def test_tile_filler_flag():
    board = random_board(random.Random(2))
    tile = board.tile_at((0, 0)).with_kind(TileKind.CORN, is_static=True)
    assert not tile.is_filler
    assert tile.with_kind(TileKind.CORN, is_static=False).is_filler
