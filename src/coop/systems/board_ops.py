from __future__ import annotations

import random
import uuid
from typing import Dict, Iterable, List, Set, Tuple

from coop.components.board import Board
from coop.components.tile import ALL_KINDS, FILLER_KIND, Tile, TileKind, TilePosition
from coop.constants import BOARD_SIZE

Position = Tuple[int, int]
Rows = List[List[Tile]]


def new_tile_id(rng: random.Random) -> uuid.UUID:
    """Tile ids come from the injected rng so seeded runs replay identically."""
    return uuid.UUID(int=rng.getrandbits(128), version=4)


def spawn_tile(rng: random.Random, position: Position) -> Tile:
    return Tile(
        kind=rng.choice(ALL_KINDS),
        position=TilePosition(*position),
        id=new_tile_id(rng),
    )


def random_board(rng: random.Random, size: int = BOARD_SIZE) -> Board:
    return Board.from_rows(
        [[spawn_tile(rng, (row, col)) for col in range(size)] for row in range(size)]
    )


def board_from_kinds(kinds: Iterable[Iterable[TileKind | str]], rng: random.Random | None = None) -> Board:
    """Build a board from a square grid of kinds (or kind values)."""
    rng = rng or random.Random()
    rows: Rows = []
    for row, line in enumerate(kinds):
        rows.append([
            Tile(kind=TileKind(kind), position=TilePosition(row, col), id=new_tile_id(rng))
            for col, kind in enumerate(line)
        ])
    return Board.from_rows(rows)


def in_bounds(size: int, position: Position) -> bool:
    row, col = position
    return 0 <= row < size and 0 <= col < size


def is_adjacent(a: Position, b: Position) -> bool:
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


def swap_tiles(board: Board, origin: Position, target: Position) -> Board | None:
    """Return a copy with origin/target exchanged, or None for an illegal swap.

    Both cells must be on the board and share an edge. The moved tiles take
    the position of the cell they land in.
    """
    if board.is_empty():
        return None
    if not (in_bounds(board.size, origin) and in_bounds(board.size, target)):
        return None
    if not is_adjacent(origin, target):
        return None
    rows = board.to_rows()
    origin_tile = rows[origin[0]][origin[1]]
    target_tile = rows[target[0]][target[1]]
    rows[origin[0]][origin[1]] = target_tile.relocated(origin)
    rows[target[0]][target[1]] = origin_tile.relocated(target)
    return Board.from_rows(rows)


def find_runs(board: Board) -> List[List[TilePosition]]:
    """Detect every maximal horizontal or vertical run of length >= 3.

    Rows are scanned left to right, then columns top to bottom. Runs are
    returned in discovery order and may overlap where lines cross.
    """
    size = board.size
    runs: List[List[TilePosition]] = []
    # Horizontal runs
    for r in range(size):
        run: List[TilePosition] = []
        last_kind = None
        for c in range(size):
            kind = board.tiles[r][c].kind
            if kind == last_kind:
                run.append(TilePosition(r, c))
            else:
                if len(run) >= 3:
                    runs.append(run)
                run = [TilePosition(r, c)]
            last_kind = kind
        if len(run) >= 3:
            runs.append(run)
    # Vertical runs
    for c in range(size):
        run = []
        last_kind = None
        for r in range(size):
            kind = board.tiles[r][c].kind
            if kind == last_kind:
                run.append(TilePosition(r, c))
            else:
                if len(run) >= 3:
                    runs.append(run)
                run = [TilePosition(r, c)]
            last_kind = kind
        if len(run) >= 3:
            runs.append(run)
    return runs


def count_kinds(board: Board, positions: Iterable[Position]) -> Dict[TileKind, int]:
    counts: Dict[TileKind, int] = {}
    for pos in positions:
        kind = board.tile_at(pos).kind
        counts[kind] = counts.get(kind, 0) + 1
    return counts


def clear_tiles(board: Board, positions: Iterable[Position]) -> Board:
    """Mark positions as emptied: filler kind, non-static."""
    rows = board.to_rows()
    for row, col in positions:
        rows[row][col] = rows[row][col].with_kind(FILLER_KIND, is_static=False)
    return Board.from_rows(rows)


def apply_gravity(board: Board, cleared: Set[TilePosition], rng: random.Random) -> Board:
    """Compact surviving tiles to the bottom of each column and spawn new ones above."""
    size = board.size
    rows = board.to_rows()
    for col in range(size):
        available_row = size - 1
        for row in range(size - 1, -1, -1):
            if (row, col) in cleared:
                continue
            rows[available_row][col] = board.tiles[row][col].relocated((available_row, col))
            available_row -= 1
        for filler_row in range(available_row, -1, -1):
            rows[filler_row][col] = spawn_tile(rng, (filler_row, col))
    return Board.from_rows(rows)


def refill_filler_tiles(board: Board, rng: random.Random) -> Board:
    rows = board.to_rows()
    changed = False
    for row in range(board.size):
        for col in range(board.size):
            tile = rows[row][col]
            if tile.is_filler:
                rows[row][col] = tile.with_kind(rng.choice(ALL_KINDS))
                changed = True
    if not changed:
        return board
    return Board.from_rows(rows)


def shuffled_board(board: Board, rng: random.Random) -> Board:
    """Permute the existing tiles across every cell (no tile is created or lost)."""
    flat = list(board)
    rng.shuffle(flat)
    size = board.size
    rows: Rows = []
    for row in range(size):
        rows.append([
            flat[row * size + col].relocated((row, col)) for col in range(size)
        ])
    return Board.from_rows(rows)
