"""Cascade resolution engine.

Pure board algebra: every method takes a Board and returns new values
without touching its input. The only impurity is the injected random source
used to spawn and refill tiles.
"""
from __future__ import annotations

import logging
import random
from types import MappingProxyType
from typing import Dict, Set, Tuple

from coop.components.board import Board
from coop.components.cascade_resolution import CascadeResolution
from coop.components.tile import TileKind, TilePosition
from coop.constants import BASE_SCORE, MAX_POWER_CHARGE, POWER_PER_CLEARED_TILE
from coop.systems.board_ops import (
    Position,
    apply_gravity,
    clear_tiles,
    count_kinds,
    find_runs,
    refill_filler_tiles,
    swap_tiles,
)

logger = logging.getLogger(__name__)


class CascadeSolver:
    def __init__(self, rng: random.Random | None = None, *, base_score: int = BASE_SCORE):
        self.rng = rng or random.Random()
        self.base_score = base_score

    def is_swap_valid(self, board: Board, origin: Position, target: Position) -> bool:
        """True if origin/target are adjacent, on the board, and swapping them forms a run."""
        simulated = swap_tiles(board, origin, target)
        if simulated is None:
            return False
        return bool(find_runs(simulated))

    def has_matches(self, board: Board) -> bool:
        return bool(find_runs(board))

    def refill(self, board: Board) -> Board:
        """Give every emptied (filler, non-static) cell a uniformly random kind."""
        return refill_filler_tiles(board, self.rng)

    def resolve(self, board: Board) -> Tuple[Board, CascadeResolution]:
        """Clear runs, drop tiles and refill until the board is stable.

        Each wave scores ``base_score * cleared * wave_number`` so deeper
        chains pay multiplicatively. A result with ``cascades == 0`` means the
        board was already stable and is returned unchanged.
        """
        working = board
        total_cleared: Set[TilePosition] = set()
        cleared_by_kind: Dict[TileKind, int] = {}
        score = 0
        feathers = 0
        power_gain = 0.0
        cascades = 0

        while True:
            runs = find_runs(working)
            if not runs:
                break
            cascades += 1
            cleared = {pos for run in runs for pos in run}
            total_cleared |= cleared
            score += self.base_score * len(cleared) * cascades
            feathers += max(1, len(cleared) // 2)
            power_gain += len(cleared) * POWER_PER_CLEARED_TILE
            for kind, count in count_kinds(working, cleared).items():
                cleared_by_kind[kind] = cleared_by_kind.get(kind, 0) + count
            logger.debug("Cascade wave %d cleared %d tiles", cascades, len(cleared))

            working = clear_tiles(working, cleared)
            working = apply_gravity(working, cleared, self.rng)
            working = self.refill(working)

        resolution = CascadeResolution(
            cleared_positions=frozenset(total_cleared),
            cleared_by_kind=MappingProxyType(dict(cleared_by_kind)),
            score_awarded=score,
            feathers_earned=feathers,
            power_gain=min(MAX_POWER_CHARGE, power_gain),
            cascades=cascades,
        )
        return working, resolution
