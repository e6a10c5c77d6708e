from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Sequence, Tuple

from coop.components.tile import Tile, TilePosition

Grid = Tuple[Tuple[Tile, ...], ...]


@dataclass(frozen=True, slots=True)
class Board:
    """Immutable square grid of tiles, ``tiles[row][column]``.

    Row 0 is the top of the coop; gravity pulls towards the last row.
    """
    tiles: Grid

    def __post_init__(self) -> None:
        size = len(self.tiles)
        for row, line in enumerate(self.tiles):
            if len(line) != size:
                raise ValueError(f"Board row {row} has {len(line)} tiles, expected {size}")
            for column, tile in enumerate(line):
                if tile.position != (row, column):
                    raise ValueError(
                        f"Tile at {(row, column)} reports position {tuple(tile.position)}"
                    )

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Tile]]) -> "Board":
        return cls(tiles=tuple(tuple(line) for line in rows))

    @property
    def size(self) -> int:
        return len(self.tiles)

    def is_empty(self) -> bool:
        return not self.tiles

    def tile_at(self, position: Tuple[int, int]) -> Tile:
        row, column = position
        return self.tiles[row][column]

    def positions(self) -> Iterator[TilePosition]:
        for row in range(self.size):
            for column in range(self.size):
                yield TilePosition(row, column)

    def __iter__(self) -> Iterator[Tile]:
        for line in self.tiles:
            yield from line

    def to_rows(self) -> List[List[Tile]]:
        """Mutable working copy used by the solver."""
        return [list(line) for line in self.tiles]

    def kinds(self) -> List[List[str]]:
        return [[tile.kind.value for tile in line] for line in self.tiles]

    def to_dict(self) -> List[List[dict[str, Any]]]:
        return [[tile.to_dict() for tile in line] for line in self.tiles]

    @classmethod
    def from_dict(cls, payload: Sequence[Sequence[dict[str, Any]]]) -> "Board":
        return cls.from_rows([[Tile.from_dict(item) for item in line] for line in payload])
