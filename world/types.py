from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class Tile(Enum):
    WALL = '#'
    FLOOR = '.'
    EXIT = 'X'


# Layout characters that mark spawns; the cell underneath is floor
PLAYER_MARK = 'P'
ENEMY_MARK = 'E'


@dataclass(frozen=True)
class GridMap:
    """Immutable tile grid plus the spawn markers found in its layout.

    Rows are indexed by y and columns by x. Lookups outside the grid
    resolve to WALL so rays and movers never need bounds checks.
    """
    name: str
    width: int
    height: int
    tiles: Tuple[Tuple[Tile, ...], ...]
    player_start: Tuple[int, int]
    enemy_starts: Tuple[Tuple[int, int], ...] = ()

    @classmethod
    def from_layout(cls, name: str, layout: str) -> 'GridMap':
        rows = [ln.strip() for ln in layout.strip().splitlines() if ln.strip()]
        if not rows:
            raise ValueError(f"map {name!r} has no rows")
        width = len(rows[0])
        if any(len(r) != width for r in rows):
            raise ValueError(f"map {name!r} is not rectangular")
        tiles: List[Tuple[Tile, ...]] = []
        player: Optional[Tuple[int, int]] = None
        enemies: List[Tuple[int, int]] = []
        for y, row in enumerate(rows):
            out: List[Tile] = []
            for x, ch in enumerate(row):
                if ch == PLAYER_MARK:
                    if player is not None:
                        raise ValueError(f"map {name!r} has more than one player start")
                    player = (x, y)
                    out.append(Tile.FLOOR)
                elif ch == ENEMY_MARK:
                    enemies.append((x, y))
                    out.append(Tile.FLOOR)
                else:
                    try:
                        out.append(Tile(ch))
                    except ValueError:
                        raise ValueError(f"map {name!r}: unknown tile {ch!r} at ({x}, {y})") from None
            tiles.append(tuple(out))
        if player is None:
            raise ValueError(f"map {name!r} has no player start")
        return cls(
            name=name,
            width=width,
            height=len(rows),
            tiles=tuple(tiles),
            player_start=player,
            enemy_starts=tuple(enemies),
        )

    def in_bounds(self, tx: int, ty: int) -> bool:
        return 0 <= tx < self.width and 0 <= ty < self.height

    def tile_at(self, x: float, y: float) -> Tile:
        tx, ty = int(x // 1), int(y // 1)
        if not self.in_bounds(tx, ty):
            return Tile.WALL
        return self.tiles[ty][tx]

    def is_blocked(self, x: float, y: float) -> bool:
        return self.tile_at(x, y) is Tile.WALL

    def exit_tiles(self) -> List[Tuple[int, int]]:
        return [
            (x, y)
            for y, row in enumerate(self.tiles)
            for x, t in enumerate(row)
            if t is Tile.EXIT
        ]

    def to_layout(self) -> str:
        """Render the bare tiles back to layout text (spawn markers dropped)."""
        return '\n'.join(''.join(t.value for t in row) for row in self.tiles)
