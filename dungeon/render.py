from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from world.types import GridMap, Tile
from .config import EngineConfig
from .raycast import EPSILON, Column, cast_columns
from .sprites import SpriteHit, project_enemies
from .state import GameState, Status


class Glyph:
    CEILING = ' '
    WALL_NEAR = '█'  # full block
    WALL_MID = '▓'   # dark shade
    WALL_FAR = '░'   # light shade
    EXIT = '#'
    FLOOR_NEAR = '='
    FLOOR_MID = '-'
    FLOOR_FAR = '.'
    ENEMY = 'M'
    DEFEATED = 'x'


ALL_GLYPHS = frozenset(
    v for k, v in vars(Glyph).items() if not k.startswith('_')
)

# Wall tier boundaries, in tiles
NEAR_DISTANCE = 3.0
MID_DISTANCE = 7.0


@dataclass(frozen=True)
class Frame:
    rows: Tuple[str, ...]
    status: str
    columns: Tuple[Column, ...] = ()
    sprites: Tuple[SpriteHit, ...] = ()

    @property
    def text(self) -> str:
        return '\n'.join(self.rows + (self.status,))

    def glyph(self, col: int, row: int) -> str:
        return self.rows[row][col]


def wall_glyph(col: Column) -> str:
    if col.tile is Tile.EXIT:
        return Glyph.EXIT
    if col.distance < NEAR_DISTANCE:
        return Glyph.WALL_NEAR
    if col.distance < MID_DISTANCE:
        return Glyph.WALL_MID
    return Glyph.WALL_FAR


def floor_glyph(row: int, height: int) -> str:
    half = height / 2
    t = (row + 0.5 - half) / half
    if t > 2 / 3:
        return Glyph.FLOOR_NEAR
    if t > 1 / 3:
        return Glyph.FLOOR_MID
    return Glyph.FLOOR_FAR


def slice_bounds(distance: float, height: int) -> Tuple[int, int]:
    """Rows [top, bottom) covered by a wall slice at ``distance``."""
    size = max(0, min(height, int(height / max(EPSILON, distance))))
    top = (height - size) // 2
    return top, top + size


def _paint_columns(columns: Sequence[Column], height: int) -> List[List[str]]:
    buf = [[Glyph.CEILING] * len(columns) for _ in range(height)]
    for col in columns:
        if col.hit:
            top, bottom = slice_bounds(col.distance, height)
            glyph = wall_glyph(col)
        else:
            top = bottom = height // 2
            glyph = Glyph.CEILING
        for y in range(height):
            if y < top:
                buf[y][col.index] = Glyph.CEILING
            elif y < bottom:
                buf[y][col.index] = glyph
            else:
                buf[y][col.index] = floor_glyph(y, height)
    return buf


def _paint_sprites(buf: List[List[str]], sprites: Sequence[SpriteHit], height: int) -> None:
    for spr in sprites:
        top = (height - spr.height) // 2
        bottom = top + spr.height
        if spr.defeated:
            # Remains lie on the floor: bottom third of the box
            top = bottom - max(1, spr.height // 3)
            glyph = Glyph.DEFEATED
        else:
            glyph = Glyph.ENEMY
        for c in spr.columns:
            for y in range(max(0, top), min(height, bottom)):
                buf[y][c] = glyph


def status_line(state: GameState, config: EngineConfig) -> str:
    total = sum(1 for e in state.enemies if not e.is_empty)
    alive = len(state.active_enemies())
    parts = [f"HP {state.player.health}/{config.player_health}", f"Foes {alive}/{total}"]
    if state.status is Status.WON:
        parts.append('VICTORY')
    elif state.status is Status.LOST:
        parts.append('DEAD')
    if state.message:
        parts.append(state.message)
    return ' | '.join(parts)


def render_frame(state: GameState, grid: GridMap, config: EngineConfig) -> Frame:
    p = state.player
    columns = cast_columns(grid, p.x, p.y, p.angle, config)
    sprites = project_enemies(state.enemies, p.x, p.y, p.angle, columns, config)
    buf = _paint_columns(columns, config.view_height)
    _paint_sprites(buf, sprites, config.view_height)
    return Frame(
        rows=tuple(''.join(r) for r in buf),
        status=status_line(state, config),
        columns=tuple(columns),
        sprites=tuple(sprites),
    )
