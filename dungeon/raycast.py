from __future__ import annotations
import math
from dataclasses import dataclass
from typing import List, Optional

from world.types import GridMap, Tile
from .config import EngineConfig

# Floor for any distance used as a divisor
EPSILON = 1e-4


@dataclass(frozen=True)
class RayHit:
    distance: float        # along the ray, before fish-eye correction
    tile: Optional[Tile]   # None when nothing was hit within max depth
    side: int              # 0: crossed an x boundary, 1: a y boundary


@dataclass(frozen=True)
class Column:
    index: int
    angle: float
    raw_distance: float
    distance: float        # perpendicular (fish-eye corrected) distance
    tile: Optional[Tile]
    side: int

    @property
    def hit(self) -> bool:
        return self.tile is not None


def column_offset(col: int, config: EngineConfig) -> float:
    """Angle of a screen column relative to the facing direction."""
    return config.fov * (col / (config.view_width - 1) - 0.5)


def offset_to_column(offset: float, config: EngineConfig) -> int:
    """Inverse of column_offset, rounded to the nearest column."""
    return int(round((offset / config.fov + 0.5) * (config.view_width - 1)))


def cast_ray(grid: GridMap, px: float, py: float, angle: float, max_depth: float) -> RayHit:
    """Walk the grid cell by cell (DDA) until a non-floor tile is entered."""
    ray_dir_x = math.cos(angle)
    ray_dir_y = math.sin(angle)

    map_x = int(px // 1)
    map_y = int(py // 1)

    delta_dist_x = abs(1.0 / ray_dir_x) if ray_dir_x != 0 else 1e30
    delta_dist_y = abs(1.0 / ray_dir_y) if ray_dir_y != 0 else 1e30

    if ray_dir_x < 0:
        step_x = -1
        side_dist_x = (px - map_x) * delta_dist_x
    else:
        step_x = 1
        side_dist_x = (map_x + 1.0 - px) * delta_dist_x
    if ray_dir_y < 0:
        step_y = -1
        side_dist_y = (py - map_y) * delta_dist_y
    else:
        step_y = 1
        side_dist_y = (map_y + 1.0 - py) * delta_dist_y

    while True:
        if side_dist_x < side_dist_y:
            dist = side_dist_x
            side_dist_x += delta_dist_x
            map_x += step_x
            side = 0
        else:
            dist = side_dist_y
            side_dist_y += delta_dist_y
            map_y += step_y
            side = 1
        if dist > max_depth:
            return RayHit(distance=max_depth, tile=None, side=side)
        tile = grid.tile_at(map_x, map_y)
        if tile is not Tile.FLOOR:
            return RayHit(distance=max(EPSILON, dist), tile=tile, side=side)


def cast_columns(grid: GridMap, px: float, py: float, angle: float,
                 config: EngineConfig) -> List[Column]:
    cols: List[Column] = []
    for c in range(config.view_width):
        offset = column_offset(c, config)
        ray_ang = angle + offset
        hit = cast_ray(grid, px, py, ray_ang, config.max_depth)
        if hit.tile is None:
            perp = config.max_depth
        else:
            # Fish-eye correction: project onto the view axis
            perp = max(EPSILON, hit.distance * math.cos(offset))
        cols.append(Column(
            index=c,
            angle=ray_ang,
            raw_distance=hit.distance,
            distance=perp,
            tile=hit.tile,
            side=hit.side,
        ))
    return cols
