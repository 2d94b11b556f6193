from __future__ import annotations
from typing import Tuple

from world.types import GridMap, Tile


def tile_at(grid: GridMap, x: float, y: float) -> Tile:
    # Off-map is WALL, never an error
    return grid.tile_at(x, y)


def is_blocked(grid: GridMap, x: float, y: float) -> bool:
    return grid.tile_at(x, y) is Tile.WALL


def tile_open(grid: GridMap, tx: int, ty: int) -> bool:
    """Whole-tile check used for enemy steps.

    Only plain floor: the exit is opaque to rays and enemies never stand on it.
    """
    return grid.tile_at(tx + 0.5, ty + 0.5) is Tile.FLOOR


def can_occupy(grid: GridMap, x: float, y: float, radius: float = 0.0) -> bool:
    """True if a body of half-size ``radius`` centred at (x, y) touches no wall."""
    if is_blocked(grid, x, y):
        return False
    if radius <= 0:
        return True
    for cx in (x - radius, x + radius):
        for cy in (y - radius, y + radius):
            if is_blocked(grid, cx, cy):
                return False
    return True


def slide_move(grid: GridMap, x: float, y: float, dx: float, dy: float,
               radius: float = 0.0) -> Tuple[float, float]:
    """Apply a displacement one axis at a time.

    X is tried first from the current position, then Y from wherever X
    left us, so a mover pressed diagonally into a wall keeps sliding along it.
    """
    nx, ny = x, y
    if dx and can_occupy(grid, x + dx, y, radius):
        nx = x + dx
    if dy and can_occupy(grid, nx, y + dy, radius):
        ny = y + dy
    return nx, ny
