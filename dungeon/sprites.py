from __future__ import annotations
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import EngineConfig
from .raycast import EPSILON, Column, offset_to_column
from .state import Enemy


@dataclass(frozen=True)
class SpriteHit:
    slot: int
    column: int                 # centre column
    depth: float                # forward distance in camera space
    height: int
    defeated: bool
    columns: Tuple[int, ...]    # columns that passed the depth test


def to_camera(dx: float, dy: float, angle: float) -> Tuple[float, float]:
    """Rotate a world offset by -angle. Returns (forward, lateral)."""
    c, s = math.cos(angle), math.sin(angle)
    return dx * c + dy * s, -dx * s + dy * c


def project_enemy(slot: int, enemy: Enemy, px: float, py: float, angle: float,
                  columns: Sequence[Column], config: EngineConfig) -> Optional[SpriteHit]:
    """Project one enemy into screen columns, depth-tested against walls.

    Returns None when the enemy is behind the camera, outside the field of
    view, or hidden behind walls on every column it would cover.
    """
    forward, lateral = to_camera(enemy.cx - px, enemy.cy - py, angle)
    if forward <= EPSILON:
        return None
    offset = math.atan2(lateral, forward)
    if abs(offset) > config.fov / 2:
        return None
    H = config.view_height
    center = offset_to_column(offset, config)
    # Same inverse-distance scale as the wall slices
    height = max(1, min(H, int(H / max(EPSILON, forward))))
    width = max(1, height // 2)
    first = center - width // 2
    visible = tuple(
        c for c in range(first, first + width)
        if 0 <= c < len(columns) and forward < columns[c].distance
    )
    if not visible:
        return None
    return SpriteHit(
        slot=slot,
        column=center,
        depth=forward,
        height=height,
        defeated=not enemy.active,
        columns=visible,
    )


def project_enemies(enemies: Sequence[Enemy], px: float, py: float, angle: float,
                    columns: Sequence[Column], config: EngineConfig) -> List[SpriteHit]:
    """Project live enemies and remains, sorted far to near for painting."""
    hits: List[SpriteHit] = []
    for slot, enemy in enumerate(enemies):
        if enemy.is_empty:
            continue
        hit = project_enemy(slot, enemy, px, py, angle, columns, config)
        if hit is not None:
            hits.append(hit)
    hits.sort(key=lambda h: h.depth, reverse=True)
    return hits
