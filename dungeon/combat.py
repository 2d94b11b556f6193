from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional, Tuple
import logging
import math

from world.types import GridMap
from .config import EngineConfig
from .raycast import EPSILON, cast_ray
from .state import GameState, Status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShotResult:
    slot: Optional[int]
    killed: bool = False
    message: str = ''


def angle_diff(a: float, b: float) -> float:
    """Signed smallest difference a - b, in [-pi, pi)."""
    return (a - b + math.pi) % (2 * math.pi) - math.pi


def pick_target(state: GameState, grid: GridMap, config: EngineConfig) -> Optional[int]:
    """Slot of the nearest active enemy in range, inside the aim cone and in sight."""
    p = state.player
    best: Optional[Tuple[int, float]] = None
    for slot, e in enumerate(state.enemies):
        if not e.active:
            continue
        dx, dy = e.cx - p.x, e.cy - p.y
        dist = math.hypot(dx, dy)
        if dist > config.shot_range:
            continue
        if dist > EPSILON:
            bearing = math.atan2(dy, dx)
            if abs(angle_diff(bearing, p.angle)) > config.shot_tolerance:
                continue
            # Anything solid before the enemy stops the shot
            if cast_ray(grid, p.x, p.y, bearing, dist).tile is not None:
                continue
        if best is None or dist < best[1]:
            best = (slot, dist)
    return None if best is None else best[0]


def shoot(state: GameState, grid: GridMap, config: EngineConfig) -> Tuple[GameState, ShotResult]:
    slot = pick_target(state, grid, config)
    if slot is None:
        return state, ShotResult(slot=None, message='Your shot hits nothing.')

    enemy = state.enemies[slot]
    health = max(0, enemy.health - config.shot_damage)
    killed = health == 0
    state = state.with_enemy(slot, replace(enemy, health=health, active=not killed))
    if not killed:
        return state, ShotResult(slot=slot, message=f"Hit! (-{config.shot_damage})")

    result = ShotResult(slot=slot, killed=True, message='Monster eliminated!')
    if not state.active_enemies():
        logger.info("all enemies eliminated")
        state = replace(state, status=Status.WON)
    return state, result
