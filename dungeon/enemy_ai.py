# RayCrawler/dungeon/enemy_ai.py
from __future__ import annotations
from dataclasses import replace
from typing import List, Literal, Set, Tuple, TypedDict
import logging
import math

from world.types import GridMap
from .collision import tile_open
from .config import EngineConfig
from .state import Enemy, GameState, Status

logger = logging.getLogger(__name__)

# Intent models
class MoveIntent(TypedDict):
    kind: Literal['move']
    slot: int
    dx: int
    dy: int

class AttackIntent(TypedDict):
    kind: Literal['attack']
    slot: int
    damage: int

class IdleIntent(TypedDict):
    kind: Literal['idle']
    slot: int

Intent = MoveIntent | AttackIntent | IdleIntent

# World view provided to AI
class WorldView(TypedDict):
    grid: GridMap
    player: Tuple[float, float]
    occupied: Set[Tuple[int, int]]  # tiles held by other active enemies
    config: EngineConfig


def _sign(v: int) -> int:
    return 1 if v > 0 else (-1 if v < 0 else 0)


def chase_ai(slot: int, enemy: Enemy, world: WorldView) -> Intent:
    # Attack when touching the player, otherwise step one tile toward them
    # along the longer axis, falling back to the shorter one when blocked.
    cfg = world['config']
    px, py = world['player']
    dist = math.hypot(px - enemy.cx, py - enemy.cy)
    if dist <= cfg.contact_range:
        return {'kind': 'attack', 'slot': slot, 'damage': cfg.contact_damage}
    if dist > cfg.sight_range:
        return {'kind': 'idle', 'slot': slot}

    tdx = int(px // 1) - enemy.x
    tdy = int(py // 1) - enemy.y
    sx, sy = _sign(tdx), _sign(tdy)
    if abs(tdx) >= abs(tdy):
        candidates = [(sx, 0), (0, sy)]
    else:
        candidates = [(0, sy), (sx, 0)]
    for dx, dy in candidates:
        if dx == 0 and dy == 0:
            continue
        nx, ny = enemy.x + dx, enemy.y + dy
        if tile_open(world['grid'], nx, ny) and (nx, ny) not in world['occupied']:
            return {'kind': 'move', 'slot': slot, 'dx': dx, 'dy': dy}
    return {'kind': 'idle', 'slot': slot}


def run_enemy_turn(state: GameState, grid: GridMap, config: EngineConfig) -> Tuple[GameState, List[str]]:
    """Let every active enemy act once, in slot order.

    Occupancy is refreshed after each step so two enemies never share a tile.
    Stops as soon as the player dies.
    """
    notes: List[str] = []
    occupied = {(e.x, e.y) for e in state.enemies if e.active}
    for slot, enemy in enumerate(state.enemies):
        if not enemy.active:
            continue
        p = state.player
        world: WorldView = {
            'grid': grid,
            'player': (p.x, p.y),
            'occupied': occupied - {(enemy.x, enemy.y)},
            'config': config,
        }
        intent = chase_ai(slot, enemy, world)
        if intent['kind'] == 'attack':
            health = max(0, p.health - intent['damage'])
            state = state.with_player(health=health)
            notes.append(f"A monster claws you (-{intent['damage']}).")
            if health <= 0:
                logger.info("player killed by enemy slot %d", slot)
                notes.append('You died.')
                return replace(state, status=Status.LOST), notes
        elif intent['kind'] == 'move':
            moved = replace(enemy, x=enemy.x + intent['dx'], y=enemy.y + intent['dy'])
            occupied.discard((enemy.x, enemy.y))
            occupied.add((moved.x, moved.y))
            state = state.with_enemy(slot, moved)
    return state, notes
