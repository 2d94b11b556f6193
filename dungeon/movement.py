from __future__ import annotations
import math
from dataclasses import replace

from world.types import GridMap
from .collision import slide_move
from .config import EngineConfig
from .state import Action, Intents, Player

TWO_PI = 2 * math.pi


def normalize_angle(a: float) -> float:
    """Wrap an angle into [0, 2*pi)."""
    a = math.fmod(a, TWO_PI)
    if a < 0:
        a += TWO_PI
    # fmod of a value just below 0 can land exactly on 2*pi after the add
    if a >= TWO_PI:
        a = 0.0
    return a


def turn(player: Player, direction: int, config: EngineConfig) -> Player:
    # Screen y grows downward, so turning left is a negative rotation
    return replace(player, angle=normalize_angle(player.angle + direction * config.turn_step))


def move(player: Player, direction: int, grid: GridMap, config: EngineConfig) -> Player:
    """Step forward (direction=1) or backward (direction=-1) along the facing angle."""
    speed = config.move_speed if direction > 0 else -config.move_speed * config.backward_factor
    dx = math.cos(player.angle) * speed
    dy = math.sin(player.angle) * speed
    nx, ny = slide_move(grid, player.x, player.y, dx, dy, config.player_radius)
    return replace(player, x=nx, y=ny)


def toggle_intent(player: Player, action: Action) -> Player:
    it = player.intents
    if action is Action.TOGGLE_FORWARD:
        it = replace(it, forward=not it.forward)
    elif action is Action.TOGGLE_TURN_LEFT:
        it = replace(it, turn_left=not it.turn_left, turn_right=False)
    elif action is Action.TOGGLE_TURN_RIGHT:
        it = replace(it, turn_right=not it.turn_right, turn_left=False)
    return replace(player, intents=it)


def apply_action(player: Player, action: Action, grid: GridMap, config: EngineConfig) -> Player:
    """Apply a movement or turn action; other actions leave the player as is."""
    if action is Action.TURN_LEFT:
        return turn(player, -1, config)
    if action is Action.TURN_RIGHT:
        return turn(player, 1, config)
    if action is Action.MOVE_FORWARD:
        return move(player, 1, grid, config)
    if action is Action.MOVE_BACKWARD:
        return move(player, -1, grid, config)
    if action.is_toggle:
        return toggle_intent(player, action)
    return player


def apply_intents(player: Player, action: Action, grid: GridMap, config: EngineConfig) -> Player:
    """Replay held intents after ``action``: turns first, then forward.

    An intent is skipped when the explicit action already did the same thing
    this turn.
    """
    it: Intents = player.intents
    if it.turn_left and action is not Action.TURN_LEFT:
        player = turn(player, -1, config)
    if it.turn_right and action is not Action.TURN_RIGHT:
        player = turn(player, 1, config)
    if it.forward and action is not Action.MOVE_FORWARD:
        player = move(player, 1, grid, config)
    return player
