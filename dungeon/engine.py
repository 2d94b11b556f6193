# RayCrawler/dungeon/engine.py
"""Turn resolver: one action in, the next state, frame and token out.

Every call is a pure function of (state, action, config, map, clock); the
engine keeps nothing between calls. Order inside a turn:

1. decode the prior token (DecodeError propagates, nothing advances)
2. Won/Lost short-circuit: only the timestamp and message change
3. the player's action, then held movement intents
4. enemy turn, which may end the game as Lost
5. exit check for Won
6. render, 7. encode
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import List, Optional, Union
import logging
import time

from world.provider import get_map
from world.types import GridMap, Tile
from . import movement
from .codec import decode, encode, quantize
from .collision import can_occupy, tile_open
from .combat import shoot
from .config import EngineConfig, get_engine_config
from .enemy_ai import run_enemy_turn
from .errors import DecodeError
from .render import Frame, render_frame
from .state import EMPTY_SLOT, Action, Enemy, GameState, Player, Status

logger = logging.getLogger(__name__)

WELCOME = 'Find the exit. Arrows move, space shoots.'
WON_MESSAGE = 'You escaped the dungeon!'
LOST_MESSAGE = 'You are dead. Start a new game.'


@dataclass(frozen=True)
class TurnResult:
    state: GameState
    frame: Frame
    token: str


def _resolve(config: Optional[EngineConfig], grid: Optional[GridMap]):
    config = config or get_engine_config()
    grid = grid or get_map(config.map_name)
    return config, grid


def _clock(now: Optional[float]) -> int:
    return int(time.time() if now is None else now)


def _finish(state: GameState, grid: GridMap, config: EngineConfig) -> TurnResult:
    state = quantize(state)
    token = encode(state)
    return TurnResult(state=state, frame=render_frame(state, grid, config), token=token)


def initial_state(grid: GridMap, config: EngineConfig, now: Optional[float] = None) -> GameState:
    sx, sy = grid.player_start
    slots: List[Enemy] = [
        Enemy(x=ex, y=ey, health=config.enemy_health, active=True)
        for ex, ey in grid.enemy_starts[:config.enemy_count]
    ]
    slots += [EMPTY_SLOT] * (config.enemy_count - len(slots))
    return GameState(
        player=Player(x=sx + 0.5, y=sy + 0.5, angle=0.0, health=config.player_health),
        enemies=tuple(slots),
        status=Status.ACTIVE,
        timestamp=_clock(now),
        message=WELCOME,
    )


def new_game(config: Optional[EngineConfig] = None, grid: Optional[GridMap] = None,
             now: Optional[float] = None) -> TurnResult:
    config, grid = _resolve(config, grid)
    state = initial_state(grid, config, now)
    logger.info("new game on map %r with %d enemy slots", grid.name, len(state.enemies))
    return _finish(state, grid, config)


def load_state(token: str, grid: GridMap, config: EngineConfig) -> GameState:
    """Decode a token and check it against the map it claims to be played on."""
    state = decode(token, config.enemy_count)
    p = state.player
    if not can_occupy(grid, p.x, p.y):
        raise DecodeError(f"player position ({p.x}, {p.y}) is not walkable")
    for i, e in enumerate(state.enemies):
        if e.active and not tile_open(grid, e.x, e.y):
            raise DecodeError(f"enemy {i} is off the floor at ({e.x}, {e.y})")
    return state


def _terminal_message(status: Status) -> str:
    return WON_MESSAGE if status is Status.WON else LOST_MESSAGE


def step(state: GameState, action: Union[Action, str, None], grid: GridMap,
         config: EngineConfig, now: Optional[float] = None) -> TurnResult:
    """Advance a decoded state by one action."""
    stamp = max(state.timestamp, _clock(now))
    if state.terminal:
        return _finish(replace(state, timestamp=stamp, message=_terminal_message(state.status)),
                       grid, config)

    act = action if isinstance(action, Action) else Action.parse(action)
    if act is None:
        return _finish(replace(state, timestamp=stamp, message='Nothing happens'), grid, config)

    state = replace(state, timestamp=stamp)
    notes: List[str] = []

    state = replace(state, player=movement.apply_action(state.player, act, grid, config))
    if act is Action.SHOOT:
        state, shot = shoot(state, grid, config)
        notes.append(shot.message)
    if act.is_toggle:
        it = state.player.intents
        notes.append(
            f"Walking {'on' if it.forward else 'off'}, turning "
            f"{'left' if it.turn_left else 'right' if it.turn_right else 'off'}."
        )
    else:
        state = replace(state, player=movement.apply_intents(state.player, act, grid, config))

    if state.status is Status.ACTIVE:
        state, ai_notes = run_enemy_turn(state, grid, config)
        notes.extend(ai_notes)

    if state.status is Status.ACTIVE and grid.tile_at(state.player.x, state.player.y) is Tile.EXIT:
        state = replace(state, status=Status.WON)
        notes.append('You found the exit!')

    if state.terminal:
        logger.info("game over: %s", state.status.value)
    return _finish(replace(state, message=' '.join(n for n in notes if n)), grid, config)


def apply_action(token: str, action: Union[Action, str, None],
                 config: Optional[EngineConfig] = None, grid: Optional[GridMap] = None,
                 now: Optional[float] = None) -> TurnResult:
    """Decode ``token``, apply ``action`` and return the next turn.

    Raises DecodeError for corrupted tokens and EncodeOverflow if the next
    state cannot be stored; in both cases the game does not advance.
    """
    config, grid = _resolve(config, grid)
    state = load_state(token, grid, config)
    return step(state, action, grid, config, now)
