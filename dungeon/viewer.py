# RayCrawler/dungeon/viewer.py
"""Local pygame window that plays the game the same way remote clients do:
every key press sends the current token plus an action through the engine
and keeps only the token that comes back."""
from __future__ import annotations
import logging
import time
from typing import Dict, Optional

import pygame

from world.provider import get_map
from world.types import GridMap
from . import engine
from .config import EngineConfig, get_engine_config
from .errors import DungeonError
from .state import Action

logger = logging.getLogger(__name__)

SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 720
BG = (12, 12, 16)
FG = (220, 220, 210)
DIM = (140, 140, 140)
ERR = (230, 90, 90)
# Held intents replay on an automatic "wait" turn at this pace
HOLD_TICK_SECONDS = 0.4

KEY_ACTIONS: Dict[int, Action] = {
    pygame.K_LEFT: Action.TURN_LEFT,
    pygame.K_RIGHT: Action.TURN_RIGHT,
    pygame.K_UP: Action.MOVE_FORWARD,
    pygame.K_DOWN: Action.MOVE_BACKWARD,
    pygame.K_SPACE: Action.SHOOT,
    pygame.K_PERIOD: Action.WAIT,
    pygame.K_w: Action.TOGGLE_FORWARD,
    pygame.K_a: Action.TOGGLE_TURN_LEFT,
    pygame.K_d: Action.TOGGLE_TURN_RIGHT,
}

HELP = 'Arrows: move/turn  Space: shoot  .: wait  W/A/D: hold  N: new game  Esc: quit'


def _holding(result: engine.TurnResult) -> bool:
    it = result.state.player.intents
    return not result.state.terminal and (it.forward or it.turn_left or it.turn_right)


def run_viewer(screen: pygame.Surface, qr_surface: Optional[pygame.Surface] = None,
               url: str = '', config: Optional[EngineConfig] = None,
               grid: Optional[GridMap] = None) -> engine.TurnResult:
    """Loop until Esc or window close; returns the last turn shown."""
    config = config or get_engine_config()
    grid = grid or get_map(config.map_name)
    clock = pygame.time.Clock()
    mono = pygame.font.SysFont('dejavusansmono,menlo,consolas,couriernew,monospace', 24)
    small = pygame.font.SysFont(None, 24)

    result = engine.new_game(config, grid)
    last_turn = time.time()
    error = ''
    running = True
    while running:
        action: Optional[Action] = None
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_n:
                    result = engine.new_game(config, grid)
                    error = ''
                elif event.key in KEY_ACTIONS:
                    action = KEY_ACTIONS[event.key]

        if action is None and _holding(result) and time.time() - last_turn >= HOLD_TICK_SECONDS:
            action = Action.WAIT
        if action is not None:
            try:
                result = engine.apply_action(result.token, action, config, grid)
                error = ''
            except DungeonError as e:
                logger.warning("turn rejected: %s", e)
                error = str(e)
            last_turn = time.time()

        screen.fill(BG)
        y = 24
        for row in result.frame.rows:
            screen.blit(mono.render(row, True, FG), (24, y))
            y += mono.get_linesize()
        y += 8
        screen.blit(small.render(result.frame.status, True, FG), (24, y))
        y += 28
        if error:
            screen.blit(small.render(error, True, ERR), (24, y))
        screen.blit(small.render(HELP, True, DIM), (24, SCREEN_HEIGHT - 36))
        if qr_surface is not None:
            qx = SCREEN_WIDTH - qr_surface.get_width() - 24
            screen.blit(qr_surface, (qx, 24))
            if url:
                screen.blit(small.render(url, True, DIM), (qx, 32 + qr_surface.get_height()))
        pygame.display.flip()
        clock.tick(30)
    return result
