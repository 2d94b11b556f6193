# RayCrawler/dungeon/config.py
from __future__ import annotations
import json
import math
import os
from dataclasses import dataclass
from typing import Any, Dict

from .errors import ConfigError

_base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

_game_config: Dict[str, Any] = {}

# Codec budget limits; kept here so config validation and codec agree
MAX_ENEMIES = 3
MAX_PLAYER_HEALTH = 999
MAX_ENEMY_HEALTH = 99

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'view': {
        'width': 31,
        'height': 11,
        'fov_degrees': 66.0,
        'max_depth': 16.0,
    },
    'player': {
        'health': 100,
        'move_speed': 0.5,
        'backward_factor': 0.5,
        'turn_step_degrees': 22.5,
        'radius': 0.2,
    },
    'enemies': {
        'count': 3,
        'health': 30,
        'contact_damage': 10,
        'contact_range': 1.2,
        'sight_range': 8.0,
    },
    'combat': {
        'shot_damage': 15,
        'shot_range': 8.0,
        'shot_tolerance_degrees': 8.0,
    },
    'session': {
        'idle_timeout_seconds': 900,
    },
    'map': {
        'name': 'default',
    },
}


def config_dir() -> str:
    return os.environ.get('DUNGEON_CONFIG_DIR') or os.path.join(_base_dir, 'config')


def config_path() -> str:
    return os.path.join(config_dir(), 'game_config.json')


def _load_json(path: str, default):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError):
        return default


def with_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``raw`` with every section and key filled in."""
    cfg: Dict[str, Any] = dict(raw) if isinstance(raw, dict) else {}
    for section, values in DEFAULTS.items():
        sec = cfg.get(section)
        if not isinstance(sec, dict):
            sec = {}
        sec = dict(sec)
        for k, v in values.items():
            sec.setdefault(k, v)
        cfg[section] = sec
    return cfg


def reload_all() -> None:
    global _game_config
    _game_config = with_defaults(_load_json(config_path(), {}))


def get_game_config() -> Dict[str, Any]:
    if not _game_config:
        reload_all()
    return _game_config


@dataclass(frozen=True)
class EngineConfig:
    """Tuning values for one game instance. Angles are in radians."""
    view_width: int = 31
    view_height: int = 11
    fov: float = math.radians(66.0)
    max_depth: float = 16.0
    player_health: int = 100
    move_speed: float = 0.5
    backward_factor: float = 0.5
    turn_step: float = math.radians(22.5)
    player_radius: float = 0.2
    enemy_count: int = 3
    enemy_health: int = 30
    contact_damage: int = 10
    contact_range: float = 1.2
    sight_range: float = 8.0
    shot_damage: int = 15
    shot_range: float = 8.0
    shot_tolerance: float = math.radians(8.0)
    idle_timeout: int = 900
    map_name: str = 'default'

    def __post_init__(self):
        if self.view_width < 3 or self.view_width % 2 == 0:
            raise ConfigError(f"view width must be odd and >= 3, got {self.view_width}")
        if self.view_height < 3:
            raise ConfigError(f"view height must be >= 3, got {self.view_height}")
        if not 0 < self.fov < math.pi:
            raise ConfigError("field of view must be between 0 and 180 degrees")
        if not 0 <= self.enemy_count <= MAX_ENEMIES:
            raise ConfigError(f"enemy count must be 0..{MAX_ENEMIES}, got {self.enemy_count}")
        if not 1 <= self.player_health <= MAX_PLAYER_HEALTH:
            raise ConfigError(f"player health must be 1..{MAX_PLAYER_HEALTH}")
        if not 1 <= self.enemy_health <= MAX_ENEMY_HEALTH:
            raise ConfigError(f"enemy health must be 1..{MAX_ENEMY_HEALTH}")
        if self.move_speed > 1.0:
            raise ConfigError("move speed must not exceed one tile per turn")
        if not 0 <= self.player_radius < 0.5:
            raise ConfigError("player radius must be in [0, 0.5)")
        for name in ('max_depth', 'move_speed', 'backward_factor', 'turn_step',
                     'contact_range', 'sight_range', 'shot_range', 'shot_tolerance'):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        for name in ('contact_damage', 'shot_damage', 'idle_timeout'):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'EngineConfig':
        cfg = with_defaults(raw)
        view, player, enemies = cfg['view'], cfg['player'], cfg['enemies']
        combat, session = cfg['combat'], cfg['session']
        try:
            values = dict(
                view_width=int(view['width']),
                view_height=int(view['height']),
                fov=math.radians(float(view['fov_degrees'])),
                max_depth=float(view['max_depth']),
                player_health=int(player['health']),
                move_speed=float(player['move_speed']),
                backward_factor=float(player['backward_factor']),
                turn_step=math.radians(float(player['turn_step_degrees'])),
                player_radius=float(player['radius']),
                enemy_count=int(enemies['count']),
                enemy_health=int(enemies['health']),
                contact_damage=int(enemies['contact_damage']),
                contact_range=float(enemies['contact_range']),
                sight_range=float(enemies['sight_range']),
                shot_damage=int(combat['shot_damage']),
                shot_range=float(combat['shot_range']),
                shot_tolerance=math.radians(float(combat['shot_tolerance_degrees'])),
                idle_timeout=int(session['idle_timeout_seconds']),
                map_name=str(cfg['map']['name']),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid config value: {e}") from e
        return cls(**values)


def get_engine_config() -> EngineConfig:
    return EngineConfig.from_dict(get_game_config())
