from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class Status(Enum):
    ACTIVE = 'active'
    WON = 'won'
    LOST = 'lost'

    @property
    def terminal(self) -> bool:
        return self is not Status.ACTIVE


class Action(Enum):
    TURN_LEFT = 'turn_left'
    TURN_RIGHT = 'turn_right'
    MOVE_FORWARD = 'move_forward'
    MOVE_BACKWARD = 'move_backward'
    SHOOT = 'shoot'
    WAIT = 'wait'
    TOGGLE_FORWARD = 'toggle_forward'
    TOGGLE_TURN_LEFT = 'toggle_turn_left'
    TOGGLE_TURN_RIGHT = 'toggle_turn_right'

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional['Action']:
        """Map a caller-supplied action name to an Action, or None if unknown."""
        if not isinstance(name, str):
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None

    @property
    def is_toggle(self) -> bool:
        return self in (Action.TOGGLE_FORWARD, Action.TOGGLE_TURN_LEFT, Action.TOGGLE_TURN_RIGHT)


@dataclass(frozen=True)
class Intents:
    # Held movement, replayed every turn until toggled off
    forward: bool = False
    turn_left: bool = False
    turn_right: bool = False


@dataclass(frozen=True)
class Player:
    x: float
    y: float
    angle: float
    health: int
    intents: Intents = field(default_factory=Intents)


@dataclass(frozen=True)
class Enemy:
    """One fixed enemy slot. Positions are whole tiles; sprites sit at the centre."""
    x: int
    y: int
    health: int
    active: bool

    @property
    def is_empty(self) -> bool:
        return not self.active and self.health == EMPTY_HEALTH

    @property
    def cx(self) -> float:
        return self.x + 0.5

    @property
    def cy(self) -> float:
        return self.y + 0.5


# Slots that never held an enemy carry a health no live or defeated enemy
# can have (live enemies top out at 99, defeated ones sit at 0)
EMPTY_HEALTH = 999
EMPTY_SLOT = Enemy(x=0, y=0, health=EMPTY_HEALTH, active=False)


@dataclass(frozen=True)
class GameState:
    player: Player
    enemies: Tuple[Enemy, ...]
    status: Status = Status.ACTIVE
    timestamp: int = 0
    # Display only; never part of the token
    message: str = field(default='', compare=False)

    @property
    def terminal(self) -> bool:
        return self.status.terminal

    def active_enemies(self) -> Tuple[Enemy, ...]:
        return tuple(e for e in self.enemies if e.active)

    def with_player(self, **changes) -> 'GameState':
        return replace(self, player=replace(self.player, **changes))

    def with_enemy(self, index: int, enemy: Enemy) -> 'GameState':
        enemies = list(self.enemies)
        enemies[index] = enemy
        return replace(self, enemies=tuple(enemies))
