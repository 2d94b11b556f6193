"""Fixed-grammar state token.

A token is the whole GameState as ASCII fields joined by ``DELIMITER``::

    px|py|angle|hp|fwd|left|right|<ex|ey|ehp|active> * N|status|ts

Positions carry two decimals, the angle four, flags are ``0``/``1``, the
status is ``0`` active / ``1`` won / ``2`` lost and the timestamp is epoch
seconds in base 36. Every enemy slot is always present, so a token is only
valid for one enemy count; a slot that never held an enemy is ``0|0|999|0``.
The status message is not stored.

The token rides inside a component ``custom_id`` of the form
``dg:<action>:<token>``; the whole id must fit ``MAX_TOKEN_CHARS``.
"""
from __future__ import annotations
from dataclasses import replace
import math
import re
from typing import Callable, List, Tuple, TypeVar

from .config import MAX_ENEMIES
from .errors import DecodeError, EncodeOverflow
from .movement import TWO_PI
from .state import EMPTY_HEALTH, Action, Enemy, GameState, Intents, Player, Status

T = TypeVar('T')

DELIMITER = '|'
MAX_TOKEN_CHARS = 100
CUSTOM_ID_PREFIX = 'dg'
CUSTOM_ID_SEPARATOR = ':'
# Longest "dg:<action>:" a caller will put in front of a token
MAX_PREFIX_LEN = len(CUSTOM_ID_PREFIX) + max(len(a.value) for a in Action) + 2

POSITION_PLACES = 2
ANGLE_PLACES = 4
PLAYER_FIELDS = 7
ENEMY_FIELDS = 4
TRAILER_FIELDS = 2

_STATUS_CODES = {Status.ACTIVE: '0', Status.WON: '1', Status.LOST: '2'}
_STATUS_BY_CODE = {v: k for k, v in _STATUS_CODES.items()}

_POSITION_RE = re.compile(r'\d{1,2}\.\d{2}')
_ANGLE_RE = re.compile(r'\d\.\d{4}')
_INT_RE = re.compile(r'\d{1,3}')
_TILE_RE = re.compile(r'\d{1,2}')
_FLAG_RE = re.compile(r'[01]')
_STATUS_RE = re.compile(r'[012]')
_STAMP_RE = re.compile(r'[0-9a-z]{1,7}')
_B36 = '0123456789abcdefghijklmnopqrstuvwxyz'


def field_count(n_enemies: int) -> int:
    return PLAYER_FIELDS + ENEMY_FIELDS * n_enemies + TRAILER_FIELDS


def truncate(v: float, places: int) -> float:
    """Cut ``v`` down to ``places`` decimals without rounding up.

    Truncation never moves a coordinate across a tile edge, which rounding
    could do.
    """
    scale = 10 ** places
    return math.floor(v * scale + 1e-9) / scale


def to_base36(n: int) -> str:
    if n < 0:
        raise ValueError('timestamp must not be negative')
    if n == 0:
        return '0'
    out: List[str] = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return ''.join(reversed(out))


def _flag(b: bool) -> str:
    return '1' if b else '0'


def quantize(state: GameState) -> GameState:
    """Drop precision the token cannot carry, so what is shown is what is stored."""
    p = state.player
    angle = truncate(p.angle, ANGLE_PLACES)
    if angle >= TWO_PI:
        angle = 0.0
    return replace(
        state,
        player=replace(
            p,
            x=truncate(p.x, POSITION_PLACES),
            y=truncate(p.y, POSITION_PLACES),
            angle=angle,
        ),
        timestamp=int(state.timestamp),
    )


def _check_widths(state: GameState) -> None:
    p = state.player
    if not (0 <= p.x < 100 and 0 <= p.y < 100):
        raise EncodeOverflow(f"player position ({p.x}, {p.y}) does not fit two digits")
    if not 0 <= p.health <= 999:
        raise EncodeOverflow(f"player health {p.health} does not fit three digits")
    for e in state.enemies:
        if not (0 <= e.x < 100 and 0 <= e.y < 100 and 0 <= e.health <= 999):
            raise EncodeOverflow(f"enemy {e} does not fit the token fields")


def encode(state: GameState) -> str:
    """Serialize a state. Raises EncodeOverflow rather than truncating."""
    p = state.player
    _check_widths(state)
    fields = [
        f"{truncate(p.x, POSITION_PLACES):.{POSITION_PLACES}f}",
        f"{truncate(p.y, POSITION_PLACES):.{POSITION_PLACES}f}",
        f"{truncate(p.angle, ANGLE_PLACES):.{ANGLE_PLACES}f}",
        str(int(p.health)),
        _flag(p.intents.forward),
        _flag(p.intents.turn_left),
        _flag(p.intents.turn_right),
    ]
    for e in state.enemies:
        fields += [str(int(e.x)), str(int(e.y)), str(int(e.health)), _flag(e.active)]
    fields += [_STATUS_CODES[state.status], to_base36(int(state.timestamp))]
    token = DELIMITER.join(fields)
    if len(token) + MAX_PREFIX_LEN > MAX_TOKEN_CHARS:
        raise EncodeOverflow(
            f"token is {len(token)} chars; with a {MAX_PREFIX_LEN}-char prefix "
            f"it exceeds {MAX_TOKEN_CHARS}"
        )
    return token


class _Fields:
    """Positional reader over split token fields."""

    def __init__(self, parts: List[str]):
        self.parts = parts
        self.pos = 0

    def take(self, pattern: 're.Pattern[str]', convert: Callable[[str], T], what: str) -> T:
        raw = self.parts[self.pos]
        self.pos += 1
        if not pattern.fullmatch(raw):
            raise DecodeError(f"field {self.pos} ({what}) is malformed: {raw!r}")
        value = convert(raw)
        if isinstance(value, float) and not math.isfinite(value):
            raise DecodeError(f"field {self.pos} ({what}) is not a number")
        return value


def decode(token: str, n_enemies: int) -> GameState:
    """Parse a token for a game with exactly ``n_enemies`` slots.

    Fails closed: any problem raises DecodeError and nothing is returned.
    """
    if not isinstance(token, str) or not token:
        raise DecodeError('empty token')
    if not 0 <= n_enemies <= MAX_ENEMIES:
        raise DecodeError(f"unsupported enemy count {n_enemies}")
    if len(token) > MAX_TOKEN_CHARS:
        raise DecodeError('token too long')
    parts = token.split(DELIMITER)
    expected = field_count(n_enemies)
    if len(parts) != expected:
        extra = len(parts) - PLAYER_FIELDS - TRAILER_FIELDS
        if extra >= 0 and extra % ENEMY_FIELDS == 0:
            raise DecodeError(f"token has {extra // ENEMY_FIELDS} enemy slots, expected {n_enemies}")
        raise DecodeError(f"token has {len(parts)} fields, expected {expected}")

    f = _Fields(parts)
    x = f.take(_POSITION_RE, float, 'player x')
    y = f.take(_POSITION_RE, float, 'player y')
    angle = f.take(_ANGLE_RE, float, 'angle')
    if angle >= TWO_PI:
        raise DecodeError(f"angle {angle} out of range")
    health = f.take(_INT_RE, int, 'health')
    intents = Intents(
        forward=f.take(_FLAG_RE, lambda s: s == '1', 'forward intent'),
        turn_left=f.take(_FLAG_RE, lambda s: s == '1', 'turn-left intent'),
        turn_right=f.take(_FLAG_RE, lambda s: s == '1', 'turn-right intent'),
    )
    if intents.turn_left and intents.turn_right:
        raise DecodeError('both turn intents are set')

    enemies: List[Enemy] = []
    for i in range(n_enemies):
        ex = f.take(_TILE_RE, int, f"enemy {i} x")
        ey = f.take(_TILE_RE, int, f"enemy {i} y")
        ehp = f.take(_INT_RE, int, f"enemy {i} health")
        active = f.take(_FLAG_RE, lambda s: s == '1', f"enemy {i} active")
        if active:
            consistent = 0 < ehp < EMPTY_HEALTH
        else:
            # defeated remains, or the untouched empty slot
            consistent = ehp == 0 or (ehp == EMPTY_HEALTH and ex == 0 and ey == 0)
        if not consistent:
            raise DecodeError(f"enemy {i} health {ehp} contradicts active={active}")
        enemies.append(Enemy(x=ex, y=ey, health=ehp, active=active))

    status = f.take(_STATUS_RE, _STATUS_BY_CODE.__getitem__, 'status')
    timestamp = f.take(_STAMP_RE, lambda s: int(s, 36), 'timestamp')

    return GameState(
        player=Player(x=x, y=y, angle=angle, health=health, intents=intents),
        enemies=tuple(enemies),
        status=status,
        timestamp=timestamp,
    )


def custom_id(action: Action, token: str) -> str:
    return CUSTOM_ID_SEPARATOR.join((CUSTOM_ID_PREFIX, action.value, token))


def parse_custom_id(cid: str) -> Tuple[str, str]:
    """Split ``dg:<action>:<token>`` into the raw action name and the token."""
    if not isinstance(cid, str):
        raise DecodeError('component id missing')
    parts = cid.split(CUSTOM_ID_SEPARATOR, 2)
    if len(parts) != 3 or parts[0] != CUSTOM_ID_PREFIX:
        raise DecodeError(f"not a dungeon component id: {cid[:20]!r}")
    return parts[1], parts[2]
