from __future__ import annotations

import pytest

from dungeon import codec
from dungeon.errors import DecodeError, EncodeOverflow
from dungeon.state import EMPTY_SLOT, Action, Enemy, GameState, Intents, Player, Status


def _state(**overrides) -> GameState:
    base = dict(
        player=Player(3.75, 1.5, 5.8905, 85, Intents(forward=True, turn_left=True)),
        enemies=(Enemy(3, 3, 30, True), Enemy(8, 4, 0, False), EMPTY_SLOT),
        status=Status.ACTIVE,
        timestamp=1_760_000_000,
    )
    base.update(overrides)
    return GameState(**base)


def _fields(state: GameState = None) -> list:
    return codec.encode(state or _state()).split(codec.DELIMITER)


@pytest.mark.parametrize(
    "state",
    [
        _state(),
        _state(status=Status.WON),
        _state(status=Status.LOST, player=Player(1.5, 1.5, 0.0, 0)),
        _state(enemies=(EMPTY_SLOT, EMPTY_SLOT, EMPTY_SLOT), timestamp=0),
    ],
)
def test_round_trip(state: GameState) -> None:
    q = codec.quantize(state)
    assert codec.decode(codec.encode(q), 3) == q


def test_round_trip_truncates_to_declared_precision() -> None:
    s = _state(player=Player(3.789, 1.999, 1.23456789, 85))
    back = codec.decode(codec.encode(s), 3)
    assert back.player.x == 3.78
    assert back.player.y == 1.99
    assert back.player.angle == 1.2345


def test_message_is_not_stored() -> None:
    s = _state(message="Hit! (-15)")
    back = codec.decode(codec.encode(s), 3)
    assert back.message == ""
    assert back == codec.quantize(s)


def test_token_layout() -> None:
    fields = _fields()
    assert len(fields) == codec.field_count(3) == 21
    assert fields[:7] == ["3.75", "1.50", "5.8905", "85", "1", "1", "0"]
    assert fields[7:11] == ["3", "3", "30", "1"]
    assert fields[15:19] == ["0", "0", "999", "0"]
    assert fields[19] == "0"
    assert int(fields[20], 36) == 1_760_000_000


def test_worst_case_fits_with_longest_prefix() -> None:
    assert codec.MAX_PREFIX_LEN == len("dg:toggle_turn_right:")
    worst = GameState(
        player=Player(99.99, 99.99, 6.2831, 999, Intents(True, True, False)),
        enemies=(Enemy(99, 99, 99, True),) * codec.MAX_ENEMIES,
        status=Status.LOST,
        timestamp=36 ** 7 - 1,
    )
    token = codec.encode(worst)
    assert len(token) + codec.MAX_PREFIX_LEN <= codec.MAX_TOKEN_CHARS
    for action in Action:
        assert len(codec.custom_id(action, token)) <= codec.MAX_TOKEN_CHARS


def test_overflow_is_reported_not_truncated() -> None:
    too_many = _state(enemies=(Enemy(99, 99, 99, True),) * 4, timestamp=36 ** 7 - 1,
                      player=Player(99.99, 99.99, 6.2831, 999))
    with pytest.raises(EncodeOverflow):
        codec.encode(too_many)
    with pytest.raises(EncodeOverflow):
        codec.encode(_state(player=Player(100.5, 1.5, 0.0, 100)))


def _mutated(index: int, value: str) -> str:
    fields = _fields()
    fields[index] = value
    return codec.DELIMITER.join(fields)


@pytest.mark.parametrize(
    "token",
    [
        "",
        "garbage",
        _mutated(0, "nan"),
        _mutated(1, "inf"),
        _mutated(2, "7.0000"),
        _mutated(3, "-5"),
        _mutated(4, "2"),
        _mutated(6, "1"),           # both turn intents set
        _mutated(9, "0"),           # active enemy with no health
        _mutated(9, "999"),         # active enemy carrying the empty-slot health
        _mutated(13, "999"),        # empty-slot health away from the origin
        _mutated(13, "7"),          # inactive enemy with health left
        _mutated(19, "3"),
        _mutated(20, "ZZ"),
        "x" * (codec.MAX_TOKEN_CHARS + 1),
    ],
)
def test_decode_fails_closed(token: str) -> None:
    with pytest.raises(DecodeError):
        codec.decode(token, 3)


def test_decode_checks_enemy_slot_count() -> None:
    two = codec.encode(_state(enemies=(Enemy(3, 3, 30, True), EMPTY_SLOT)))
    with pytest.raises(DecodeError, match="2 enemy slots, expected 3"):
        codec.decode(two, 3)
    assert len(codec.decode(two, 2).enemies) == 2


def test_decode_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        codec.decode("1|2|3", 3)


def test_custom_id_round_trip() -> None:
    token = codec.encode(_state())
    cid = codec.custom_id(Action.SHOOT, token)
    assert cid.startswith("dg:shoot:")
    assert codec.parse_custom_id(cid) == ("shoot", token)


@pytest.mark.parametrize("cid", [None, "", "dg:shoot", "xx:shoot:token"])
def test_bad_custom_id(cid) -> None:
    with pytest.raises(DecodeError):
        codec.parse_custom_id(cid)


def test_helpers() -> None:
    assert codec.truncate(1.999, 2) == 1.99
    assert codec.truncate(2.0, 2) == 2.0
    assert codec.truncate(0.29, 2) == 0.29
    assert codec.to_base36(0) == "0"
    assert codec.to_base36(35) == "z"
    assert codec.to_base36(36) == "10"


def test_enemy_defeated_at_origin_is_not_an_empty_slot() -> None:
    remains = Enemy(0, 0, 0, False)
    assert not remains.is_empty
    assert EMPTY_SLOT.is_empty
    s = _state(enemies=(remains, EMPTY_SLOT, EMPTY_SLOT))
    back = codec.decode(codec.encode(s), 3)
    assert back.enemies[0] == remains
    assert not back.enemies[0].is_empty
    assert back.enemies[1].is_empty
