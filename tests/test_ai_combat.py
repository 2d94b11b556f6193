from __future__ import annotations

import math

from dungeon.collision import tile_open
from dungeon.combat import angle_diff, pick_target, shoot
from dungeon.config import EngineConfig
from dungeon.enemy_ai import WorldView, chase_ai, run_enemy_turn
from dungeon.raycast import cast_columns
from dungeon.sprites import project_enemies
from dungeon.state import Enemy, GameState, Player, Status
from world.types import GridMap


def _chebyshev(ex: int, ey: int, px: float, py: float) -> int:
    return max(abs(ex - int(px)), abs(ey - int(py)))


def test_chase_never_increases_chebyshev_distance(room: GridMap, config: EngineConfig) -> None:
    px, py = 5.5, 4.5
    world: WorldView = {"grid": room, "player": (px, py), "occupied": set(), "config": config}
    for ey in range(room.height):
        for ex in range(room.width):
            if not tile_open(room, ex, ey):
                continue
            enemy = Enemy(ex, ey, 30, True)
            intent = chase_ai(0, enemy, world)
            if intent["kind"] != "move":
                continue
            nx, ny = ex + intent["dx"], ey + intent["dy"]
            assert tile_open(room, nx, ny)
            assert _chebyshev(nx, ny, px, py) <= _chebyshev(ex, ey, px, py)


def test_chase_prefers_dominant_axis_then_falls_back(default_map: GridMap, config: EngineConfig) -> None:
    # Player due west with a wall in between and no secondary axis: wait
    world: WorldView = {"grid": default_map, "player": (1.5, 3.5), "occupied": set(), "config": config}
    assert chase_ai(0, Enemy(3, 3, 30, True), world)["kind"] == "idle"

    # West is dominant but (3,2) is wall, so step north instead
    world["player"] = (1.5, 1.5)
    intent = chase_ai(0, Enemy(4, 2, 30, True), world)
    assert intent["kind"] == "move"
    assert (intent["dx"], intent["dy"]) == (0, -1)


def test_enemies_idle_outside_sight(room: GridMap) -> None:
    config = EngineConfig(sight_range=2.0)
    world: WorldView = {"grid": room, "player": (1.5, 1.5), "occupied": set(), "config": config}
    assert chase_ai(0, Enemy(8, 6, 30, True), world)["kind"] == "idle"


def test_enemies_do_not_stack(corridor: GridMap, config: EngineConfig) -> None:
    state = GameState(
        player=Player(1.5, 4.5, 0.0, 100),
        enemies=(Enemy(6, 4, 30, True), Enemy(5, 4, 30, True)),
    )
    state, notes = run_enemy_turn(state, corridor, config)
    assert notes == []
    # Slot 0 is boxed in by slot 1, which only moves afterwards
    assert [(e.x, e.y) for e in state.enemies] == [(6, 4), (4, 4)]


def test_contact_damage_kills_and_stops_turn(default_map: GridMap, config: EngineConfig) -> None:
    state = GameState(
        player=Player(1.5, 1.5, 0.0, config.contact_damage),
        enemies=(Enemy(2, 1, 30, True), Enemy(1, 2, 30, True)),
    )
    state, notes = run_enemy_turn(state, default_map, config)
    assert state.status is Status.LOST
    assert state.player.health == 0
    assert sum("claws" in n for n in notes) == 1
    assert notes[-1] == "You died."


def test_shot_at_enemy_three_tiles_ahead(corridor: GridMap) -> None:
    config = EngineConfig(enemy_count=1)
    state = GameState(player=Player(4.5, 4.5, 0.0, 100), enemies=(Enemy(7, 4, 30, True),))

    state, shot = shoot(state, corridor, config)
    assert shot.slot == 0
    assert state.enemies[0].health == 30 - config.shot_damage
    assert state.enemies[0].active
    assert shot.message == f"Hit! (-{config.shot_damage})"

    state, shot = shoot(state, corridor, config)
    assert shot.killed
    assert state.enemies[0] == Enemy(7, 4, 0, False)
    assert "eliminated" in shot.message
    assert state.status is Status.WON


def test_shot_misses_outside_cone_range_or_sight(corridor: GridMap, config: EngineConfig) -> None:
    enemy = Enemy(7, 4, 30, True)
    aside = GameState(player=Player(4.5, 4.5, math.pi / 2, 100), enemies=(enemy,))
    assert pick_target(aside, corridor, config) is None

    short = EngineConfig(shot_range=2.0)
    ahead = GameState(player=Player(4.5, 4.5, 0.0, 100), enemies=(enemy,))
    assert pick_target(ahead, corridor, short) is None

    blocked = GridMap.from_layout("blocked", "############\n#P.#.E.....#\n############")
    behind_wall = GameState(player=Player(1.5, 1.5, 0.0, 100), enemies=(Enemy(5, 1, 30, True),))
    after, shot = shoot(behind_wall, blocked, config)
    assert shot.slot is None
    assert shot.message == "Your shot hits nothing."
    assert after == behind_wall


def test_shot_hits_nearest(room: GridMap, config: EngineConfig) -> None:
    state = GameState(
        player=Player(3.5, 4.5, 0.0, 100),
        enemies=(Enemy(9, 4, 30, True), Enemy(6, 4, 30, True)),
    )
    assert pick_target(state, room, config) == 1


def test_angle_diff_wraps() -> None:
    assert abs(angle_diff(0.05, 2 * math.pi - 0.05) - 0.1) < 1e-12
    assert abs(angle_diff(2 * math.pi - 0.05, 0.05) + 0.1) < 1e-12


def test_enemy_never_steps_onto_exit(config: EngineConfig) -> None:
    grid = GridMap.from_layout("gate", "######\n#P.XE#\n######")
    world: WorldView = {"grid": grid, "player": (1.5, 1.5), "occupied": set(), "config": config}
    assert chase_ai(0, Enemy(4, 1, 30, True), world)["kind"] == "idle"

    state = GameState(player=Player(1.5, 1.5, 0.0, 100), enemies=(Enemy(4, 1, 30, True),))
    after, _notes = run_enemy_turn(state, grid, config)
    assert after.enemies[0] == Enemy(4, 1, 30, True)


def test_enemy_beside_exit_can_be_seen_and_shot(default_map: GridMap, config: EngineConfig) -> None:
    # Facing south down the east corridor; (10,7) below the enemy is the exit
    angle = math.pi / 2
    state = GameState(player=Player(10.5, 4.5, angle, 100), enemies=(Enemy(10, 6, 30, True),))
    assert pick_target(state, default_map, config) == 0

    cols = cast_columns(default_map, 10.5, 4.5, angle, config)
    hits = project_enemies(state.enemies, 10.5, 4.5, angle, cols, config)
    assert [h.slot for h in hits] == [0]
