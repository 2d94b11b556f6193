from __future__ import annotations
from typing import Dict, List

from world.types import GridMap

# Map layouts are constants shared by every client and server; the token
# never carries tiles, only the name of the map it was started on is implied
# by configuration.
#   '#' wall   '.' floor   'X' exit   'P' player start   'E' enemy start

DEFAULT_MAP_NAME = 'default'

_LAYOUTS: Dict[str, str] = {
    'default': """
        ############
        #P...#.....#
        #.##.#.###.#
        #.#E.....#.#
        #.#.###.E#.#
        #...#...##.#
        ###.#.#....#
        #E....#..#X#
        ############
    """,
    # Straight run to the exit with nothing in the way; handy for demos
    'training': """
        ############
        #..........#
        #.########.#
        #P........X#
        #.########.#
        #..........#
        ############
    """,
}

_built: Dict[str, GridMap] = {}


def register_map(name: str, layout: str) -> GridMap:
    """Add (or replace) a named layout and return the parsed map."""
    grid = GridMap.from_layout(name, layout)
    _LAYOUTS[name] = layout
    _built[name] = grid
    return grid


def get_map(name: str = DEFAULT_MAP_NAME) -> GridMap:
    grid = _built.get(name)
    if grid is None:
        if name not in _LAYOUTS:
            raise KeyError(f"unknown map {name!r}")
        grid = GridMap.from_layout(name, _LAYOUTS[name])
        _built[name] = grid
    return grid


def map_names() -> List[str]:
    return sorted(_LAYOUTS)


def reset() -> None:
    """For tests/dev only: drop parsed maps so layouts are parsed again."""
    _built.clear()
