from __future__ import annotations

import pytest

from dungeon import config as config_module
from dungeon.config import EngineConfig
from world.provider import get_map
from world.types import GridMap

# 9 rows x 12 columns: player mid-corridor, one enemy three tiles east
CORRIDOR = """
    ############
    ############
    ############
    ############
    #...P..E...#
    ############
    ############
    ############
    ############
"""

# Open room with no spawns besides the player
ROOM = """
    ############
    #..........#
    #..........#
    #..........#
    #....P.....#
    #..........#
    #..........#
    #..........#
    ############
"""


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Point the config loader at an empty temp dir so every test sees defaults."""
    monkeypatch.setenv("DUNGEON_CONFIG_DIR", str(tmp_path))
    config_module.reload_all()
    yield
    monkeypatch.undo()
    config_module.reload_all()


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def default_map() -> GridMap:
    return get_map("default")


@pytest.fixture
def training_map() -> GridMap:
    return get_map("training")


@pytest.fixture
def corridor() -> GridMap:
    return GridMap.from_layout("corridor", CORRIDOR)


@pytest.fixture
def room() -> GridMap:
    return GridMap.from_layout("room", ROOM)


@pytest.fixture
def client():
    from dungeon.server import app

    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


@pytest.fixture
def socket_client():
    from dungeon.server import app, socketio

    sc = socketio.test_client(app)
    yield sc
    if sc.is_connected():
        sc.disconnect()
