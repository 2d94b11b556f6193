from __future__ import annotations

import json

import pytest

from dungeon.config import DEFAULTS, get_engine_config
from dungeon.utils import controller_url, generate_qr_surface, get_local_ip
from tools import config_editor
from tools.config_editor import FIELDS


def _form(**changes) -> dict:
    form = {
        f"{section}.{key}": str(DEFAULTS[section][key])
        for _title, fields in FIELDS
        for section, key, _label, _kind in fields
    }
    form["map.name"] = "default"
    form.update(changes)
    return form


@pytest.fixture
def editor():
    config_editor.app.config["TESTING"] = True
    with config_editor.app.test_client() as c:
        yield c


def test_editor_shows_defaults(editor, tmp_path) -> None:
    resp = editor.get("/")
    assert resp.status_code == 200
    assert str(tmp_path).encode() in resp.data
    assert b'name="view.width"' in resp.data


def test_editor_saves_and_backs_up(editor, tmp_path) -> None:
    resp = editor.post("/save", data=_form(**{"enemies.count": "2"}), follow_redirects=True)
    assert b"Saved config" in resp.data
    saved = json.loads((tmp_path / "game_config.json").read_text(encoding="utf-8"))
    assert saved["enemies"]["count"] == 2
    assert get_engine_config().enemy_count == 2

    editor.post("/save", data=_form(**{"enemies.count": "1"}), follow_redirects=True)
    assert list(tmp_path.glob("game_config.json.bak.*"))
    assert get_engine_config().enemy_count == 1


@pytest.mark.parametrize(
    "changes",
    [
        {"view.width": "30"},
        {"player.health": "lots"},
        {"map.name": "nowhere"},
    ],
)
def test_editor_rejects_invalid(editor, tmp_path, changes) -> None:
    resp = editor.post("/save", data=_form(**changes), follow_redirects=True)
    assert b"Error:" in resp.data
    assert not (tmp_path / "game_config.json").exists()


def test_local_ip_prefers_env(monkeypatch) -> None:
    monkeypatch.setenv("SERVER_IP", "10.1.2.3")
    assert get_local_ip() == "10.1.2.3"
    assert controller_url(5050) == "http://10.1.2.3:5050/controller"


def test_qr_surface_size() -> None:
    surface = generate_qr_surface("http://10.1.2.3:5050/controller", size=120)
    assert surface.get_size() == (120, 120)
