#!/usr/bin/env python3
"""Small web form for editing config/game_config.json.

Run from the project root with ``python -m tools.config_editor``.
"""
import json
import logging
import os
import shutil
import time
from pathlib import Path
from typing import Any, Dict, List, Tuple

from flask import Flask, flash, get_flashed_messages, redirect, render_template_string, request, url_for

from dungeon.config import EngineConfig, config_path, reload_all, with_defaults
from dungeon.errors import ConfigError
from world.provider import map_names

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("CONFIG_EDITOR_SECRET", "dev-secret")

# (section, key, label, kind) per form field, grouped into cards
FIELDS: List[Tuple[str, List[Tuple[str, str, str, str]]]] = [
    ("View", [
        ("view", "width", "Columns (odd)", "int"),
        ("view", "height", "Rows", "int"),
        ("view", "fov_degrees", "Field of view (deg)", "float"),
        ("view", "max_depth", "Max ray depth (tiles)", "float"),
    ]),
    ("Player", [
        ("player", "health", "Health", "int"),
        ("player", "move_speed", "Move per turn (tiles)", "float"),
        ("player", "backward_factor", "Backward speed factor", "float"),
        ("player", "turn_step_degrees", "Turn step (deg)", "float"),
        ("player", "radius", "Body radius (tiles)", "float"),
    ]),
    ("Enemies", [
        ("enemies", "count", "Count (0-3)", "int"),
        ("enemies", "health", "Health", "int"),
        ("enemies", "contact_damage", "Contact damage", "int"),
        ("enemies", "contact_range", "Contact range (tiles)", "float"),
        ("enemies", "sight_range", "Sight range (tiles)", "float"),
    ]),
    ("Combat", [
        ("combat", "shot_damage", "Shot damage", "int"),
        ("combat", "shot_range", "Shot range (tiles)", "float"),
        ("combat", "shot_tolerance_degrees", "Aim tolerance (deg)", "float"),
    ]),
    ("Session", [
        ("session", "idle_timeout_seconds", "Idle timeout (s, 0 = never)", "int"),
    ]),
]

TEMPLATE = """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>RayCrawler Config Editor</title>
    <style>
      body { font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif; margin: 24px; color: #111; }
      .card { border: 1px solid #ddd; border-radius: 8px; padding: 16px; margin: 12px 0; }
      .row { display: flex; flex-wrap: wrap; gap: 12px; }
      .col { flex: 1 1 220px; min-width: 220px; }
      label { display: block; font-weight: 600; margin-bottom: 6px; }
      input, select { width: 100%; padding: 8px; border: 1px solid #ccc; border-radius: 6px; }
      button, .btn { background: #0d6efd; color: white; border: 0; padding: 10px 14px; border-radius: 6px; cursor: pointer; text-decoration: none; }
      .btn.secondary { background: #6c757d; }
      .flash { padding: 10px 12px; border-radius: 6px; margin: 12px 0; }
      .flash.ok { background: #e7f7ec; color: #0f5132; border: 1px solid #badbcc; }
      .flash.err { background: #fdecea; color: #842029; border: 1px solid #f5c2c7; }
    </style>
  </head>
  <body>
    <h1>RayCrawler Config Editor</h1>
    <p>Editing: <code>{{ config_path }}</code></p>

    {% for m, cat in messages %}
      <div class="flash {{ cat }}">{{ m }}</div>
    {% endfor %}

    <form method="post" action="{{ url_for('save') }}">
      {% for title, fields in groups %}
      <div class="card">
        <h3>{{ title }}</h3>
        <div class="row">
          {% for section, key, label, kind in fields %}
          <div class="col">
            <label for="{{ section }}.{{ key }}">{{ label }}</label>
            <input type="number" id="{{ section }}.{{ key }}" name="{{ section }}.{{ key }}"
                   value="{{ cfg[section][key] }}" step="{{ '1' if kind == 'int' else 'any' }}">
          </div>
          {% endfor %}
        </div>
      </div>
      {% endfor %}

      <div class="card">
        <h3>Map</h3>
        <select id="map.name" name="map.name">
          {% for name in maps %}
            <option value="{{ name }}" {% if cfg.map.name == name %}selected{% endif %}>{{ name }}</option>
          {% endfor %}
        </select>
      </div>

      <button type="submit">Save</button>
      <a class="btn secondary" href="{{ url_for('index') }}">Reload</a>
    </form>
  </body>
</html>
"""


def load_config() -> Dict[str, Any]:
    path = Path(config_path())
    if not path.exists():
        return with_defaults({})
    with path.open("r", encoding="utf-8") as f:
        return with_defaults(json.load(f))


def save_config(cfg: Dict[str, Any]) -> None:
    path = Path(config_path())
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        ts = time.strftime("%Y%m%d-%H%M%S")
        shutil.copy2(path, path.with_suffix(f".json.bak.{ts}"))
    tmp_path = path.with_suffix(".json.tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)
        f.write("\n")
    os.replace(tmp_path, path)


def parse_form(form, cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Copy form values into ``cfg``; raises ConfigError on bad input."""
    for _title, fields in FIELDS:
        for section, key, label, kind in fields:
            raw = (form.get(f"{section}.{key}") or "").strip()
            try:
                cfg[section][key] = int(raw) if kind == "int" else float(raw)
            except ValueError:
                raise ConfigError(f"Invalid number for {label!r}: {raw!r}") from None
    name = form.get("map.name") or cfg["map"]["name"]
    if name not in map_names():
        raise ConfigError(f"Unknown map {name!r}")
    cfg["map"]["name"] = name
    # Full validation, same rules the engine applies at load
    EngineConfig.from_dict(cfg)
    return cfg


@app.route("/", methods=["GET"])
def index():
    messages = [(m, 'ok') for m in get_flashed_messages(category_filter=['ok'])]
    messages += [(m, 'err') for m in get_flashed_messages(category_filter=['err'])]
    try:
        cfg = load_config()
    except (OSError, ValueError) as e:
        return f"Error loading config: {e}", 500
    return render_template_string(
        TEMPLATE,
        cfg=cfg,
        groups=FIELDS,
        maps=map_names(),
        config_path=config_path(),
        messages=messages,
    )


@app.route("/save", methods=["POST"])
def save():
    try:
        cfg = parse_form(request.form, load_config())
        save_config(cfg)
    except (ConfigError, OSError, ValueError) as e:
        logger.warning("config not saved: %s", e)
        flash(f"Error: {e}", 'err')
        return redirect(url_for('index'))
    reload_all()
    flash("Saved config (backup written)", 'ok')
    return redirect(url_for('index'))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.environ.get("PORT", "5080"))
    host = os.environ.get("HOST", "127.0.0.1")
    debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    logger.info("Config editor running at http://%s:%s", host, port)
    logger.info("Editing %s", config_path())
    app.run(host=host, port=port, debug=debug)
