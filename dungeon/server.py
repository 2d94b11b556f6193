# RayCrawler/dungeon/server.py
"""Thin HTTP / Socket.IO front for the engine.

Nothing about a running game is stored here: every request carries its
token and every response carries the next one.
"""
import logging
import os
import time
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, render_template, request
from flask_socketio import SocketIO, emit

from world.provider import get_map
from world.types import GridMap
from . import codec, engine
from .config import EngineConfig, get_engine_config
from .errors import DecodeError, EncodeOverflow, SessionExpired
from .state import Action, GameState

logger = logging.getLogger(__name__)

# Resolve directories relative to this file
base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
template_dir = os.path.join(base_dir, 'templates')

app = Flask(__name__, template_folder=template_dir)
app.config['SECRET_KEY'] = os.environ.get('DUNGEON_SECRET_KEY', 'secret!')
socketio = SocketIO(app, cors_allowed_origins='*')

# Discord interaction / response types
PING = 1
APPLICATION_COMMAND = 2
MESSAGE_COMPONENT = 3
CHANNEL_MESSAGE = 4
UPDATE_MESSAGE = 7
EPHEMERAL = 64
BUTTON = 2
ACTION_ROW = 1

COMMAND_NAME = 'dungeon'
NEW_GAME_ID = f"{codec.CUSTOM_ID_PREFIX}:new_game:"

CORRUPTED_MESSAGE = 'Corrupted session, start a new game.'
EXPIRED_MESSAGE = 'This dungeon has gone quiet. Start a new game with /dungeon.'
OVERFLOW_MESSAGE = 'The dungeon could not save your turn. Please start a new game.'

# (action, label) per button row
BUTTON_ROWS: List[List[Tuple[Action, str]]] = [
    [
        (Action.TURN_LEFT, '↺'),
        (Action.MOVE_FORWARD, '▲'),
        (Action.TURN_RIGHT, '↻'),
        (Action.MOVE_BACKWARD, '▼'),
        (Action.SHOOT, 'Shoot'),
    ],
    [
        (Action.TOGGLE_TURN_LEFT, 'Hold ↺'),
        (Action.TOGGLE_FORWARD, 'Hold ▲'),
        (Action.TOGGLE_TURN_RIGHT, 'Hold ↻'),
        (Action.WAIT, 'Wait'),
    ],
]


def _engine_args() -> Tuple[EngineConfig, GridMap]:
    config = get_engine_config()
    return config, get_map(config.map_name)


def is_expired(state: GameState, now: float, timeout: float) -> bool:
    """True when a token has sat idle longer than ``timeout`` seconds (0 disables)."""
    return timeout > 0 and now - state.timestamp > timeout


def _buttons(result: engine.TurnResult) -> List[Dict[str, Any]]:
    if result.state.terminal:
        return [{
            'type': ACTION_ROW,
            'components': [{'type': BUTTON, 'style': 3, 'label': 'New game', 'custom_id': NEW_GAME_ID}],
        }]
    rows = []
    for row in BUTTON_ROWS:
        rows.append({
            'type': ACTION_ROW,
            'components': [
                {
                    'type': BUTTON,
                    'style': 4 if action is Action.SHOOT else 2,
                    'label': label,
                    'custom_id': codec.custom_id(action, result.token),
                }
                for action, label in row
            ],
        })
    return rows


def _message(result: engine.TurnResult) -> Dict[str, Any]:
    return {
        'content': f"```\n{result.frame.text}\n```",
        'components': _buttons(result),
    }


def _reply(content: str, kind: int = CHANNEL_MESSAGE, ephemeral: bool = True):
    data: Dict[str, Any] = {'content': content}
    if ephemeral:
        data['flags'] = EPHEMERAL
    return jsonify({'type': kind, 'data': data})


def advance(token: str, action_name: str, now: Optional[float] = None) -> engine.TurnResult:
    """Decode, check idle expiry and apply one action.

    Raises DecodeError for bad tokens and SessionExpired for idle ones.
    """
    config, grid = _engine_args()
    now = time.time() if now is None else now
    state = engine.load_state(token, grid, config)
    if is_expired(state, now, config.idle_timeout):
        raise SessionExpired(f"token idle for {int(now - state.timestamp)}s")
    return engine.step(state, action_name, grid, config, now)


def _handle_component(data: Dict[str, Any]):
    cid = data.get('custom_id')
    if cid == NEW_GAME_ID:
        config, grid = _engine_args()
        return jsonify({'type': UPDATE_MESSAGE, 'data': _message(engine.new_game(config, grid))})
    try:
        action_name, token = codec.parse_custom_id(cid)
        result = advance(token, action_name)
    except DecodeError as e:
        logger.warning("rejected token: %s", e)
        return _reply(CORRUPTED_MESSAGE)
    except SessionExpired as e:
        logger.info("expired token: %s", e)
        return _reply(EXPIRED_MESSAGE)
    except EncodeOverflow:
        logger.exception("could not encode next state")
        return _reply(OVERFLOW_MESSAGE)
    return jsonify({'type': UPDATE_MESSAGE, 'data': _message(result)})


@app.route('/interactions', methods=['POST'])
def interactions():
    interaction = request.get_json(silent=True)
    if not isinstance(interaction, dict):
        return 'Bad Request: body must be a JSON object', 400
    kind = interaction.get('type')
    data = interaction.get('data') or {}

    if kind == PING:
        return jsonify({'type': PING})
    if kind == APPLICATION_COMMAND:
        name = data.get('name')
        if name == 'ping':
            return _reply('Pong!', ephemeral=False)
        if name == COMMAND_NAME:
            config, grid = _engine_args()
            result = engine.new_game(config, grid)
            return jsonify({'type': CHANNEL_MESSAGE, 'data': _message(result)})
        return _reply('Unknown application command.')
    if kind == MESSAGE_COMPONENT:
        return _handle_component(data)
    return 'Bad Request: Unknown Interaction Type', 400


@app.route('/controller')
def controller():
    return render_template('controller.html')


def _frame_payload(result: engine.TurnResult) -> Dict[str, Any]:
    return {
        'text': result.frame.text,
        'token': result.token,
        'status': result.state.status.value,
    }


@socketio.on('connect')
def on_connect():
    logger.info("controller connected: %s", request.sid)


@socketio.on('new_game')
def on_new_game(_data=None):
    config, grid = _engine_args()
    emit('frame', _frame_payload(engine.new_game(config, grid)))


@socketio.on('action')
def on_action(data):
    # data: {'action': 'move_forward', 'token': '...'}
    data = data or {}
    try:
        result = advance(data.get('token') or '', data.get('action'))
    except DecodeError as e:
        logger.warning("rejected token from %s: %s", request.sid, e)
        emit('error', {'message': CORRUPTED_MESSAGE})
        return
    except SessionExpired:
        emit('error', {'message': EXPIRED_MESSAGE})
        return
    except EncodeOverflow:
        logger.exception("could not encode next state")
        emit('error', {'message': OVERFLOW_MESSAGE})
        return
    emit('frame', _frame_payload(result))


def run_server(host: str = '0.0.0.0', port: int = 5050):
    socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=True)
