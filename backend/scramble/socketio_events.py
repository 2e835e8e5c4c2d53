from flask_socketio import emit, join_room, leave_room

from scramble import socketio
from scramble.enums import Difficulty, GameType


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _leaderboard_room(data):
    data = data or {}
    try:
        game_type = GameType.parse(data.get('game_type'))
        difficulty = Difficulty.parse(data.get('difficulty'))
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return None
    return f"leaderboard:{game_type.value}:{difficulty.value}"


def handle_subscribe_leaderboard(data):
    room = _leaderboard_room(data)
    if room is None:
        return
    join_room(room)
    emit('subscribed', {'room': room})


def handle_unsubscribe_leaderboard(data):
    room = _leaderboard_room(data)
    if room is None:
        return
    leave_room(room)
    emit('unsubscribed', {'room': room})


def handle_watch_player(data):
    player_id = (data or {}).get('player_id')
    if not player_id:
        emit('error', {'message': 'player_id is required'})
        return
    room = f"player:{player_id}"
    join_room(room)
    emit('watching', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


_HANDLERS = {
    'connect': handle_connect,
    'subscribe_leaderboard': handle_subscribe_leaderboard,
    'unsubscribe_leaderboard': handle_unsubscribe_leaderboard,
    'watch_player': handle_watch_player,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace=namespace)
