from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from scramble.api.params import json_body, require
from scramble.errors import AuthenticationError, RequestValidationError
from scramble.services import players as player_service
from scramble.services.games import sessions

players = Blueprint('players', __name__)


@players.route('/register', methods=['POST'])
def register():
    data = json_body()
    username, email, password = require(data, 'username', 'email', 'password')
    if not 3 <= len(str(username).strip()) <= 50:
        raise RequestValidationError({'username': 'must be between 3 and 50 characters'})
    player = player_service.register(username, email, password)
    return jsonify(player.to_dict()), 201


@players.route('/login', methods=['POST'])
def login():
    data = json_body()
    username, password = require(data, 'username', 'password')
    player = player_service.authenticate(username, password)
    if not login_user(player, remember=bool(data.get('remember'))):
        raise AuthenticationError('Account is deactivated')
    return jsonify({'success': True, 'player': player.to_dict()})


@players.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@players.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify(current_user.to_dict())


@players.route('/', methods=['GET'])
def list_players():
    term = request.args.get('q')
    rows = player_service.search(term) if term else player_service.active_players()
    return jsonify([p.to_dict() for p in rows])


@players.route('/counts', methods=['GET'])
def player_counts():
    return jsonify(player_service.counts())


@players.route('/<int:player_id>', methods=['GET'])
def get_player(player_id):
    return jsonify(player_service.get_player(player_id).to_dict())


@players.route('/<int:player_id>', methods=['PATCH'])
def update_player(player_id):
    (email,) = require(json_body(), 'email')
    return jsonify(player_service.update_email(player_id, email).to_dict())


@players.route('/<int:player_id>/password', methods=['POST'])
def change_password(player_id):
    current, new = require(json_body(), 'current_password', 'new_password')
    player_service.change_password(player_id, current, new)
    return jsonify({'success': True})


@players.route('/<int:player_id>/role', methods=['PATCH'])
def change_role(player_id):
    (role,) = require(json_body(), 'role')
    return jsonify(player_service.change_role(player_id, role).to_dict())


@players.route('/<int:player_id>/deactivate', methods=['POST'])
def deactivate(player_id):
    return jsonify(player_service.set_active(player_id, False).to_dict())


@players.route('/<int:player_id>/reactivate', methods=['POST'])
def reactivate(player_id):
    return jsonify(player_service.set_active(player_id, True).to_dict())


@players.route('/<int:player_id>/statistics', methods=['GET'])
def statistics(player_id):
    return jsonify(player_service.statistics(player_id))


@players.route('/<int:player_id>/sessions', methods=['GET'])
def player_sessions(player_id):
    player_service.get_player(player_id)
    return jsonify([s.to_dict() for s in sessions.player_sessions(player_id)])


@players.route('/<int:player_id>/sessions/statistics', methods=['GET'])
def session_statistics(player_id):
    player_service.get_player(player_id)
    return jsonify(sessions.statistics(player_id))
