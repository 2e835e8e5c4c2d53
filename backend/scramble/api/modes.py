"""Routes common to both game modes, bound to a mode's service module."""
from flask import Blueprint, current_app, jsonify, request

from scramble.api.params import as_enum, as_int, current_player, json_body, query_int
from scramble.enums import Difficulty
from scramble.errors import RequestValidationError
from scramble.services import players as player_service
from scramble.services.games import flow


def build_mode_blueprint(name, service):
    bp = Blueprint(name, __name__)

    @bp.route('/start', methods=['POST'])
    def start():
        data = json_body()
        difficulty = as_enum(Difficulty, data.get('difficulty') or request.args.get('difficulty'), 'difficulty')
        player = current_player()
        return jsonify(service.start_game(player, difficulty)), 201

    @bp.route('/submit', methods=['POST'])
    def submit():
        data = json_body()
        answer = data.get('answer')
        if answer is None or (isinstance(answer, str) and not answer.strip()) or (
                isinstance(answer, list) and not answer):
            raise RequestValidationError({'answer': 'must not be blank'})
        if not isinstance(answer, (str, list)) or (
                isinstance(answer, list) and not all(isinstance(token, str) for token in answer)):
            raise RequestValidationError({'answer': 'must be a string or a list of strings'})
        time_taken = as_int(data.get('time_taken'), 'time_taken', minimum=1)
        hints_used = as_int(data.get('hints_used'), 'hints_used', minimum=0, default=0)
        player = current_player()
        return jsonify(service.submit_answer(player, answer, time_taken, hints_used))

    @bp.route('/hint/<int:level>', methods=['POST'])
    def hint(level):
        if not 1 <= level <= 3:
            raise RequestValidationError({'level': 'must be between 1 and 3'})
        return jsonify(service.get_hint(current_player(), level))

    @bp.route('/abandon', methods=['POST'])
    def abandon():
        return jsonify(flow.abandon(current_player(auto_create=False), service.GAME))

    @bp.route('/restart', methods=['POST'])
    def restart():
        return jsonify(flow.restart(current_player(), service.GAME))

    @bp.route('/history/<player_ref>', methods=['GET'])
    def history(player_ref):
        player = player_service.resolve_player(player_ref)
        limit = query_int('limit', current_app.config.get('HISTORY_DEFAULT_LIMIT', 10))
        return jsonify([row.to_dict() for row in service.history(player.id, limit)])

    @bp.route('/personal-best/<player_ref>', methods=['GET'])
    def personal_best(player_ref):
        player = player_service.resolve_player(player_ref)
        difficulty = request.args.get('difficulty')
        if difficulty:
            difficulty = as_enum(Difficulty, difficulty, 'difficulty')
        return jsonify(service.personal_best(player.id, difficulty or None))

    return bp
