from flask import Blueprint, jsonify, request

from scramble.api.params import as_enum, as_int, query_int
from scramble.enums import Difficulty, GameType
from scramble.services import leaderboard
from scramble.services import players as player_service

leaderboards = Blueprint('leaderboards', __name__)


def _bucket():
    return (as_enum(GameType, request.args.get('game_type'), 'game_type'),
            as_enum(Difficulty, request.args.get('difficulty'), 'difficulty'))


@leaderboards.route('/top', methods=['GET'])
def top():
    game_type, difficulty = _bucket()
    limit = query_int('limit', None) if request.args.get('limit') else None
    return jsonify(leaderboard.top_players(game_type, difficulty, limit))


@leaderboards.route('/player/<player_ref>', methods=['GET'])
def player_rankings(player_ref):
    player = player_service.resolve_player(player_ref)
    return jsonify([row.to_dict() for row in leaderboard.player_rankings(player.id)])


@leaderboards.route('/player/<player_ref>/rank', methods=['GET'])
def player_rank(player_ref):
    player = player_service.resolve_player(player_ref)
    game_type, difficulty = _bucket()
    entry = leaderboard.player_rank(player.id, game_type, difficulty)
    result = entry.to_dict()
    result['bucket_size'] = leaderboard.bucket_size(game_type, difficulty)
    result['top_ten'] = bool(entry.rank and entry.rank <= 10)
    return jsonify(result)


@leaderboards.route('/near', methods=['GET'])
def near():
    game_type, difficulty = _bucket()
    rank = as_int(request.args.get('rank'), 'rank', minimum=1)
    offset = query_int('offset', 2, minimum=0)
    return jsonify([row.to_dict() for row in leaderboard.players_near_rank(game_type, difficulty, rank, offset)])


@leaderboards.route('/statistics', methods=['GET'])
def statistics():
    game_type, difficulty = _bucket()
    return jsonify(leaderboard.statistics(game_type, difficulty))


@leaderboards.route('/recalculate', methods=['POST'])
def recalculate():
    return jsonify({'rows': leaderboard.recalculate_all()})
