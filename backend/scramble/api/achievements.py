from flask import Blueprint, jsonify, request

from scramble.api.params import as_enum
from scramble.enums import AchievementType
from scramble.services import achievements as achievement_service
from scramble.services import players as player_service

achievements = Blueprint('achievements', __name__)


@achievements.route('/all', methods=['GET'])
def catalog():
    return jsonify(achievement_service.catalog())


@achievements.route('/statistics', methods=['GET'])
def distribution():
    return jsonify(achievement_service.distribution())


@achievements.route('/<achievement_type>/rarity', methods=['GET'])
def rarity(achievement_type):
    return jsonify(achievement_service.rarity(as_enum(AchievementType, achievement_type, 'achievement_type')))


@achievements.route('/player/<player_ref>', methods=['GET'])
def player_achievements(player_ref):
    player = player_service.resolve_player(player_ref)
    if request.args.get('recent'):
        rows = achievement_service.recent_achievements(player.id)
    else:
        rows = achievement_service.player_achievements(player.id)
    return jsonify([a.to_dict() for a in rows])


@achievements.route('/player/<player_ref>/unlocked', methods=['GET'])
def unlocked(player_ref):
    player = player_service.resolve_player(player_ref)
    return jsonify([a.achievement_type for a in achievement_service.player_achievements(player.id)])


@achievements.route('/player/<player_ref>/progress', methods=['GET'])
def progress(player_ref):
    player = player_service.resolve_player(player_ref)
    return jsonify(achievement_service.progress(player.id))
