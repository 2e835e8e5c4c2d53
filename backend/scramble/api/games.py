from flask import Blueprint, jsonify, request

from scramble.api.params import as_enum, as_int
from scramble.enums import Difficulty
from scramble.services.games.scoring import calculate_score, difficulty_table

games = Blueprint('games', __name__)


@games.route('/difficulties', methods=['GET'])
def difficulties():
    return jsonify(difficulty_table())


@games.route('/score-preview', methods=['GET'])
def score_preview():
    """What the server would award, so clients don't re-implement scoring."""
    difficulty = as_enum(Difficulty, request.args.get('difficulty'), 'difficulty')
    time_taken = as_int(request.args.get('time_taken'), 'time_taken', minimum=0)
    hints_used = as_int(request.args.get('hints_used'), 'hints_used', minimum=0, default=0)
    correct = request.args.get('correct', 'true').strip().lower() in ('1', 'true', 'yes')
    breakdown = calculate_score(difficulty, time_taken, hints_used, correct)
    return jsonify(breakdown.to_dict())
