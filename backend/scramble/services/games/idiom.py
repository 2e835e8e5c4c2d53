from flask import current_app
from sqlalchemy import func

from scramble import db
from scramble.enums import Difficulty, GameType
from scramble.models import IdiomScore
from scramble.services.games import flow, questions, sessions
from scramble.services.games.scoring import calculate_score
from scramble.services.games.validation import validate_idiom

GAME = GameType.IDIOM


def start_game(player, difficulty) -> dict:
    difficulty = Difficulty.parse(difficulty)
    question = questions.pick_question(player.id, GAME, difficulty, questions.idioms(difficulty))
    result = flow.open_session(player, GAME, difficulty, question, list(question['idiom']))
    result.update({
        'definition': question['definition'],
        'pinyin': question.get('pinyin'),
    })
    return result


def get_hint(player, level) -> dict:
    return flow.use_hint(player, GAME, level, questions.idiom_hint)


def submit_answer(player, answer, time_taken, hints_used=0) -> dict:
    session = sessions.get_active(player.id, GAME)
    question = session.data['question']
    difficulty = Difficulty.parse(session.difficulty)
    time_taken = int(time_taken)
    hints = flow.effective_hints(session, hints_used)

    check = validate_idiom(answer, question['idiom'])
    breakdown = calculate_score(difficulty, time_taken, hints, check.correct)

    row = IdiomScore(
        player_id=player.id,
        idiom=question['idiom'],
        score=breakdown.total_score,
        difficulty=difficulty.value,
        time_taken=time_taken,
        hints_used=hints,
        accuracy_rate=check.accuracy,
        completed=check.correct,
    )
    db.session.add(row)
    sessions.complete(session, breakdown.total_score)
    db.session.flush()

    outcome = flow.settle(player, GAME, difficulty, breakdown.total_score, check.accuracy,
                          time_taken, hints, check.correct)
    current_app.logger.info(
        f"[idiom-submit] session={session.id} player={player.id} correct={check.correct} score={breakdown.total_score}"
    )
    return {
        'correct': check.correct,
        'correct_answer': question['idiom'],
        'score': breakdown.total_score,
        'breakdown': breakdown.to_dict(),
        'accuracy': check.accuracy,
        'time_taken': time_taken,
        'hints_used': hints,
        'pinyin': question.get('pinyin'),
        'definition': question['definition'],
        'meaning': question.get('meaning'),
        'usage': question.get('usage'),
        'origin': question.get('origin'),
        'score_id': row.id,
        **outcome,
    }


def history(player_id, limit=10):
    return (IdiomScore.query
            .filter_by(player_id=player_id)
            .order_by(IdiomScore.created_at.desc(), IdiomScore.id.desc())
            .limit(limit)
            .all())


def personal_best(player_id, difficulty=None) -> dict:
    query = IdiomScore.query.filter_by(player_id=player_id)
    if difficulty is not None:
        query = query.filter_by(difficulty=Difficulty.parse(difficulty).value)
    best = query.order_by(IdiomScore.score.desc(), IdiomScore.time_taken.asc()).first()
    games = query.count()
    average = query.with_entities(func.avg(IdiomScore.score)).scalar()
    return {
        'player_id': player_id,
        'difficulty': Difficulty.parse(difficulty).value if difficulty is not None else None,
        'games_played': games,
        'average_score': round(float(average or 0.0), 2),
        'best': best.to_dict() if best else None,
    }
