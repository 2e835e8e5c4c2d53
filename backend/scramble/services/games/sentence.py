import json

from flask import current_app
from sqlalchemy import func

from scramble import db
from scramble.enums import Difficulty, GameType
from scramble.models import SentenceScore
from scramble.services.games import flow, questions, sessions
from scramble.services.games.scoring import calculate_score
from scramble.services.games.validation import validate_sentence

GAME = GameType.SENTENCE


def start_game(player, difficulty) -> dict:
    difficulty = Difficulty.parse(difficulty)
    question = questions.pick_question(player.id, GAME, difficulty, questions.sentences(difficulty))
    result = flow.open_session(player, GAME, difficulty, question, question['words'])
    result.update({
        'meaning': question.get('meaning'),
        'pinyin': question.get('pinyin'),
    })
    return result


def get_hint(player, level) -> dict:
    return flow.use_hint(player, GAME, level, questions.sentence_hint)


def submit_answer(player, answer, time_taken, hints_used=0) -> dict:
    session = sessions.get_active(player.id, GAME)
    question = session.data['question']
    difficulty = Difficulty.parse(session.difficulty)
    time_taken = int(time_taken)
    hints = flow.effective_hints(session, hints_used)

    check = validate_sentence(answer, question['words'])
    breakdown = calculate_score(difficulty, time_taken, hints, check.valid)
    player_sentence = ''.join(answer) if isinstance(answer, (list, tuple)) else answer
    errors = [e.to_dict() for e in check.errors]

    row = SentenceScore(
        player_id=player.id,
        target_sentence=question['target_sentence'],
        player_sentence=player_sentence,
        score=breakdown.total_score,
        difficulty=difficulty.value,
        time_taken=time_taken,
        hints_used=hints,
        grammar_score=check.grammar_score,
        similarity_score=check.similarity,
        accuracy_rate=check.accuracy,
        validation_errors=json.dumps(errors, ensure_ascii=False),
        completed=check.valid,
    )
    db.session.add(row)
    sessions.complete(session, breakdown.total_score)
    db.session.flush()

    outcome = flow.settle(player, GAME, difficulty, breakdown.total_score, check.accuracy,
                          time_taken, hints, check.valid)
    current_app.logger.info(
        f"[sentence-submit] session={session.id} player={player.id} valid={check.valid} "
        f"grammar={check.grammar_score} score={breakdown.total_score}"
    )
    return {
        'correct': check.valid,
        'correct_answer': question['target_sentence'],
        'player_sentence': player_sentence,
        'score': breakdown.total_score,
        'breakdown': breakdown.to_dict(),
        'grammar_score': check.grammar_score,
        'similarity_score': check.similarity,
        'accuracy': check.accuracy,
        'validation_errors': errors,
        'time_taken': time_taken,
        'hints_used': hints,
        'pinyin': question.get('pinyin'),
        'meaning': question.get('meaning'),
        'grammar_points': question.get('grammar_points') or [],
        'score_id': row.id,
        **outcome,
    }


def history(player_id, limit=10):
    return (SentenceScore.query
            .filter_by(player_id=player_id)
            .order_by(SentenceScore.created_at.desc(), SentenceScore.id.desc())
            .limit(limit)
            .all())


def personal_best(player_id, difficulty=None) -> dict:
    query = SentenceScore.query.filter_by(player_id=player_id)
    if difficulty is not None:
        query = query.filter_by(difficulty=Difficulty.parse(difficulty).value)
    best = query.order_by(SentenceScore.score.desc(), SentenceScore.time_taken.asc()).first()
    games = query.count()
    average = query.with_entities(func.avg(SentenceScore.score)).scalar()
    return {
        'player_id': player_id,
        'difficulty': Difficulty.parse(difficulty).value if difficulty is not None else None,
        'games_played': games,
        'average_score': round(float(average or 0.0), 2),
        'best': best.to_dict() if best else None,
    }
