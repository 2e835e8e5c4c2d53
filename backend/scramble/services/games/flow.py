"""Steps shared by the idiom and sentence games."""
from flask import current_app

from scramble import db
from scramble.cache import get_cache
from scramble.enums import Difficulty, GameType
from scramble.errors import MaxHintsExceededError
from scramble.models import utcnow
from scramble.services import achievements, leaderboard, players
from scramble.services.games import questions, sessions
from scramble.services.games.history import get_history
from scramble.services.games.scoring import MAX_HINTS, get_hint_penalty, settings_for


def open_session(player, game_type: GameType, difficulty: Difficulty, question: dict, tokens) -> dict:
    scrambled = questions.scramble(tokens)
    time_limit = settings_for(difficulty).time_limit
    session = sessions.create_session(player, game_type, difficulty, {
        'answer': questions.answer_of(question, game_type),
        'question': question,
        'scrambled': scrambled,
        'time_limit': time_limit,
        'started_at': utcnow().isoformat(),
    })
    return {
        'session_id': session.id,
        'game_type': game_type.value,
        'difficulty': difficulty.value,
        'scrambled': scrambled,
        'token_count': len(scrambled),
        'time_limit': time_limit,
    }


def use_hint(player, game_type: GameType, level, hint_text) -> dict:
    """Record a hint for the active session; ``hint_text(question, level)`` builds its content."""
    level = int(level)
    penalty = get_hint_penalty(level)
    session = sessions.get_active(player.id, game_type)
    content = hint_text(session.data['question'], level)
    sessions.record_hint(session, level, penalty, content)
    used = sessions.hint_count(session)
    current_app.logger.info(f"[hint] session={session.id} player={player.id} level={level} used={used}")
    return {
        'level': level,
        'content': content,
        'penalty': penalty,
        'hints_used': used,
        'hints_remaining': MAX_HINTS - used,
    }


def effective_hints(session, reported) -> int:
    """Hints charged on submit: the larger of what the client says and what was recorded."""
    reported = int(reported or 0)
    if reported < 0:
        raise ValueError('hints_used cannot be negative')
    used = max(reported, sessions.hint_count(session))
    if used > MAX_HINTS:
        raise MaxHintsExceededError(MAX_HINTS, used)
    return used


def settle(player, game_type: GameType, difficulty: Difficulty, score: int, accuracy: float,
           time_taken: int, hints_used: int, correct: bool) -> dict:
    """Post-submit bookkeeping: leaderboard (correct answers only) and achievements.

    Commits them together with the score row and session change the caller
    left pending, or rolls all of it back.
    """
    entry = None
    try:
        if correct:
            entry = leaderboard.record_score(player, game_type, difficulty, score, accuracy)
        unlocked = achievements.check_achievements(player, game_type, score, accuracy, time_taken, hints_used, correct)
        db.session.commit()
    except Exception:
        db.session.rollback()
        get_cache().clear('leaderboards')
        raise
    players.evict_statistics(player.id)
    if entry is not None:
        leaderboard.publish_update(entry)
    return {
        'rank': entry.rank if entry else None,
        'new_achievements': [a.title for a in unlocked],
    }


def abandon(player, game_type: GameType) -> dict:
    session = sessions.get_active(player.id, game_type)
    sessions.abandon(session)
    return session.to_dict()


def restart(player, game_type: GameType) -> dict:
    history = get_history()
    cleared = history.count(player.id, game_type.value)
    history.clear(player.id, game_type.value)
    current_app.logger.info(f"[restart] player={player.id} game={game_type.value} cleared={cleared}")
    return {'player_id': player.id, 'game_type': game_type.value, 'cleared': cleared}
