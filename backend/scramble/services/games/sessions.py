"""Game session lifecycle.

A player has at most one ACTIVE session. ACTIVE moves to exactly one of
COMPLETED, ABANDONED or EXPIRED and never leaves those states.
"""
from datetime import timedelta
from typing import Optional

from flask import current_app

from scramble import db, socketio
from scramble.enums import GameType, SessionStatus
from scramble.errors import (
    GameSessionNotFoundError, InvalidGameStateError, MaxHintsExceededError,
)
from scramble.models import GameSession, HintUsage, utcnow
from scramble.services.games.scoring import MAX_HINTS


def _timeout() -> timedelta:
    return timedelta(minutes=int(current_app.config.get('SESSION_TIMEOUT_MINUTES', 30)))


def is_stale(session: GameSession, now=None) -> bool:
    now = now or utcnow()
    return session.status == SessionStatus.ACTIVE.value and session.last_activity_at < now - _timeout()


def _transition(session: GameSession, status: SessionStatus, score=None) -> GameSession:
    if session.status != SessionStatus.ACTIVE.value:
        raise InvalidGameStateError(
            f"Session {session.id} is {session.status}; cannot move to {status.value}",
            {'session_id': session.id, 'status': session.status, 'requested': status.value},
        )
    now = utcnow()
    session.status = status.value
    session.completed_at = now
    session.last_activity_at = now
    if score is not None:
        session.score = score
    db.session.add(session)
    return session


def create_session(player, game_type: GameType, difficulty, data: dict) -> GameSession:
    """Start a session, abandoning whatever the player had running."""
    previous = (GameSession.query
                .filter_by(player_id=player.id, status=SessionStatus.ACTIVE.value)
                .all())
    for old in previous:
        _transition(old, SessionStatus.ABANDONED)
        current_app.logger.info(f"[session-abandon] session={old.id} player={player.id} reason=new-game")
    session = GameSession(player_id=player.id, game_type=game_type.value, difficulty=difficulty.value,
                          status=SessionStatus.ACTIVE.value)
    session.data = data
    db.session.add(session)
    db.session.commit()
    current_app.logger.info(
        f"[session-start] session={session.id} player={player.id} game={game_type.value} difficulty={difficulty.value}"
    )
    return session


def find_active(player_id) -> Optional[GameSession]:
    """Active session of the player, expiring it first if it went stale."""
    session = (GameSession.query
               .filter_by(player_id=player_id, status=SessionStatus.ACTIVE.value)
               .order_by(GameSession.started_at.desc())
               .first())
    if session is not None and is_stale(session):
        _expire(session)
        db.session.commit()
        _announce_expired(session)
        return None
    return session


def get_active(player_id, game_type: GameType = None) -> GameSession:
    session = find_active(player_id)
    if session is None:
        raise GameSessionNotFoundError(f"No active game session for player {player_id}",
                                       {'player_id': player_id})
    if game_type is not None and session.game_type != game_type.value:
        raise InvalidGameStateError(
            f"Active session is a {session.game_type} game, not {game_type.value}",
            {'session_id': session.id, 'game_type': session.game_type},
        )
    return session


def touch(session: GameSession) -> None:
    session.last_activity_at = utcnow()
    db.session.add(session)


def complete(session: GameSession, score: int) -> GameSession:
    """Mark completed; the caller commits together with the score row."""
    return _transition(session, SessionStatus.COMPLETED, score=score)


def abandon(session: GameSession) -> GameSession:
    _transition(session, SessionStatus.ABANDONED)
    db.session.commit()
    current_app.logger.info(f"[session-abandon] session={session.id} player={session.player_id}")
    return session


def _expire(session: GameSession) -> None:
    _transition(session, SessionStatus.EXPIRED)
    current_app.logger.info(f"[session-expire] session={session.id} player={session.player_id}")


def _announce_expired(session: GameSession) -> None:
    socketio.emit('session_expired', {'session_id': session.id, 'player_id': session.player_id},
                  to=f"player:{session.player_id}", namespace='/ws')


def hint_count(session: GameSession) -> int:
    return session.hint_usages.count()


def record_hint(session: GameSession, level: int, penalty: int, content: str) -> HintUsage:
    if not session.is_active:
        raise InvalidGameStateError(f"Session {session.id} is {session.status}", {'session_id': session.id})
    used = hint_count(session)
    if used >= MAX_HINTS:
        raise MaxHintsExceededError(MAX_HINTS, used)
    usage = HintUsage(session_id=session.id, hint_level=level, penalty_applied=penalty, hint_content=content)
    db.session.add(usage)
    touch(session)
    db.session.commit()
    return usage


def expire_stale_sessions(now=None) -> int:
    """Expire every ACTIVE session idle past the timeout; returns how many."""
    now = now or utcnow()
    cutoff = now - _timeout()
    stale = (GameSession.query
             .filter(GameSession.status == SessionStatus.ACTIVE.value,
                     GameSession.last_activity_at < cutoff)
             .all())
    for session in stale:
        _expire(session)
    if stale:
        db.session.commit()
        for session in stale:
            _announce_expired(session)
        current_app.logger.info(f"[session-sweep] expired={len(stale)} cutoff={cutoff.isoformat()}")
    return len(stale)


def player_sessions(player_id, limit=20):
    return (GameSession.query
            .filter_by(player_id=player_id)
            .order_by(GameSession.started_at.desc(), GameSession.id.desc())
            .limit(limit)
            .all())


def statistics(player_id) -> dict:
    base = GameSession.query.filter_by(player_id=player_id)
    total = base.count()
    by_status = {s.value.lower(): base.filter_by(status=s.value).count() for s in SessionStatus}
    finished = total - by_status['active']
    return {
        'player_id': player_id,
        'total': total,
        **by_status,
        'completion_rate': round(by_status['completed'] / finished, 4) if finished else 0.0,
    }
