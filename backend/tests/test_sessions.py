from datetime import timedelta

import pytest

from scramble import db
from scramble.enums import Difficulty, GameType
from scramble.errors import GameSessionNotFoundError, InvalidGameStateError, MaxHintsExceededError
from scramble.models import utcnow
from scramble.services.games import sessions
from scramble.services.games.scheduler import run_maintenance


def _new(player, game_type=GameType.IDIOM):
    return sessions.create_session(player, game_type, Difficulty.EASY, {'answer': '一心一意'})


def _backdate(session, minutes):
    session.last_activity_at = utcnow() - timedelta(minutes=minutes)
    db.session.commit()


def test_terminal_sessions_cannot_transition(player):
    session = _new(player)
    sessions.complete(session, 120)
    db.session.commit()
    assert session.status == 'COMPLETED'
    assert session.score == 120
    assert session.completed_at is not None

    with pytest.raises(InvalidGameStateError):
        sessions.abandon(session)
    with pytest.raises(InvalidGameStateError):
        sessions.complete(session, 10)


def test_only_one_active_session_per_player(player):
    first = _new(player)
    second = _new(player, GameType.SENTENCE)
    assert first.status == 'ABANDONED'
    assert sessions.get_active(player.id).id == second.id
    with pytest.raises(InvalidGameStateError):
        sessions.get_active(player.id, GameType.IDIOM)


def test_hint_limit_per_session(player):
    session = _new(player)
    for level in (1, 2, 3):
        sessions.record_hint(session, level, level * 10, f"hint {level}")
    assert sessions.hint_count(session) == 3
    with pytest.raises(MaxHintsExceededError):
        sessions.record_hint(session, 1, 10, 'one more')


def test_hints_rejected_after_session_ends(player):
    session = _new(player)
    sessions.abandon(session)
    with pytest.raises(InvalidGameStateError):
        sessions.record_hint(session, 1, 10, 'late')


def test_sweep_expires_only_idle_active_sessions(flask_app, player):
    from conftest import make_player
    idle = _new(player)
    _backdate(idle, 31)
    other = make_player('busy_bee')
    fresh = _new(other)

    assert sessions.expire_stale_sessions() == 1
    assert idle.status == 'EXPIRED'
    assert fresh.status == 'ACTIVE'
    assert sessions.expire_stale_sessions() == 0


def test_stale_session_expires_lazily(player):
    session = _new(player)
    _backdate(session, 45)
    with pytest.raises(GameSessionNotFoundError):
        sessions.get_active(player.id)
    assert session.status == 'EXPIRED'


def test_maintenance_pass_runs_sweep(flask_app, player):
    session = _new(player)
    _backdate(session, 60)
    result = run_maintenance(flask_app)
    assert result['expired_sessions'] == 1
    assert result['reloaded_configs'] == []


def test_session_statistics(player):
    done = _new(player)
    sessions.complete(done, 50)
    db.session.commit()
    _new(player)
    stats = sessions.statistics(player.id)
    assert stats['total'] == 2
    assert stats['completed'] == 1
    assert stats['active'] == 1
    assert stats['completion_rate'] == 1.0
