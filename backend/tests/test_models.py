import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from scramble import db
from scramble.models import FeatureFlag, IdiomScore, Leaderboard, Player, SentenceScore


def _idiom_score(player, **overrides):
    values = dict(player_id=player.id, idiom='一心一意', score=100, difficulty='EASY',
                  time_taken=30, hints_used=0, accuracy_rate=1.0, completed=True)
    values.update(overrides)
    return IdiomScore(**values)


@pytest.mark.parametrize('field,value', [
    ('hints_used', 4),
    ('hints_used', -1),
    ('accuracy_rate', 1.5),
    ('score', -10),
    ('time_taken', 0),
])
def test_score_validators_reject_out_of_range(player, field, value):
    with pytest.raises(ValueError):
        _idiom_score(player, **{field: value})


def test_sentence_score_checks_grammar_range(player):
    with pytest.raises(ValueError):
        SentenceScore(player_id=player.id, target_sentence='我喜欢学习中文', player_sentence='我喜欢学习中文',
                      score=0, difficulty='EASY', time_taken=10, hints_used=0, grammar_score=101,
                      similarity_score=1.0, accuracy_rate=1.0)


def test_check_constraint_guards_raw_inserts(player):
    with pytest.raises(IntegrityError):
        db.session.execute(text(
            "INSERT INTO idiom_scores (player_id, idiom, score, difficulty, time_taken, hints_used, "
            "accuracy_rate, completed, created_at, updated_at) "
            "VALUES (:p, '一心一意', 10, 'EASY', 5, 7, 1.0, 1, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)"
        ), {'p': player.id})
    db.session.rollback()


def test_one_leaderboard_row_per_bucket(player):
    db.session.add(Leaderboard(player_id=player.id, game_type='IDIOM', difficulty='EASY'))
    db.session.commit()
    db.session.add(Leaderboard(player_id=player.id, game_type='IDIOM', difficulty='EASY'))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_feature_flag_names_are_kebab_case(flask_app):
    assert FeatureFlag(name='daily-challenge').name == 'daily-challenge'
    for bad in ('Daily', 'daily_challenge', '-daily', ''):
        with pytest.raises(ValueError):
            FeatureFlag(name=bad)


def test_player_username_length_and_active_flag(player):
    with pytest.raises(ValueError):
        Player(username='ab', email='ab@example.com', password_hash='x')
    assert player.is_active
    player.active = False
    assert not player.is_active
