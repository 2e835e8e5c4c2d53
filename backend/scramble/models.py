import json
import re
from datetime import datetime, timezone

from flask_login import UserMixin
from sqlalchemy.orm import validates

from scramble import db
from scramble.enums import SessionStatus

MAX_HINTS = 3
FEATURE_NAME_RE = re.compile(r'^[a-z0-9]+(-[a-z0-9]+)*$')


def utcnow():
    """Naive UTC timestamp; SQLite drops tzinfo so everything is stored naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


def _check_range(key, value, low=None, high=None):
    if value is None:
        return value
    if low is not None and value < low:
        raise ValueError(f"{key} must be >= {low}, got {value}")
    if high is not None and value > high:
        raise ValueError(f"{key} must be <= {high}, got {value}")
    return value


class Player(UserMixin, db.Model):
    __tablename__ = 'players'
    __table_args__ = (
        db.CheckConstraint("role IN ('PLAYER', 'ADMIN', 'MODERATOR')", name='ck_players_role'),
    )
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='PLAYER')
    active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version = db.Column(db.Integer, nullable=False)

    idiom_scores = db.relationship('IdiomScore', backref='player', lazy='dynamic',
                                   cascade='all, delete-orphan', passive_deletes=True)
    sentence_scores = db.relationship('SentenceScore', backref='player', lazy='dynamic',
                                      cascade='all, delete-orphan', passive_deletes=True)
    leaderboard_entries = db.relationship('Leaderboard', backref='player', lazy='dynamic',
                                          cascade='all, delete-orphan', passive_deletes=True)
    achievements = db.relationship('Achievement', backref='player', lazy='dynamic',
                                   cascade='all, delete-orphan', passive_deletes=True)
    sessions = db.relationship('GameSession', backref='player', lazy='dynamic',
                               cascade='all, delete-orphan', passive_deletes=True)

    __mapper_args__ = {'version_id_col': version}

    @property
    def is_active(self):
        # Flask-Login refuses to log in inactive players
        return bool(self.active)

    @validates('username')
    def _validate_username(self, key, value):
        value = (value or '').strip()
        if not 3 <= len(value) <= 50:
            raise ValueError('username must be between 3 and 50 characters')
        return value

    @validates('role')
    def _validate_role(self, key, value):
        value = str(value).upper()
        if value not in ('PLAYER', 'ADMIN', 'MODERATOR'):
            raise ValueError(f"invalid role '{value}'")
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role,
            'active': self.active,
            'last_login_at': _iso(self.last_login_at),
            'created_at': _iso(self.created_at),
        }


class IdiomScore(db.Model):
    __tablename__ = 'idiom_scores'
    __table_args__ = (
        db.CheckConstraint('score >= 0', name='ck_idiom_scores_score'),
        db.CheckConstraint('time_taken > 0', name='ck_idiom_scores_time_taken'),
        db.CheckConstraint('hints_used >= 0 AND hints_used <= 3', name='ck_idiom_scores_hints_used'),
        db.CheckConstraint('accuracy_rate >= 0 AND accuracy_rate <= 1', name='ck_idiom_scores_accuracy'),
        db.Index('ix_idiom_scores_player_created', 'player_id', 'created_at'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    idiom = db.Column(db.String(20), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    difficulty = db.Column(db.String(20), nullable=False)
    time_taken = db.Column(db.Integer, nullable=False)
    hints_used = db.Column(db.Integer, nullable=False, default=0)
    accuracy_rate = db.Column(db.Float, nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @validates('hints_used')
    def _validate_hints(self, key, value):
        return _check_range(key, value, 0, MAX_HINTS)

    @validates('accuracy_rate')
    def _validate_accuracy(self, key, value):
        return _check_range(key, value, 0.0, 1.0)

    @validates('score')
    def _validate_score(self, key, value):
        return _check_range(key, value, 0)

    @validates('time_taken')
    def _validate_time(self, key, value):
        return _check_range(key, value, 1)

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'game_type': 'IDIOM',
            'idiom': self.idiom,
            'score': self.score,
            'difficulty': self.difficulty,
            'time_taken': self.time_taken,
            'hints_used': self.hints_used,
            'accuracy_rate': self.accuracy_rate,
            'completed': self.completed,
            'created_at': _iso(self.created_at),
        }


class SentenceScore(db.Model):
    __tablename__ = 'sentence_scores'
    __table_args__ = (
        db.CheckConstraint('score >= 0', name='ck_sentence_scores_score'),
        db.CheckConstraint('time_taken > 0', name='ck_sentence_scores_time_taken'),
        db.CheckConstraint('hints_used >= 0 AND hints_used <= 3', name='ck_sentence_scores_hints_used'),
        db.CheckConstraint('accuracy_rate >= 0 AND accuracy_rate <= 1', name='ck_sentence_scores_accuracy'),
        db.CheckConstraint('grammar_score >= 0 AND grammar_score <= 100', name='ck_sentence_scores_grammar'),
        db.CheckConstraint('similarity_score >= 0 AND similarity_score <= 1', name='ck_sentence_scores_similarity'),
        db.Index('ix_sentence_scores_player_created', 'player_id', 'created_at'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    target_sentence = db.Column(db.Text, nullable=False)
    player_sentence = db.Column(db.Text, nullable=False)
    score = db.Column(db.Integer, nullable=False)
    difficulty = db.Column(db.String(20), nullable=False)
    time_taken = db.Column(db.Integer, nullable=False)
    hints_used = db.Column(db.Integer, nullable=False, default=0)
    grammar_score = db.Column(db.Integer, nullable=False)
    similarity_score = db.Column(db.Float, nullable=False)
    accuracy_rate = db.Column(db.Float, nullable=False)
    validation_errors = db.Column(db.Text, nullable=True)  # JSON list
    completed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @validates('hints_used')
    def _validate_hints(self, key, value):
        return _check_range(key, value, 0, MAX_HINTS)

    @validates('accuracy_rate', 'similarity_score')
    def _validate_ratio(self, key, value):
        return _check_range(key, value, 0.0, 1.0)

    @validates('grammar_score')
    def _validate_grammar(self, key, value):
        return _check_range(key, value, 0, 100)

    @validates('score')
    def _validate_score(self, key, value):
        return _check_range(key, value, 0)

    @validates('time_taken')
    def _validate_time(self, key, value):
        return _check_range(key, value, 1)

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'game_type': 'SENTENCE',
            'target_sentence': self.target_sentence,
            'player_sentence': self.player_sentence,
            'score': self.score,
            'difficulty': self.difficulty,
            'time_taken': self.time_taken,
            'hints_used': self.hints_used,
            'grammar_score': self.grammar_score,
            'similarity_score': self.similarity_score,
            'accuracy_rate': self.accuracy_rate,
            'validation_errors': json.loads(self.validation_errors) if self.validation_errors else [],
            'completed': self.completed,
            'created_at': _iso(self.created_at),
        }


class Leaderboard(db.Model):
    __tablename__ = 'leaderboard'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'game_type', 'difficulty', name='uq_leaderboard_player_bucket'),
        db.CheckConstraint("game_type IN ('IDIOM', 'SENTENCE')", name='ck_leaderboard_game_type'),
        db.CheckConstraint('rank >= 1', name='ck_leaderboard_rank'),
        db.CheckConstraint('total_score >= 0', name='ck_leaderboard_total_score'),
        db.CheckConstraint('accuracy_rate >= 0 AND accuracy_rate <= 1', name='ck_leaderboard_accuracy'),
        db.Index('ix_leaderboard_bucket_score', 'game_type', 'difficulty', 'total_score'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    game_type = db.Column(db.String(20), nullable=False)
    difficulty = db.Column(db.String(20), nullable=False)
    total_score = db.Column(db.BigInteger, nullable=False, default=0)
    games_played = db.Column(db.Integer, nullable=False, default=0)
    average_score = db.Column(db.Float, nullable=False, default=0.0)
    accuracy_rate = db.Column(db.Float, nullable=False, default=0.0)
    rank = db.Column(db.Integer, nullable=True)
    last_updated = db.Column(db.DateTime, nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    @validates('rank')
    def _validate_rank(self, key, value):
        return _check_range(key, value, 1)

    @validates('accuracy_rate')
    def _validate_accuracy(self, key, value):
        return _check_range(key, value, 0.0, 1.0)

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'username': self.player.username if self.player else None,
            'game_type': self.game_type,
            'difficulty': self.difficulty,
            'total_score': self.total_score,
            'games_played': self.games_played,
            'average_score': round(self.average_score or 0.0, 2),
            'accuracy_rate': round(self.accuracy_rate or 0.0, 4),
            'rank': self.rank,
            'last_updated': _iso(self.last_updated),
        }


class Achievement(db.Model):
    __tablename__ = 'achievements'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'achievement_type', name='uq_achievements_player_type'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    achievement_type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    unlocked_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    # `metadata` is reserved on declarative classes
    meta_json = db.Column('metadata', db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'achievement_type': self.achievement_type,
            'title': self.title,
            'description': self.description,
            'unlocked_at': _iso(self.unlocked_at),
            'metadata': json.loads(self.meta_json) if self.meta_json else {},
        }


class FeatureFlag(db.Model):
    __tablename__ = 'feature_flags'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    enabled = db.Column(db.Boolean, nullable=False, default=False)
    description = db.Column(db.Text, nullable=True)
    enabled_at = db.Column(db.DateTime, nullable=True)
    disabled_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @validates('name')
    def _validate_name(self, key, value):
        if not value or not FEATURE_NAME_RE.match(value):
            raise ValueError(f"feature name '{value}' must be kebab-case (e.g. idiom-scramble)")
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'enabled': self.enabled,
            'description': self.description,
            'enabled_at': _iso(self.enabled_at),
            'disabled_at': _iso(self.disabled_at),
            'updated_at': _iso(self.updated_at),
        }


class GameSession(db.Model):
    __tablename__ = 'game_sessions'
    __table_args__ = (
        db.CheckConstraint("status IN ('ACTIVE', 'COMPLETED', 'ABANDONED', 'EXPIRED')", name='ck_game_sessions_status'),
        db.CheckConstraint("game_type IN ('IDIOM', 'SENTENCE')", name='ck_game_sessions_game_type'),
        db.CheckConstraint('score IS NULL OR score >= 0', name='ck_game_sessions_score'),
        db.Index('ix_game_sessions_player_status', 'player_id', 'status'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    game_type = db.Column(db.String(20), nullable=False)
    difficulty = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='ACTIVE')
    started_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_activity_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Integer, nullable=True)
    session_data = db.Column(db.Text, nullable=True)  # JSON: answer, scrambled tokens, time limit
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version = db.Column(db.Integer, nullable=False)

    hint_usages = db.relationship('HintUsage', backref='session', lazy='dynamic',
                                  cascade='all, delete-orphan', passive_deletes=True)

    __mapper_args__ = {'version_id_col': version}

    @property
    def data(self):
        return json.loads(self.session_data) if self.session_data else {}

    @data.setter
    def data(self, value):
        self.session_data = json.dumps(value, ensure_ascii=False)

    @property
    def is_active(self):
        return self.status == SessionStatus.ACTIVE.value

    def to_dict(self):
        data = self.data
        return {
            'id': self.id,
            'player_id': self.player_id,
            'game_type': self.game_type,
            'difficulty': self.difficulty,
            'status': self.status,
            'started_at': _iso(self.started_at),
            'last_activity_at': _iso(self.last_activity_at),
            'completed_at': _iso(self.completed_at),
            'score': self.score,
            'scrambled': data.get('scrambled'),
            'time_limit': data.get('time_limit'),
        }


class HintUsage(db.Model):
    __tablename__ = 'hint_usage'
    __table_args__ = (
        db.CheckConstraint('hint_level >= 1 AND hint_level <= 3', name='ck_hint_usage_level'),
        db.CheckConstraint('penalty_applied >= 0', name='ck_hint_usage_penalty'),
    )
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_sessions.id', ondelete='CASCADE'), nullable=False, index=True)
    hint_level = db.Column(db.Integer, nullable=False)
    penalty_applied = db.Column(db.Integer, nullable=False)
    hint_content = db.Column(db.Text, nullable=True)
    used_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @validates('hint_level')
    def _validate_level(self, key, value):
        return _check_range(key, value, 1, MAX_HINTS)

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'hint_level': self.hint_level,
            'penalty_applied': self.penalty_applied,
            'hint_content': self.hint_content,
            'used_at': _iso(self.used_at),
        }


class ConfigCache(db.Model):
    __tablename__ = 'config_cache'
    __table_args__ = (
        db.CheckConstraint("config_type IN ('IDIOM', 'SENTENCE', 'FEATURE_FLAG', 'GAME_SETTING')",
                           name='ck_config_cache_type'),
    )
    id = db.Column(db.Integer, primary_key=True)
    config_key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    config_value = db.Column(db.Text, nullable=False)
    config_type = db.Column(db.String(20), nullable=False)
    checksum = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    last_loaded_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'config_key': self.config_key,
            'config_type': self.config_type,
            'checksum': self.checksum,
            'description': self.description,
            'last_loaded_at': _iso(self.last_loaded_at),
            'size': len(self.config_value or ''),
        }
