"""create players, scores, leaderboard, achievements, flags, sessions, config cache

Revision ID: 3a7c1e9b2f10
Revises:
Create Date: 2025-10-02 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c1e9b2f10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'players' not in existing_tables:
        op.create_table(
            'players',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=50), nullable=False),
            sa.Column('email', sa.String(length=100), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='PLAYER'),
            sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('last_login_at', sa.DateTime(), nullable=True),
            *_timestamps(),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.CheckConstraint("role IN ('PLAYER', 'ADMIN', 'MODERATOR')", name='ck_players_role'),
        )
        op.create_index('ix_players_username', 'players', ['username'], unique=True)
        op.create_index('ix_players_email', 'players', ['email'], unique=True)

    if 'idiom_scores' not in existing_tables:
        op.create_table(
            'idiom_scores',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
            sa.Column('idiom', sa.String(length=20), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('difficulty', sa.String(length=20), nullable=False),
            sa.Column('time_taken', sa.Integer(), nullable=False),
            sa.Column('hints_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('accuracy_rate', sa.Float(), nullable=False),
            sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.CheckConstraint('score >= 0', name='ck_idiom_scores_score'),
            sa.CheckConstraint('time_taken > 0', name='ck_idiom_scores_time_taken'),
            sa.CheckConstraint('hints_used >= 0 AND hints_used <= 3', name='ck_idiom_scores_hints_used'),
            sa.CheckConstraint('accuracy_rate >= 0 AND accuracy_rate <= 1', name='ck_idiom_scores_accuracy'),
        )
        op.create_index('ix_idiom_scores_player_created', 'idiom_scores', ['player_id', 'created_at'])

    if 'sentence_scores' not in existing_tables:
        op.create_table(
            'sentence_scores',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
            sa.Column('target_sentence', sa.Text(), nullable=False),
            sa.Column('player_sentence', sa.Text(), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('difficulty', sa.String(length=20), nullable=False),
            sa.Column('time_taken', sa.Integer(), nullable=False),
            sa.Column('hints_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('grammar_score', sa.Integer(), nullable=False),
            sa.Column('similarity_score', sa.Float(), nullable=False),
            sa.Column('accuracy_rate', sa.Float(), nullable=False),
            sa.Column('validation_errors', sa.Text(), nullable=True),
            sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.CheckConstraint('score >= 0', name='ck_sentence_scores_score'),
            sa.CheckConstraint('time_taken > 0', name='ck_sentence_scores_time_taken'),
            sa.CheckConstraint('hints_used >= 0 AND hints_used <= 3', name='ck_sentence_scores_hints_used'),
            sa.CheckConstraint('accuracy_rate >= 0 AND accuracy_rate <= 1', name='ck_sentence_scores_accuracy'),
            sa.CheckConstraint('grammar_score >= 0 AND grammar_score <= 100', name='ck_sentence_scores_grammar'),
            sa.CheckConstraint('similarity_score >= 0 AND similarity_score <= 1', name='ck_sentence_scores_similarity'),
        )
        op.create_index('ix_sentence_scores_player_created', 'sentence_scores', ['player_id', 'created_at'])

    if 'leaderboard' not in existing_tables:
        op.create_table(
            'leaderboard',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
            sa.Column('game_type', sa.String(length=20), nullable=False),
            sa.Column('difficulty', sa.String(length=20), nullable=False),
            sa.Column('total_score', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('games_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('average_score', sa.Float(), nullable=False, server_default='0'),
            sa.Column('accuracy_rate', sa.Float(), nullable=False, server_default='0'),
            sa.Column('rank', sa.Integer(), nullable=True),
            sa.Column('last_updated', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            *_timestamps(),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.UniqueConstraint('player_id', 'game_type', 'difficulty', name='uq_leaderboard_player_bucket'),
            sa.CheckConstraint("game_type IN ('IDIOM', 'SENTENCE')", name='ck_leaderboard_game_type'),
            sa.CheckConstraint('rank >= 1', name='ck_leaderboard_rank'),
            sa.CheckConstraint('total_score >= 0', name='ck_leaderboard_total_score'),
            sa.CheckConstraint('accuracy_rate >= 0 AND accuracy_rate <= 1', name='ck_leaderboard_accuracy'),
        )
        op.create_index('ix_leaderboard_bucket_score', 'leaderboard', ['game_type', 'difficulty', 'total_score'])

    if 'achievements' not in existing_tables:
        op.create_table(
            'achievements',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
            sa.Column('achievement_type', sa.String(length=50), nullable=False),
            sa.Column('title', sa.String(length=100), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('unlocked_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('metadata', sa.Text(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint('player_id', 'achievement_type', name='uq_achievements_player_type'),
        )

    if 'feature_flags' not in existing_tables:
        op.create_table(
            'feature_flags',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('enabled_at', sa.DateTime(), nullable=True),
            sa.Column('disabled_at', sa.DateTime(), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_feature_flags_name', 'feature_flags', ['name'], unique=True)

    if 'game_sessions' not in existing_tables:
        op.create_table(
            'game_sessions',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
            sa.Column('game_type', sa.String(length=20), nullable=False),
            sa.Column('difficulty', sa.String(length=20), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='ACTIVE'),
            sa.Column('started_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('last_activity_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('completed_at', sa.DateTime(), nullable=True),
            sa.Column('score', sa.Integer(), nullable=True),
            sa.Column('session_data', sa.Text(), nullable=True),
            *_timestamps(),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.CheckConstraint("status IN ('ACTIVE', 'COMPLETED', 'ABANDONED', 'EXPIRED')", name='ck_game_sessions_status'),
            sa.CheckConstraint("game_type IN ('IDIOM', 'SENTENCE')", name='ck_game_sessions_game_type'),
            sa.CheckConstraint('score IS NULL OR score >= 0', name='ck_game_sessions_score'),
        )
        op.create_index('ix_game_sessions_player_status', 'game_sessions', ['player_id', 'status'])

    if 'hint_usage' not in existing_tables:
        op.create_table(
            'hint_usage',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_sessions.id', ondelete='CASCADE'), nullable=False),
            sa.Column('hint_level', sa.Integer(), nullable=False),
            sa.Column('penalty_applied', sa.Integer(), nullable=False),
            sa.Column('hint_content', sa.Text(), nullable=True),
            sa.Column('used_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint('hint_level >= 1 AND hint_level <= 3', name='ck_hint_usage_level'),
            sa.CheckConstraint('penalty_applied >= 0', name='ck_hint_usage_penalty'),
        )
        op.create_index('ix_hint_usage_session_id', 'hint_usage', ['session_id'])

    if 'config_cache' not in existing_tables:
        op.create_table(
            'config_cache',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('config_key', sa.String(length=100), nullable=False),
            sa.Column('config_value', sa.Text(), nullable=False),
            sa.Column('config_type', sa.String(length=20), nullable=False),
            sa.Column('checksum', sa.String(length=64), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('last_loaded_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            *_timestamps(),
            sa.CheckConstraint("config_type IN ('IDIOM', 'SENTENCE', 'FEATURE_FLAG', 'GAME_SETTING')",
                               name='ck_config_cache_type'),
        )
        op.create_index('ix_config_cache_config_key', 'config_cache', ['config_key'], unique=True)


def downgrade():
    existing_tables = set(sa.inspect(op.get_bind()).get_table_names())
    # children first so foreign keys never dangle
    for table in ('hint_usage', 'game_sessions', 'achievements', 'leaderboard', 'sentence_scores',
                  'idiom_scores', 'feature_flags', 'config_cache', 'players'):
        if table in existing_tables:
            op.drop_table(table)
