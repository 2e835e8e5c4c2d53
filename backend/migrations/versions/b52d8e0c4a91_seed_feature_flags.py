"""seed default feature flags

Revision ID: b52d8e0c4a91
Revises: 3a7c1e9b2f10
Create Date: 2025-10-02 10:05:00.000000

"""
from datetime import datetime, timezone

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b52d8e0c4a91'
down_revision = '3a7c1e9b2f10'
branch_labels = None
depends_on = None

FLAGS = [
    ('idiom-scramble', True, 'Idiom scramble game mode'),
    ('sentence-crafting', True, 'Sentence crafting game mode'),
    ('leaderboard', True, 'Leaderboards and rankings'),
    ('hints', True, 'Three-level hint system'),
    ('achievements', True, 'Achievement unlocks'),
    ('audio-pronunciation', False, 'Audio pronunciation of answers'),
    ('practice-mode', False, 'Untimed practice mode'),
    ('daily-challenge', False, 'Daily challenge question'),
    ('multiplayer', False, 'Head-to-head multiplayer'),
    ('no-repeat-questions', False, 'Skip recently shown questions'),
]

feature_flags = sa.table(
    'feature_flags',
    sa.column('name', sa.String),
    sa.column('enabled', sa.Boolean),
    sa.column('description', sa.Text),
    sa.column('enabled_at', sa.DateTime),
    sa.column('created_at', sa.DateTime),
    sa.column('updated_at', sa.DateTime),
)


def upgrade():
    bind = op.get_bind()
    existing = {row[0] for row in bind.execute(sa.text('SELECT name FROM feature_flags'))}
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    rows = [
        {'name': name, 'enabled': enabled, 'description': description,
         'enabled_at': now if enabled else None, 'created_at': now, 'updated_at': now}
        for name, enabled, description in FLAGS if name not in existing
    ]
    if rows:
        op.bulk_insert(feature_flags, rows)


def downgrade():
    names = ', '.join(f"'{name}'" for name, _, _ in FLAGS)
    op.execute(f"DELETE FROM feature_flags WHERE name IN ({names})")
