"""add progression target, pending decision and milestone times to game

Revision ID: c7d2e4f6a8b0
Revises: a1c3e5f7b9d1
Create Date: 2026-09-16 14:40:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c7d2e4f6a8b0'
down_revision = 'a1c3e5f7b9d1'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = {c['name'] for c in insp.get_columns('game')}
    with op.batch_alter_table('game') as batch_op:
        if 'target_bingo_count' not in cols:
            batch_op.add_column(sa.Column('target_bingo_count', sa.Integer(), nullable=False, server_default='1'))
        if 'pending_target' not in cols:
            batch_op.add_column(sa.Column('pending_target', sa.Integer(), nullable=True))
        if 'started_at' not in cols:
            batch_op.add_column(sa.Column('started_at', sa.DateTime(), nullable=False, server_default=sa.func.now()))
        for name in ('first_bingo_time', 'three_bingos_time', 'full_card_time', 'duration'):
            if name not in cols:
                batch_op.add_column(sa.Column(name, sa.Integer(), nullable=True))


def downgrade():
    with op.batch_alter_table('game') as batch_op:
        batch_op.drop_column('duration')
        batch_op.drop_column('full_card_time')
        batch_op.drop_column('three_bingos_time')
        batch_op.drop_column('first_bingo_time')
        batch_op.drop_column('started_at')
        batch_op.drop_column('pending_target')
        batch_op.drop_column('target_bingo_count')
