"""create admin_log audit table

Revision ID: 3c7a91d0b2e4
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7a91d0b2e4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'admin_log' in insp.get_table_names():
        return
    op.create_table(
        'admin_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.Column('source', sa.String(length=32), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('actor', sa.String(length=64), nullable=True),
        sa.Column('detail', sa.Text(), nullable=True),
    )
    with op.batch_alter_table('admin_log') as batch_op:
        batch_op.create_index('ix_admin_log_created_at', ['created_at'])


def downgrade():
    with op.batch_alter_table('admin_log') as batch_op:
        batch_op.drop_index('ix_admin_log_created_at')
    op.drop_table('admin_log')
