"""create_bluefin_tables

Revision ID: 2026_10_19_101500
Revises:
Create Date: 2026-10-19 10:15:04.112871

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '2026_10_19_101500'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'position_updates',
        sa.Column('digest', sa.Text(), nullable=False),
        sa.Column('event_digest', sa.Text(), nullable=False),
        sa.Column('sender', sa.Text(), nullable=False),
        sa.Column('checkpoint', sa.BigInteger(), nullable=False),
        sa.Column('checkpoint_timestamp_ms', sa.BigInteger(), nullable=False),
        sa.Column('package', sa.Text(), nullable=False),
        sa.Column('pool_id', sa.Text(), nullable=False),
        sa.Column('position_id', sa.Text(), nullable=False),
        sa.Column('tick_lower', sa.Integer(), nullable=False),
        sa.Column('tick_upper', sa.Integer(), nullable=False),
        sa.Column('liquidity', sa.Text(), nullable=False),
        sa.Column('price', sa.Text(), nullable=False),
        sa.Column('is_close', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('event_digest'),
    )
    op.create_index(
        'ix_position_updates_sender_position_checkpoint',
        'position_updates',
        ['sender', 'position_id', 'checkpoint'],
    )

    op.create_table(
        'sui_error_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('txn_digest', sa.Text(), nullable=False),
        sa.Column('sender_address', sa.Text(), nullable=False),
        sa.Column('timestamp_ms', sa.BigInteger(), nullable=False),
        sa.Column('failure_status', sa.Text(), nullable=False),
        sa.Column('package', sa.Text(), nullable=False),
        sa.Column('cmd_idx', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('txn_digest', name='uq_sui_error_transactions_txn_digest'),
    )

    op.create_table(
        'progress_store',
        sa.Column('task_name', sa.Text(), nullable=False),
        sa.Column('checkpoint', sa.BigInteger(), nullable=False),
        sa.Column('target_checkpoint', sa.BigInteger(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('task_name'),
    )


def downgrade() -> None:
    op.drop_table('progress_store')
    op.drop_table('sui_error_transactions')
    op.drop_index('ix_position_updates_sender_position_checkpoint', table_name='position_updates')
    op.drop_table('position_updates')
