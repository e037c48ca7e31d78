"""Initial reward ledger schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2025-09-02 10:14:27.512344

"""
from alembic import op
import sqlalchemy as sa

from stocky.database.types import DecimalType, UTCDateTime

# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'reward',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('stock_symbol', sa.String(length=32), nullable=False),
        sa.Column('shares', DecimalType(precision=20, scale=6), nullable=False),
        sa.Column('rewarded_at', UTCDateTime(), nullable=False),
        sa.Column('unique_hash', sa.String(length=64), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('unique_hash', name='uq_reward_unique_hash'),
        sa.UniqueConstraint('idempotency_key', name='uq_reward_idempotency_key'),
    )
    op.create_index('idx_reward_user_rewarded_at', 'reward', ['user_id', 'rewarded_at'])
    op.create_index('idx_reward_stock_symbol', 'reward', ['stock_symbol'])

    op.create_table(
        'ledger_entries',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('reward_id', sa.String(length=36), nullable=False),
        sa.Column('event_type', sa.String(length=16), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('stock_symbol', sa.String(length=32), nullable=False),
        sa.Column('shares', DecimalType(precision=20, scale=6), nullable=False),
        sa.Column('inr_amount', DecimalType(), nullable=False),
        sa.Column('fee_type', sa.String(length=16), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['reward_id'], ['reward.id']),
        sa.CheckConstraint("event_type IN ('reward', 'fee')", name='ck_ledger_event_type'),
        sa.CheckConstraint("fee_type IN ('', 'brokerage', 'STT')", name='ck_ledger_fee_type'),
    )
    op.create_index('idx_ledger_entries_reward_id', 'ledger_entries', ['reward_id'])
    op.create_index('idx_ledger_entries_user_id', 'ledger_entries', ['user_id'])

    op.create_table(
        'stock_prices',
        sa.Column('symbol', sa.String(length=32), nullable=False),
        sa.Column('price', DecimalType(precision=20, scale=8), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint('symbol'),
    )

    op.create_table(
        'stock_price_history',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('symbol', sa.String(length=32), nullable=False),
        sa.Column('price', DecimalType(precision=20, scale=8), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_stock_price_history_symbol_updated', 'stock_price_history', ['symbol', 'updated_at'])


def downgrade() -> None:
    op.drop_index('idx_stock_price_history_symbol_updated', table_name='stock_price_history')
    op.drop_table('stock_price_history')
    op.drop_table('stock_prices')
    op.drop_index('idx_ledger_entries_user_id', table_name='ledger_entries')
    op.drop_index('idx_ledger_entries_reward_id', table_name='ledger_entries')
    op.drop_table('ledger_entries')
    op.drop_index('idx_reward_stock_symbol', table_name='reward')
    op.drop_index('idx_reward_user_rewarded_at', table_name='reward')
    op.drop_table('reward')
