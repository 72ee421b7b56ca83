"""initial schema: users, wallets, transactions

Revision ID: 20250101_000001
Revises:
Create Date: 2025-01-01 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20250101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'wallets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('address', sa.String(length=42), nullable=False),
        sa.Column('encrypted_private_key', sa.Text(), nullable=False),
        sa.Column(
            'network', sa.String(length=50), nullable=False,
            server_default='sepolia',
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_wallets_user_id', 'wallets', ['user_id'])
    op.create_index('ix_wallets_address', 'wallets', ['address'], unique=True)

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('wallet_id', sa.Integer(), nullable=False),
        sa.Column('transaction_hash', sa.String(length=66), nullable=False),
        sa.Column('from_address', sa.String(length=42), nullable=False),
        sa.Column('to_address', sa.String(length=42), nullable=False),
        sa.Column('amount', sa.String(length=78), nullable=False),
        sa.Column('gas_price', sa.String(length=78), nullable=True),
        sa.Column('gas_used', sa.String(length=78), nullable=True),
        sa.Column(
            'status', sa.String(length=20), nullable=False,
            server_default='pending',
        ),
        sa.Column('block_number', sa.BigInteger(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'failed')",
            name='check_transaction_status',
        ),
        sa.ForeignKeyConstraint(
            ['wallet_id'], ['wallets.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_transactions_wallet_id', 'transactions', ['wallet_id']
    )
    op.create_index(
        'ix_transactions_transaction_hash', 'transactions',
        ['transaction_hash'], unique=True,
    )
    op.create_index(
        'ix_transactions_from_address', 'transactions', ['from_address']
    )
    op.create_index(
        'ix_transactions_to_address', 'transactions', ['to_address']
    )
    op.create_index('ix_transactions_status', 'transactions', ['status'])


def downgrade() -> None:
    op.drop_index('ix_transactions_status', table_name='transactions')
    op.drop_index('ix_transactions_to_address', table_name='transactions')
    op.drop_index('ix_transactions_from_address', table_name='transactions')
    op.drop_index(
        'ix_transactions_transaction_hash', table_name='transactions'
    )
    op.drop_index('ix_transactions_wallet_id', table_name='transactions')
    op.drop_table('transactions')

    op.drop_index('ix_wallets_address', table_name='wallets')
    op.drop_index('ix_wallets_user_id', table_name='wallets')
    op.drop_table('wallets')

    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
