"""create accounts, wallets, locked conversions and transactions

Revision ID: 3b1f7c2a9d41
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3b1f7c2a9d41'
down_revision = None
branch_labels = None
depends_on = None

transaction_type = sa.Enum(
    'IMPORT', 'CONVERT_FROM', 'CONVERT_TO', 'LOCK_FROM', 'LOCK_TO', 'UNLOCK_FROM', 'UNLOCK_TO',
    name='transactiontype',
)
locked_conversion_status = sa.Enum('ACTIVE', 'UNLOCKED', name='lockedconversionstatus')


def upgrade() -> None:
    # Create accounts table
    op.create_table(
        'accounts',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_accounts_id'), 'accounts', ['id'], unique=False)
    op.create_index(op.f('ix_accounts_email'), 'accounts', ['email'], unique=True)

    # Create wallets table
    op.create_table(
        'wallets',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('balance', sa.Numeric(precision=18, scale=2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('balance >= 0', name='ck_wallets_balance_non_negative'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_wallets_id'), 'wallets', ['id'], unique=False)
    op.create_index(op.f('ix_wallets_account_id'), 'wallets', ['account_id'], unique=False)

    # Create locked_conversions table
    op.create_table(
        'locked_conversions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('source_wallet_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('target_wallet_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('source_currency', sa.String(length=3), nullable=False),
        sa.Column('target_currency', sa.String(length=3), nullable=False),
        sa.Column('source_amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('target_amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column('fee', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('fee_percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('status', locked_conversion_status, nullable=False),
        sa.Column('lock_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('unlock_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('actual_unlock_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_wallet_id'], ['wallets.id']),
        sa.ForeignKeyConstraint(['target_wallet_id'], ['wallets.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_locked_conversions_id'), 'locked_conversions', ['id'], unique=False)
    op.create_index(op.f('ix_locked_conversions_account_id'), 'locked_conversions', ['account_id'], unique=False)
    op.create_index(op.f('ix_locked_conversions_status'), 'locked_conversions', ['status'], unique=False)
    op.create_index('ix_locked_conversions_account_created', 'locked_conversions', ['account_id', 'created_at'], unique=False)

    # Create transactions table
    op.create_table(
        'transactions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', transaction_type, nullable=False),
        sa.Column('amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('wallet_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('source_wallet_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('exchange_rate', sa.Numeric(precision=18, scale=8), nullable=True),
        sa.Column('locked_conversion_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_wallet_id'], ['wallets.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['locked_conversion_id'], ['locked_conversions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_transactions_id'), 'transactions', ['id'], unique=False)
    op.create_index(op.f('ix_transactions_wallet_id'), 'transactions', ['wallet_id'], unique=False)
    op.create_index(op.f('ix_transactions_locked_conversion_id'), 'transactions', ['locked_conversion_id'], unique=False)
    op.create_index('ix_transactions_wallet_created', 'transactions', ['wallet_id', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_transactions_wallet_created', table_name='transactions')
    op.drop_index(op.f('ix_transactions_locked_conversion_id'), table_name='transactions')
    op.drop_index(op.f('ix_transactions_wallet_id'), table_name='transactions')
    op.drop_index(op.f('ix_transactions_id'), table_name='transactions')
    op.drop_table('transactions')

    op.drop_index('ix_locked_conversions_account_created', table_name='locked_conversions')
    op.drop_index(op.f('ix_locked_conversions_status'), table_name='locked_conversions')
    op.drop_index(op.f('ix_locked_conversions_account_id'), table_name='locked_conversions')
    op.drop_index(op.f('ix_locked_conversions_id'), table_name='locked_conversions')
    op.drop_table('locked_conversions')

    op.drop_index(op.f('ix_wallets_account_id'), table_name='wallets')
    op.drop_index(op.f('ix_wallets_id'), table_name='wallets')
    op.drop_table('wallets')

    op.drop_index(op.f('ix_accounts_email'), table_name='accounts')
    op.drop_index(op.f('ix_accounts_id'), table_name='accounts')
    op.drop_table('accounts')

    transaction_type.drop(op.get_bind(), checkfirst=True)
    locked_conversion_status.drop(op.get_bind(), checkfirst=True)
