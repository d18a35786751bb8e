"""Create ledger schema.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

Creates users, packages, investments, referral_links and transactions,
including the partial unique index that allows one active investment
per user.
"""

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision = '20261019_000001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create ledger tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('invite_code', sa.String(20), nullable=False),
        sa.Column('referred_by_code', sa.String(20), nullable=True),
        sa.Column('main_balance', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('profit_balance', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('referral_profit', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('bonus_balance', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('main_balance >= 0', name='check_user_main_balance_non_negative'),
        sa.CheckConstraint('profit_balance >= 0', name='check_user_profit_balance_non_negative'),
        sa.CheckConstraint('referral_profit >= 0', name='check_user_referral_profit_non_negative'),
        sa.CheckConstraint('bonus_balance >= 0', name='check_user_bonus_balance_non_negative'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_invite_code', 'users', ['invite_code'], unique=True)
    op.create_index('ix_users_referred_by_code', 'users', ['referred_by_code'])

    op.create_table(
        'packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('min_deposit', sa.Numeric(18, 8), nullable=False),
        sa.Column('max_deposit', sa.Numeric(18, 8), nullable=False),
        sa.Column('daily_rate', sa.Numeric(10, 4), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sa.CheckConstraint('min_deposit >= 0', name='check_package_min_non_negative'),
        sa.CheckConstraint('max_deposit >= min_deposit', name='check_package_range_order'),
        sa.CheckConstraint('daily_rate >= 0', name='check_package_rate_non_negative'),
    )
    op.create_index('ix_packages_min_deposit', 'packages', ['min_deposit'])

    op.create_table(
        'investments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('daily_rate', sa.DECIMAL(10, 4), nullable=False),
        sa.Column('total_profit', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('last_accrued_on', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id'], ondelete='RESTRICT'),
        sa.CheckConstraint('amount > 0', name='check_investment_amount_positive'),
        sa.CheckConstraint('total_profit >= 0', name='check_investment_total_profit_non_negative'),
        sa.CheckConstraint("status IN ('active', 'canceled')", name='check_investment_status'),
    )
    op.create_index('ix_investments_user_id', 'investments', ['user_id'])
    op.create_index('ix_investments_package_id', 'investments', ['package_id'])
    op.create_index('ix_investments_status', 'investments', ['status'])
    op.create_index(
        'uq_investment_active_user',
        'investments',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'referral_links',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=False),
        sa.Column('referred_user_id', sa.Integer(), nullable=False),
        sa.Column('profit_earned', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referred_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('referred_user_id'),
        sa.UniqueConstraint('referrer_id', 'referred_user_id', name='uq_referral_link_pair'),
        sa.CheckConstraint('referrer_id <> referred_user_id', name='check_referral_not_self'),
        sa.CheckConstraint('profit_earned >= 0', name='check_referral_profit_non_negative'),
    )
    op.create_index('ix_referral_links_referrer_id', 'referral_links', ['referrer_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('payment_id', sa.String(100), nullable=True),
        sa.Column('tx_hash', sa.String(255), nullable=True),
        sa.Column('status_url', sa.String(500), nullable=True),
        sa.Column('request_id', sa.String(100), nullable=True),
        sa.Column('cascaded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('source_user_id', sa.Integer(), nullable=True),
        sa.Column('source_transaction_id', sa.Integer(), nullable=True),
        sa.Column('referral_level', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['source_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(
            ['source_transaction_id'], ['transactions.id'], ondelete='SET NULL'
        ),
        sa.UniqueConstraint('request_id'),
        sa.CheckConstraint('amount >= 0', name='check_transaction_amount_non_negative'),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'failed')",
            name='check_transaction_status',
        ),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index('ix_transactions_payment_id', 'transactions', ['payment_id'])
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'])
    op.create_index('idx_transaction_type_created', 'transactions', ['type', 'created_at'])
    op.create_index('idx_transaction_type_cascaded', 'transactions', ['type', 'cascaded'])


def downgrade() -> None:
    """Drop ledger tables."""
    op.drop_table('transactions')
    op.drop_table('referral_links')
    op.drop_table('investments')
    op.drop_table('packages')
    op.drop_table('users')
