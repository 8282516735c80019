"""create_pos_tables

Revision ID: 5c1e7a9b3d20
Revises:
Create Date: 2025-01-19 09:12:44.381207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5c1e7a9b3d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


service_category = sa.Enum('barbing', 'charging', 'computer', name='service_category')
payment_mode = sa.Enum('cash', 'transfer', 'pos', 'cashback', name='payment_mode')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'admins',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admins_username', 'admins', ['username'], unique=True)

    op.create_table(
        'customers',
        sa.Column('phone_number', sa.String(length=20), nullable=False),
        sa.Column('customer_name', sa.String(length=100), nullable=False),
        sa.Column('total_transactions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_spent', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('cashback_balance', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('cashback_balance >= 0', name='customer_cashback_non_negative'),
        sa.PrimaryKeyConstraint('phone_number'),
    )
    op.create_index('ix_customers_created_at', 'customers', ['created_at'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('receipt_number', sa.String(length=20), nullable=False,
                  comment='CFT + YYYYMMDD + 3-digit daily sequence'),
        sa.Column('customer_name', sa.String(length=100), nullable=False),
        sa.Column('customer_phone', sa.String(length=20), nullable=False),
        sa.Column('service_category', service_category, nullable=False),
        sa.Column('service_details', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='Priced cart snapshot tagged by category'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False,
                  comment='Amount actually collected (0 for cashback redemption)'),
        sa.Column('payment_mode', payment_mode, nullable=False),
        sa.Column('cashback_used', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('cashback_earned', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('additional_notes', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('total_amount >= 0', name='transaction_total_non_negative'),
        sa.CheckConstraint('cashback_used >= 0', name='transaction_cashback_used_non_negative'),
        sa.CheckConstraint('cashback_earned >= 0', name='transaction_cashback_earned_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('receipt_number'),
    )
    op.create_index('ix_transactions_customer_phone', 'transactions', ['customer_phone'])
    op.create_index('ix_transactions_service_category', 'transactions', ['service_category'])
    op.create_index('ix_transactions_transaction_date', 'transactions', ['transaction_date'])

    op.create_table(
        'receipt_counters',
        sa.Column('day', sa.String(length=8), nullable=False),
        sa.Column('last_sequence', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('day'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('receipt_counters')

    op.drop_index('ix_transactions_transaction_date', table_name='transactions')
    op.drop_index('ix_transactions_service_category', table_name='transactions')
    op.drop_index('ix_transactions_customer_phone', table_name='transactions')
    op.drop_table('transactions')

    op.drop_index('ix_customers_created_at', table_name='customers')
    op.drop_table('customers')

    op.drop_index('ix_admins_username', table_name='admins')
    op.drop_table('admins')

    # Enum types outlive the tables that used them
    payment_mode.drop(op.get_bind(), checkfirst=True)
    service_category.drop(op.get_bind(), checkfirst=True)
