"""Create invoices table

Revision ID: 20261017_000001
Revises: None
Create Date: 2026-10-17

Invoices with integer milli-unit amounts. The unique constraint on
pending_pay_units keeps pay amounts distinct among pending invoices.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261017_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the invoices table."""
    op.create_table(
        'invoices',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('requested_units', sa.BigInteger(), nullable=False),
        sa.Column('tag_units', sa.Integer(), nullable=False),
        sa.Column('pay_units', sa.BigInteger(), nullable=False),
        sa.Column('pending_pay_units', sa.BigInteger(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'CONFIRMED', name='invoice_status', create_constraint=True),
            nullable=False,
            server_default='PENDING'
        ),
        sa.Column('to_address', sa.String(42), nullable=False),
        sa.Column('tx_hash', sa.String(66), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pending_pay_units', name='uq_invoices_pending_pay_units'),
    )

    # Create indexes for common queries
    op.create_index('ix_invoices_pay_units', 'invoices', ['pay_units'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_tx_hash', 'invoices', ['tx_hash'])
    op.create_index('ix_invoices_created_at', 'invoices', ['created_at'])


def downgrade() -> None:
    """Drop the invoices table."""
    op.drop_index('ix_invoices_created_at', table_name='invoices')
    op.drop_index('ix_invoices_tx_hash', table_name='invoices')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_pay_units', table_name='invoices')
    op.drop_table('invoices')
