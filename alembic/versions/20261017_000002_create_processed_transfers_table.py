"""Create processed_transfers table

Revision ID: 20261017_000002
Revises: 20261017_000001
Create Date: 2026-10-17

Deduplication ledger: one row per incoming transfer already reconciled.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261017_000002"
down_revision: Union[str, None] = "20261017_000001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "processed_transfers",
        sa.Column("tx_id", sa.String(66), nullable=False),
        sa.Column("seen_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("tx_id"),
    )
    op.create_index("ix_processed_transfers_seen_at", "processed_transfers", ["seen_at"])


def downgrade() -> None:
    op.drop_index("ix_processed_transfers_seen_at", table_name="processed_transfers")
    op.drop_table("processed_transfers")
