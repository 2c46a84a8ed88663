"""Partial index for active (not soft-deleted) profiles by Stripe customer (PostgreSQL only).

Revision ID: 003_profile_customer_idx
Revises: 002_webhook_dedup
Create Date: 2026-10-02

Webhook handlers look profiles up by stripe_customer_id on every billing event.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "003_profile_customer_idx"
down_revision: Union[str, None] = "002_webhook_dedup"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    if conn.dialect.name != "postgresql":
        return
    conn.execute(
        sa.text(
            """
            CREATE INDEX IF NOT EXISTS ix_profiles_active_customer
            ON profiles (stripe_customer_id)
            WHERE deleted_at IS NULL;
            """
        )
    )


def downgrade() -> None:
    conn = op.get_bind()
    if conn.dialect.name != "postgresql":
        return
    conn.execute(sa.text("DROP INDEX IF EXISTS ix_profiles_active_customer;"))
