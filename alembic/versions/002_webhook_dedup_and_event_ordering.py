"""Record processed Stripe events and the newest event applied per subscription (idempotent).

Revision ID: 002_webhook_dedup
Revises: 001_initial
Create Date: 2026-09-15

webhook_events lets redelivered events be acknowledged without re-applying them;
subscriptions.last_event_at lets out-of-order subscription updates be ignored.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_webhook_dedup"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    tables = inspector.get_table_names()

    if "webhook_events" not in tables:
        op.create_table(
            "webhook_events",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("type", sa.String(), nullable=False),
            sa.Column("received_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )

    if "subscriptions" in tables:
        columns = {c["name"] for c in inspector.get_columns("subscriptions")}
        if "last_event_at" not in columns:
            op.add_column("subscriptions", sa.Column("last_event_at", sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    op.drop_column("subscriptions", "last_event_at")
    op.drop_table("webhook_events")
