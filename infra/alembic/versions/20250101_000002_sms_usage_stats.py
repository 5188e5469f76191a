"""Daily SMS usage counters."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20250101_000002"
down_revision = "20250101_000001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sms_usage_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("date", sa.Date(), nullable=False, unique=True),
        sa.Column("total_sent", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_failed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("high_priority_tickets", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("compliance_alerts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("maintenance_reminders", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("sms_usage_stats")
