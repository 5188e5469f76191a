"""Maintenance tickets and notification logs."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20250101_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "maintenance_ticket",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("ticket_number", sa.String(length=50), nullable=False, unique=True),
        sa.Column("vendor_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("equipment_instance_id", sa.Integer(), nullable=True),
        sa.Column("ticket_status", sa.String(length=20), nullable=False, server_default=sa.text("'open'")),
        sa.Column("support_type", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default=sa.text("'normal'")),
        sa.Column("issue_description", sa.Text(), nullable=False),
        sa.Column("resolution_description", sa.Text(), nullable=True),
        sa.Column("scheduled_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("assigned_technician", sa.Integer(), nullable=True),
        sa.Column("actual_hours", sa.Numeric(5, 2), nullable=True),
        sa.Column("cost", sa.Numeric(8, 2), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("resolved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("closed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint("ticket_status IN ('open', 'resolved', 'closed')", name="ck_maintenance_ticket_status"),
        sa.CheckConstraint("support_type IN ('maintenance', 'system', 'user')", name="ck_maintenance_ticket_type"),
        sa.CheckConstraint("priority IN ('low', 'normal', 'high')", name="ck_maintenance_ticket_priority"),
    )
    op.create_index("ix_maintenance_ticket_vendor_id", "maintenance_ticket", ["vendor_id"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("recipient_email", sa.String(length=255), nullable=False),
        sa.Column("template_type", sa.String(length=100), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("message_id", sa.String(length=255), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.CheckConstraint("status IN ('sent', 'failed', 'pending')", name="ck_email_logs_status"),
    )
    op.create_index("ix_email_logs_recipient_email", "email_logs", ["recipient_email"])

    op.create_table(
        "sms_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("message_type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("dialog_response", sa.Text(), nullable=True),
        sa.Column("dialog_status_code", sa.String(length=20), nullable=True),
        sa.Column("sent_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("related_entity_type", sa.String(length=50), nullable=True),
        sa.Column("related_entity_id", sa.Integer(), nullable=True),
        sa.CheckConstraint("status IN ('sent', 'failed', 'pending')", name="ck_sms_logs_status"),
    )
    op.create_index("ix_sms_logs_user_id", "sms_logs", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_sms_logs_user_id", table_name="sms_logs")
    op.drop_table("sms_logs")
    op.drop_index("ix_email_logs_recipient_email", table_name="email_logs")
    op.drop_table("email_logs")
    op.drop_index("ix_maintenance_ticket_vendor_id", table_name="maintenance_ticket")
    op.drop_table("maintenance_ticket")
