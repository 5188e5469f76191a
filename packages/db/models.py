"""SQLModel table definitions owned by the FireGuardian ticket service.

Platform tables such as ``vendors``, ``clients``, ``"user"`` and
``equipment_instance`` are managed elsewhere and only referenced by id here.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Column, Date, DateTime, Integer, Numeric, String, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


class MaintenanceTicketTable(SQLModel, table=True):
    """Maintenance and support tickets raised by vendors."""

    __tablename__ = "maintenance_ticket"

    id: int | None = Field(default=None, primary_key=True)
    ticket_number: str = Field(sa_column=Column(String(50), nullable=False, unique=True, index=True))
    vendor_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))
    client_id: int | None = Field(default=None, sa_column=Column(Integer, nullable=True))
    equipment_instance_id: int | None = Field(default=None, sa_column=Column(Integer, nullable=True))
    ticket_status: str = Field(default="open", sa_column=Column(String(20), nullable=False))
    support_type: str = Field(sa_column=Column(String(20), nullable=False))
    priority: str = Field(default="normal", sa_column=Column(String(20), nullable=False))
    issue_description: str = Field(sa_column=Column(Text, nullable=False))
    resolution_description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    scheduled_date: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    assigned_technician: int | None = Field(default=None, sa_column=Column(Integer, nullable=True))
    actual_hours: Decimal | None = Field(default=None, sa_column=Column(Numeric(5, 2), nullable=True))
    cost: Decimal | None = Field(default=None, sa_column=Column(Numeric(8, 2), nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    resolved_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    closed_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class EmailLogTable(SQLModel, table=True):
    """One row per outbound email attempt."""

    __tablename__ = "email_logs"

    id: int | None = Field(default=None, primary_key=True)
    recipient_email: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    template_type: str = Field(sa_column=Column(String(100), nullable=False))
    subject: str = Field(sa_column=Column(String(500), nullable=False))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    message_id: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    error_message: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    sent_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    metadata_: dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON, nullable=False))


class SmsLogTable(SQLModel, table=True):
    """One row per SMS recipient per send attempt."""

    __tablename__ = "sms_logs"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))
    phone_number: str = Field(sa_column=Column(String(20), nullable=False))
    message: str = Field(sa_column=Column(Text, nullable=False))
    message_type: str = Field(sa_column=Column(String(50), nullable=False))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    dialog_response: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    dialog_status_code: str | None = Field(default=None, sa_column=Column(String(20), nullable=True))
    sent_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    error_message: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    related_entity_type: str | None = Field(default=None, sa_column=Column(String(50), nullable=True))
    related_entity_id: int | None = Field(default=None, sa_column=Column(Integer, nullable=True))


class SmsUsageStatsTable(SQLModel, table=True):
    """Per-day SMS totals used to enforce the daily sending limit."""

    __tablename__ = "sms_usage_stats"

    id: int | None = Field(default=None, primary_key=True)
    usage_date: date = Field(sa_column=Column("date", Date, nullable=False, unique=True))
    total_sent: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    total_failed: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    high_priority_tickets: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    compliance_alerts: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    maintenance_reminders: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
