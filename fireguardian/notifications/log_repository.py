from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping, Sequence

import asyncpg

from .templates import SmsMessageType

logger = logging.getLogger(__name__)

DEFAULT_SMS_DAILY_LIMIT = 1000

# Per-user opt-in column consulted for each message type, on top of the master toggle.
_PREFERENCE_COLUMNS: dict[SmsMessageType, str] = {
    SmsMessageType.HIGH_PRIORITY_TICKET: "sms_high_priority_tickets",
    SmsMessageType.COMPLIANCE_EXPIRING_7_DAYS: "sms_compliance_alerts",
    SmsMessageType.COMPLIANCE_EXPIRING_TODAY: "sms_compliance_alerts",
    SmsMessageType.MAINTENANCE_DUE_3_DAYS: "sms_maintenance_reminders",
    SmsMessageType.MAINTENANCE_OVERDUE: "sms_maintenance_reminders",
}

_USAGE_COLUMNS: dict[SmsMessageType, str] = {
    SmsMessageType.HIGH_PRIORITY_TICKET: "high_priority_tickets",
    SmsMessageType.COMPLIANCE_EXPIRING_7_DAYS: "compliance_alerts",
    SmsMessageType.COMPLIANCE_EXPIRING_TODAY: "compliance_alerts",
    SmsMessageType.MAINTENANCE_DUE_3_DAYS: "maintenance_reminders",
    SmsMessageType.MAINTENANCE_OVERDUE: "maintenance_reminders",
}


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(slots=True)
class EmailLogEntry:
    """One outbound email attempt."""

    recipient_email: str
    template_type: str
    subject: str
    status: str
    message_id: str | None = None
    error_message: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class SmsLogEntry:
    """One outbound SMS attempt for a single recipient."""

    user_id: int
    phone_number: str
    message: str
    message_type: str
    status: str
    dialog_response: str | None = None
    dialog_status_code: str | None = None
    error_message: str | None = None
    related_entity_type: str | None = None
    related_entity_id: int | None = None


class NotificationLogRepository:
    """Append-only store for notification attempts and SMS quota bookkeeping.

    ``log_email`` lets database errors propagate; the orchestrator is the error
    boundary for email jobs and counts them there. ``log_sms`` is called from inside
    the SMS gateway, which must never raise, so it reports failure as ``False``.
    """

    _CREATE_EMAIL_LOGS_SQL = """
    CREATE TABLE IF NOT EXISTS email_logs (
        id SERIAL PRIMARY KEY,
        recipient_email VARCHAR(255) NOT NULL,
        template_type VARCHAR(100) NOT NULL,
        subject VARCHAR(500) NOT NULL,
        status VARCHAR(20) NOT NULL CHECK (status IN ('sent', 'failed', 'pending')),
        message_id VARCHAR(255),
        error_message TEXT,
        sent_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb
    )
    """

    _CREATE_SMS_LOGS_SQL = """
    CREATE TABLE IF NOT EXISTS sms_logs (
        id SERIAL PRIMARY KEY,
        user_id INTEGER NOT NULL,
        phone_number VARCHAR(20) NOT NULL,
        message TEXT NOT NULL,
        message_type VARCHAR(50) NOT NULL,
        status VARCHAR(20) NOT NULL CHECK (status IN ('sent', 'failed', 'pending')),
        dialog_response TEXT,
        dialog_status_code VARCHAR(20),
        sent_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        error_message TEXT,
        related_entity_type VARCHAR(50),
        related_entity_id INTEGER
    )
    """

    _CREATE_SMS_USAGE_SQL = """
    CREATE TABLE IF NOT EXISTS sms_usage_stats (
        id SERIAL PRIMARY KEY,
        date DATE NOT NULL UNIQUE,
        total_sent INTEGER NOT NULL DEFAULT 0,
        total_failed INTEGER NOT NULL DEFAULT 0,
        high_priority_tickets INTEGER NOT NULL DEFAULT 0,
        compliance_alerts INTEGER NOT NULL DEFAULT 0,
        maintenance_reminders INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """

    _INSERT_EMAIL_LOG_SQL = """
    INSERT INTO email_logs (
        recipient_email, template_type, subject, status, message_id, error_message, sent_at, metadata
    )
    VALUES ($1, $2, $3, $4, $5, $6, CASE WHEN $4 = 'sent' THEN CURRENT_TIMESTAMP END, $7::jsonb)
    RETURNING id
    """

    _INSERT_SMS_LOG_SQL = """
    INSERT INTO sms_logs (
        user_id, phone_number, message, message_type, status, dialog_response, dialog_status_code,
        sent_at, error_message, related_entity_type, related_entity_id
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, CASE WHEN $5 = 'sent' THEN CURRENT_TIMESTAMP END, $8, $9, $10)
    """

    _SELECT_SMS_PREFERENCES_SQL = """
    SELECT id, sms_notifications_enabled, sms_high_priority_tickets, sms_compliance_alerts,
           sms_maintenance_reminders
    FROM "user"
    WHERE id = ANY($1::int[]) AND phone IS NOT NULL AND phone <> ''
    """

    _SELECT_SMS_DAILY_LIMIT_SQL = """
    SELECT setting_value FROM system_settings WHERE setting_key = 'sms_daily_limit'
    """

    _SELECT_SMS_USAGE_SQL = """
    SELECT total_sent FROM sms_usage_stats WHERE date = $1
    """

    _UPSERT_SMS_USAGE_SQL = """
    INSERT INTO sms_usage_stats (date, total_sent{type_column})
    VALUES ($1, $2{type_value})
    ON CONFLICT (date) DO UPDATE SET
        total_sent = sms_usage_stats.total_sent + $2{type_update},
        updated_at = CURRENT_TIMESTAMP
    """

    def __init__(self, pool: asyncpg.Pool, *, default_daily_limit: int = DEFAULT_SMS_DAILY_LIMIT) -> None:
        self._pool = pool
        self._default_daily_limit = default_daily_limit

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_EMAIL_LOGS_SQL)
            await connection.execute(self._CREATE_SMS_LOGS_SQL)
            await connection.execute(self._CREATE_SMS_USAGE_SQL)

    async def log_email(self, entry: EmailLogEntry) -> int:
        async with self._pool.acquire() as connection:
            log_id = await connection.fetchval(
                self._INSERT_EMAIL_LOG_SQL,
                entry.recipient_email,
                entry.template_type,
                entry.subject,
                entry.status,
                entry.message_id,
                entry.error_message,
                json.dumps(dict(entry.metadata), default=str),
            )
        return int(log_id)

    async def log_sms(self, entries: Sequence[SmsLogEntry]) -> bool:
        if not entries:
            return True
        rows = [
            (
                entry.user_id,
                entry.phone_number,
                entry.message,
                entry.message_type,
                entry.status,
                entry.dialog_response,
                entry.dialog_status_code,
                entry.error_message,
                entry.related_entity_type,
                entry.related_entity_id,
            )
            for entry in entries
        ]
        try:
            async with self._pool.acquire() as connection:
                await connection.executemany(self._INSERT_SMS_LOG_SQL, rows)
        except Exception:
            logger.exception("Failed to log %d SMS attempt(s)", len(rows))
            return False
        return True

    async def eligible_sms_user_ids(self, user_ids: Sequence[int], message_type: SmsMessageType) -> set[int]:
        """Return the users who have a phone and opted in to ``message_type``."""

        if not user_ids:
            return set()
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._SELECT_SMS_PREFERENCES_SQL, list(user_ids))
        preference = _PREFERENCE_COLUMNS.get(message_type)
        return {
            int(row["id"])
            for row in rows
            if row["sms_notifications_enabled"] and (preference is None or row[preference])
        }

    async def has_sms_capacity(self, count: int, *, day: date | None = None) -> bool:
        async with self._pool.acquire() as connection:
            raw_limit = await connection.fetchval(self._SELECT_SMS_DAILY_LIMIT_SQL)
            used = await connection.fetchval(self._SELECT_SMS_USAGE_SQL, day or _utc_today())
        try:
            limit = int(raw_limit) if raw_limit else self._default_daily_limit
        except ValueError:
            logger.warning("Ignoring invalid sms_daily_limit setting %r", raw_limit)
            limit = self._default_daily_limit
        return (used or 0) + count <= limit

    async def record_sms_usage(self, count: int, message_type: SmsMessageType, *, day: date | None = None) -> None:
        column = _USAGE_COLUMNS.get(message_type)
        sql = self._UPSERT_SMS_USAGE_SQL.format(
            type_column=f", {column}" if column else "",
            type_value=", $2" if column else "",
            type_update=f",\n        {column} = sms_usage_stats.{column} + $2" if column else "",
        )
        async with self._pool.acquire() as connection:
            await connection.execute(sql, day or _utc_today(), count)
