import re

import pytest

from fireguardian.notifications.log_repository import NotificationLogRepository
from fireguardian.tickets.repository import TicketRepository
from packages.db import EmailLogTable, MaintenanceTicketTable, SmsLogTable, SmsUsageStatsTable


def _insert_columns(sql: str) -> list[str]:
    match = re.search(r"INSERT INTO \w+ \((.*?)\)", sql, re.S)
    assert match is not None
    return [column.strip() for column in match.group(1).split(",")]


@pytest.mark.parametrize(
    ("table", "sql"),
    [
        (MaintenanceTicketTable, TicketRepository._INSERT_TICKET_SQL),
        (EmailLogTable, NotificationLogRepository._INSERT_EMAIL_LOG_SQL),
        (SmsLogTable, NotificationLogRepository._INSERT_SMS_LOG_SQL),
    ],
)
def test_insert_statements_match_table_columns(table, sql):
    columns = set(table.__table__.columns.keys())
    assert set(_insert_columns(sql)) <= columns


def test_email_log_metadata_column_keeps_sql_name():
    assert "metadata" in EmailLogTable.__table__.columns
    assert EmailLogTable.__tablename__ == "email_logs"


def test_ticket_number_is_unique():
    column = MaintenanceTicketTable.__table__.columns["ticket_number"]
    assert column.unique
    assert not column.nullable


def test_sms_usage_upsert_matches_table_columns():
    sql = NotificationLogRepository._UPSERT_SMS_USAGE_SQL.format(
        type_column=", compliance_alerts", type_value=", $2", type_update=""
    )
    columns = set(SmsUsageStatsTable.__table__.columns.keys())
    assert set(_insert_columns(sql)) <= columns
    assert SmsUsageStatsTable.__table__.columns["date"].unique
