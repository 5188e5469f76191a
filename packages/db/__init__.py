"""Database models and utilities."""

from .models import EmailLogTable, MaintenanceTicketTable, SmsLogTable, SmsUsageStatsTable

__all__ = [
    "EmailLogTable",
    "MaintenanceTicketTable",
    "SmsLogTable",
    "SmsUsageStatsTable",
]
