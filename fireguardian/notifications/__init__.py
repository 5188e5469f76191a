"""Notification delivery for ticket lifecycle events."""

from .dispatcher import NotificationDispatcher
from .email import EmailResult, SmtpEmailGateway
from .log_repository import EmailLogEntry, NotificationLogRepository, SmsLogEntry
from .orchestrator import NotificationEvent, NotificationJob, NotificationOrchestrator
from .sms import DialogSmsGateway, SmsRecipient, SmsResult

__all__ = [
    "DialogSmsGateway",
    "EmailLogEntry",
    "EmailResult",
    "NotificationDispatcher",
    "NotificationEvent",
    "NotificationJob",
    "NotificationLogRepository",
    "NotificationOrchestrator",
    "SmsLogEntry",
    "SmsRecipient",
    "SmsResult",
    "SmtpEmailGateway",
]
