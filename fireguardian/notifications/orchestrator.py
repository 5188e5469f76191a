"""Compose and deliver ticket notifications.

The orchestrator always works from a fresh, vendor-scoped projection of the
ticket so messages reflect the state at send time. Each recipient is delivered
and logged independently; one failing recipient never affects another.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

from opentelemetry import trace

from fireguardian.metrics import MetricsRegistry, register_default_metrics
from fireguardian.metrics.definitions import (
    NOTIFICATION_ATTEMPTS,
    NOTIFICATION_FAILURES,
    NOTIFICATION_JOB_DURATION,
)
from fireguardian.tickets.models import NotificationContact, NotificationContext

from .email import EmailGateway, EmailResult
from .log_repository import EmailLogEntry
from .sms import SmsGateway, SmsRecipient
from .templates import (
    DEFAULT_EQUIPMENT_NAME,
    DEFAULT_SCHEDULED_DATE,
    DEFAULT_SERIAL_NUMBER,
    DEFAULT_TECHNICIAN_NAME,
    EmailTemplateType,
    MaintenanceCompletedEmail,
    SmsMessageType,
    TicketCreatedEmail,
    TicketUpdatedEmail,
    email_subject,
    render_sms,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

TICKET_ENTITY_TYPE = "ticket"


class NotificationEvent(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    COMPLETED = "completed"
    HIGH_PRIORITY_ALERT = "high_priority_alert"


@dataclass(slots=True, frozen=True)
class NotificationJob:
    event: NotificationEvent
    ticket_id: int
    vendor_id: int
    update_reason: str | None = None


class NotificationSource(Protocol):
    async def get_notification_context(self, ticket_id: int, vendor_id: int) -> NotificationContext | None: ...


class EmailLogWriter(Protocol):
    async def log_email(self, entry: EmailLogEntry) -> int: ...


def _format_date(value: datetime | None, default: str) -> str:
    if value is None:
        return default
    return value.strftime("%Y-%m-%d")


class NotificationOrchestrator:
    def __init__(
        self,
        source: NotificationSource,
        *,
        email_gateway: EmailGateway,
        sms_gateway: SmsGateway,
        log_writer: EmailLogWriter | None = None,
        frontend_url: str = "http://localhost:3000",
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._source = source
        self._email_gateway = email_gateway
        self._sms_gateway = sms_gateway
        self._log_writer = log_writer
        self._frontend_url = frontend_url.rstrip("/")
        self.metrics = register_default_metrics(metrics)

    async def handle(self, job: NotificationJob) -> None:
        with tracer.start_as_current_span("notifications.handle") as span, self.metrics.timed(
            NOTIFICATION_JOB_DURATION, labels={"event": job.event.value}
        ):
            span.set_attribute("notification.event", job.event.value)
            span.set_attribute("ticket.id", job.ticket_id)
            try:
                context = await self._source.get_notification_context(job.ticket_id, job.vendor_id)
            except Exception:
                logger.exception("Could not load ticket %s for %s notification", job.ticket_id, job.event.value)
                self._record_failure("load")
                return
            if context is None:
                logger.warning("Ticket %s not found for %s notification", job.ticket_id, job.event.value)
                return

            if job.event is NotificationEvent.HIGH_PRIORITY_ALERT:
                await self._send_high_priority_sms(context)
            else:
                await self._send_emails(job, context)

    async def _send_emails(self, job: NotificationJob, context: NotificationContext) -> None:
        await asyncio.gather(
            *(self._email_contact(job, context, contact) for contact in context.contacts),
            return_exceptions=True,
        )

    def _template_for(self, job: NotificationJob, context: NotificationContext) -> EmailTemplateType:
        if job.event is NotificationEvent.CREATED:
            return EmailTemplateType.TICKET_CREATED
        if job.event is NotificationEvent.COMPLETED or context.is_completed:
            return EmailTemplateType.MAINTENANCE_COMPLETED
        return EmailTemplateType.TICKET_UPDATED

    def dashboard_url(self, role: str, ticket_number: str) -> str:
        return f"{self._frontend_url}/{role}/tickets/{ticket_number}"

    async def _email_contact(
        self, job: NotificationJob, context: NotificationContext, contact: NotificationContact
    ) -> None:
        email = contact.email
        if not email:
            logger.warning("No email address for %s on ticket %s", contact.role, context.ticket_number)
            return

        template_type = self._template_for(job, context)
        subject = email_subject(template_type, context.ticket_id)
        try:
            result = await self._deliver_email(template_type, job, context, contact, email)
        except Exception as exc:
            logger.exception("Email to %s for ticket %s raised", email, context.ticket_number)
            self._record_failure("email")
            result = EmailResult(success=False, error=str(exc) or exc.__class__.__name__)

        outcome = "sent" if result.success else "failed"
        self.metrics.counter(NOTIFICATION_ATTEMPTS).inc(
            labels={"channel": "email", "event": job.event.value, "outcome": outcome}
        )
        if self._log_writer is None:
            return
        try:
            await self._log_writer.log_email(
                EmailLogEntry(
                    recipient_email=email,
                    template_type=template_type.value,
                    subject=subject,
                    status=outcome,
                    message_id=result.message_id,
                    error_message=result.error,
                    metadata={
                        "ticketId": context.ticket_id,
                        "ticketNumber": context.ticket_number,
                        "recipientType": contact.role,
                        "event": job.event.value,
                    },
                )
            )
        except Exception:
            logger.exception("Email log write failed for ticket %s", context.ticket_number)
            self._record_failure("log")

    async def _deliver_email(
        self,
        template_type: EmailTemplateType,
        job: NotificationJob,
        context: NotificationContext,
        contact: NotificationContact,
        email: str,
    ) -> EmailResult:
        name = contact.name or contact.role.title()
        equipment = context.equipment_name or DEFAULT_EQUIPMENT_NAME
        dashboard = self.dashboard_url(contact.role, context.ticket_number)
        technician = context.technician_name or DEFAULT_TECHNICIAN_NAME

        if template_type is EmailTemplateType.TICKET_CREATED:
            return await self._email_gateway.send_ticket_created(
                TicketCreatedEmail(
                    to=email,
                    recipient_name=name,
                    ticket_id=context.ticket_id,
                    equipment_name=equipment,
                    serial_number=context.serial_number or DEFAULT_SERIAL_NUMBER,
                    scheduled_date=_format_date(context.scheduled_date, DEFAULT_SCHEDULED_DATE),
                    priority=context.priority.value,
                    status=context.status.value,
                    description=context.issue_description,
                    dashboard_url=dashboard,
                )
            )
        if template_type is EmailTemplateType.MAINTENANCE_COMPLETED:
            completed_at = context.resolved_at or datetime.now(timezone.utc)
            return await self._email_gateway.send_maintenance_completed(
                MaintenanceCompletedEmail(
                    to=email,
                    recipient_name=name,
                    ticket_id=context.ticket_id,
                    equipment_name=equipment,
                    completed_date=_format_date(completed_at, ""),
                    technician_name=technician,
                    dashboard_url=dashboard,
                    technician_notes=context.resolution_description,
                )
            )
        return await self._email_gateway.send_ticket_updated(
            TicketUpdatedEmail(
                to=email,
                recipient_name=name,
                ticket_id=context.ticket_id,
                equipment_name=equipment,
                status=context.status.value,
                dashboard_url=dashboard,
                technician_name=context.technician_name,
                technician_notes=context.resolution_description,
                update_reason=job.update_reason,
            )
        )

    async def _send_high_priority_sms(self, context: NotificationContext) -> None:
        recipients = [
            SmsRecipient(user_id=contact.user_id, phone_number=contact.phone.strip(), user_type=contact.role)
            for contact in context.contacts
            if contact.user_id is not None and contact.phone and contact.phone.strip()
        ]
        if not recipients:
            logger.info("No SMS recipients for high priority ticket %s", context.ticket_number)
            return

        message = render_sms(
            SmsMessageType.HIGH_PRIORITY_TICKET,
            ticket_number=context.ticket_number,
            equipment=context.equipment_name or "equipment",
        )
        try:
            result = await self._sms_gateway.send_sms(
                recipients,
                message,
                SmsMessageType.HIGH_PRIORITY_TICKET,
                TICKET_ENTITY_TYPE,
                context.ticket_id,
            )
        except Exception:
            logger.exception("High priority SMS for ticket %s raised", context.ticket_number)
            self._record_failure("sms")
            return

        outcome = "sent" if result.success else "failed"
        self.metrics.counter(NOTIFICATION_ATTEMPTS).inc(
            labels={"channel": "sms", "event": NotificationEvent.HIGH_PRIORITY_ALERT.value, "outcome": outcome}
        )
        logger.info(
            "High priority SMS for ticket %s: success=%s recipients=%d (%s)",
            context.ticket_number,
            result.success,
            result.recipient_count,
            result.status_message,
        )

    def _record_failure(self, stage: str) -> None:
        self.metrics.counter(NOTIFICATION_FAILURES).inc(labels={"stage": stage})
