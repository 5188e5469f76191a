"""Email and SMS content for ticket notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from html import escape
from string import Template


class EmailTemplateType(str, Enum):
    TICKET_CREATED = "maintenanceTicketCreated"
    TICKET_UPDATED = "maintenanceTicketUpdated"
    MAINTENANCE_COMPLETED = "maintenanceCompleted"


_SUBJECTS: dict[EmailTemplateType, str] = {
    EmailTemplateType.TICKET_CREATED: "New Maintenance Ticket Created - #{ticket_id}",
    EmailTemplateType.TICKET_UPDATED: "Maintenance Ticket Updated - #{ticket_id}",
    EmailTemplateType.MAINTENANCE_COMPLETED: "Maintenance Completed - #{ticket_id}",
}

DEFAULT_EQUIPMENT_NAME = "General Maintenance"
DEFAULT_SERIAL_NUMBER = "N/A"
DEFAULT_SCHEDULED_DATE = "To be scheduled"
DEFAULT_TECHNICIAN_NAME = "Service Team"
DEFAULT_COMPLIANCE_STATUS = "Compliant"
DEFAULT_NEXT_MAINTENANCE = "To be determined"


def email_subject(template_type: EmailTemplateType, ticket_id: int) -> str:
    return _SUBJECTS[template_type].format(ticket_id=ticket_id)


@dataclass(slots=True)
class TicketCreatedEmail:
    to: str
    recipient_name: str
    ticket_id: int
    equipment_name: str
    serial_number: str
    scheduled_date: str
    priority: str
    status: str
    description: str | None
    dashboard_url: str


@dataclass(slots=True)
class TicketUpdatedEmail:
    to: str
    recipient_name: str
    ticket_id: int
    equipment_name: str
    status: str
    dashboard_url: str
    completed_date: str | None = None
    technician_name: str | None = None
    technician_notes: str | None = None
    update_reason: str | None = None


@dataclass(slots=True)
class MaintenanceCompletedEmail:
    to: str
    recipient_name: str
    ticket_id: int
    equipment_name: str
    completed_date: str
    technician_name: str
    dashboard_url: str
    technician_notes: str | None = None
    compliance_status: str | None = DEFAULT_COMPLIANCE_STATUS
    next_maintenance_date: str = DEFAULT_NEXT_MAINTENANCE


@dataclass(slots=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


@dataclass(slots=True)
class _EmailBody:
    heading: str
    greeting_name: str
    intro: str
    rows: list[tuple[str, str]]
    button_label: str
    button_url: str
    sections: list[tuple[str, str]] = field(default_factory=list)
    closing: str = ""


_LAYOUT = Template(
    """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>$subject</title></head>
<body style="font-family: Arial, sans-serif; color: #212121;">
<h2>$heading</h2>
<p>Hello $greeting_name,</p>
<p>$intro</p>
<table cellpadding="6" style="border-collapse: collapse;">
$rows
</table>
$sections
<p><a href="$button_url" style="background: #E53935; color: #ffffff; padding: 10px 18px; text-decoration: none;">$button_label</a></p>
<p>$closing</p>
<p>Best regards,<br><strong>Fire Guardian Team</strong></p>
</body>
</html>
"""
)

_ROW = Template('<tr><td><strong>$label</strong></td><td>$value</td></tr>')
_SECTION = Template("<h3>$title</h3>\n<p>$body</p>")


def _render(template_type: EmailTemplateType, ticket_id: int, body: _EmailBody) -> RenderedEmail:
    subject = email_subject(template_type, ticket_id)
    html = _LAYOUT.substitute(
        subject=escape(subject),
        heading=escape(body.heading),
        greeting_name=escape(body.greeting_name),
        intro=escape(body.intro),
        rows="\n".join(_ROW.substitute(label=escape(label), value=escape(value)) for label, value in body.rows),
        sections="\n".join(_SECTION.substitute(title=escape(title), body=escape(text)) for title, text in body.sections),
        button_url=escape(body.button_url, quote=True),
        button_label=escape(body.button_label),
        closing=escape(body.closing),
    )
    lines = [f"Hello {body.greeting_name},", "", body.intro, ""]
    lines.extend(f"{label}: {value}" for label, value in body.rows)
    for title, text in body.sections:
        lines.extend(["", f"{title}:", text])
    lines.extend(["", f"{body.button_label}: {body.button_url}"])
    if body.closing:
        lines.extend(["", body.closing])
    lines.extend(["", "Best regards,", "Fire Guardian Team"])
    return RenderedEmail(subject=subject, text="\n".join(lines), html=html)


def render_ticket_created(params: TicketCreatedEmail) -> RenderedEmail:
    rows = [
        ("Ticket ID", f"#{params.ticket_id}"),
        ("Equipment", params.equipment_name),
        ("Serial Number", params.serial_number),
        ("Scheduled Date", params.scheduled_date),
        ("Priority", params.priority.upper()),
        ("Status", params.status),
    ]
    sections = [("Issue Description", params.description)] if params.description else []
    return _render(
        EmailTemplateType.TICKET_CREATED,
        params.ticket_id,
        _EmailBody(
            heading="New Maintenance Ticket Created",
            greeting_name=params.recipient_name,
            intro="A new maintenance ticket has been created for your fire safety equipment.",
            rows=rows,
            sections=sections,
            button_label="View Ticket Details",
            button_url=params.dashboard_url,
            closing="We will keep you informed as work on this ticket progresses.",
        ),
    )


def render_ticket_updated(params: TicketUpdatedEmail) -> RenderedEmail:
    rows = [
        ("Ticket ID", f"#{params.ticket_id}"),
        ("Equipment", params.equipment_name),
        ("Status", params.status),
    ]
    if params.completed_date:
        rows.append(("Completed Date", params.completed_date))
    if params.technician_name:
        rows.append(("Technician", params.technician_name))
    sections: list[tuple[str, str]] = []
    if params.technician_notes:
        sections.append(("Technician Notes", params.technician_notes))
    if params.update_reason:
        sections.append(("Update Reason", params.update_reason))
    return _render(
        EmailTemplateType.TICKET_UPDATED,
        params.ticket_id,
        _EmailBody(
            heading="Maintenance Ticket Updated",
            greeting_name=params.recipient_name,
            intro="There has been an update to your maintenance ticket.",
            rows=rows,
            sections=sections,
            button_label="View Full Details",
            button_url=params.dashboard_url,
            closing="Thank you for your continued commitment to fire safety compliance.",
        ),
    )


def render_maintenance_completed(params: MaintenanceCompletedEmail) -> RenderedEmail:
    rows = [
        ("Ticket ID", f"#{params.ticket_id}"),
        ("Equipment", params.equipment_name),
        ("Completed Date", params.completed_date),
        ("Technician", params.technician_name),
        ("Next Maintenance Due", params.next_maintenance_date),
    ]
    sections: list[tuple[str, str]] = []
    if params.technician_notes:
        sections.append(("Service Report", params.technician_notes))
    if params.compliance_status:
        sections.append(("Compliance Status", params.compliance_status))
    return _render(
        EmailTemplateType.MAINTENANCE_COMPLETED,
        params.ticket_id,
        _EmailBody(
            heading="Maintenance Completed Successfully",
            greeting_name=params.recipient_name,
            intro="The scheduled maintenance for your equipment has been completed successfully.",
            rows=rows,
            sections=sections,
            button_label="View Service Report",
            button_url=params.dashboard_url,
            closing="A detailed service report is available in your dashboard.",
        ),
    )


class SmsMessageType(str, Enum):
    HIGH_PRIORITY_TICKET = "HIGH_PRIORITY_TICKET"
    COMPLIANCE_EXPIRING_7_DAYS = "COMPLIANCE_EXPIRING_7_DAYS"
    COMPLIANCE_EXPIRING_TODAY = "COMPLIANCE_EXPIRING_TODAY"
    MAINTENANCE_DUE_3_DAYS = "MAINTENANCE_DUE_3_DAYS"
    MAINTENANCE_OVERDUE = "MAINTENANCE_OVERDUE"
    TICKET_STATUS_UPDATE = "TICKET_STATUS_UPDATE"
    EQUIPMENT_ASSIGNED = "EQUIPMENT_ASSIGNED"


# Single-segment SMS bodies stay under 160 characters.
SMS_TEMPLATES: dict[SmsMessageType, str] = {
    SmsMessageType.HIGH_PRIORITY_TICKET: (
        "URGENT: Service ticket #{ticket_number} created for {equipment}. "
        "Priority: HIGH. Check FireGuardian for details."
    ),
    SmsMessageType.COMPLIANCE_EXPIRING_7_DAYS: (
        "ALERT: Compliance certificate for {equipment} expires on {expiry_date}. Take action immediately."
    ),
    SmsMessageType.COMPLIANCE_EXPIRING_TODAY: (
        "CRITICAL: Compliance certificate for {equipment} expires TODAY! Urgent action required."
    ),
    SmsMessageType.MAINTENANCE_DUE_3_DAYS: (
        "REMINDER: Maintenance for {equipment} due on {due_date}. Schedule service soon."
    ),
    SmsMessageType.MAINTENANCE_OVERDUE: (
        "OVERDUE: Maintenance for {equipment} is {days_past_due} days past due. Immediate attention required."
    ),
    SmsMessageType.TICKET_STATUS_UPDATE: (
        "Ticket #{ticket_number} status updated to: {status}. View details in FireGuardian."
    ),
    SmsMessageType.EQUIPMENT_ASSIGNED: (
        "{count} {equipment} unit(s) assigned to your account. Check FireGuardian dashboard."
    ),
}


def render_sms(message_type: SmsMessageType, **values: object) -> str:
    return SMS_TEMPLATES[message_type].format(**values)
