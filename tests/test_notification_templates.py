from fireguardian.notifications.templates import (
    EmailTemplateType,
    SmsMessageType,
    TicketCreatedEmail,
    TicketUpdatedEmail,
    email_subject,
    render_sms,
    render_ticket_created,
    render_ticket_updated,
)


def _created(**overrides) -> TicketCreatedEmail:
    values = dict(
        to="client@acme.test",
        recipient_name="Acme Towers",
        ticket_id=42,
        equipment_name="CO2 Extinguisher",
        serial_number="EXT-0001",
        scheduled_date="2025-01-10",
        priority="high",
        status="open",
        description="Extinguisher low pressure",
        dashboard_url="http://localhost:3000/client/tickets/TKT-20250101-001",
    )
    values.update(overrides)
    return TicketCreatedEmail(**values)


def test_subjects_use_ticket_id():
    assert email_subject(EmailTemplateType.TICKET_CREATED, 42) == "New Maintenance Ticket Created - #42"
    assert email_subject(EmailTemplateType.TICKET_UPDATED, 42) == "Maintenance Ticket Updated - #42"
    assert email_subject(EmailTemplateType.MAINTENANCE_COMPLETED, 42) == "Maintenance Completed - #42"


def test_created_email_has_text_and_html_bodies():
    rendered = render_ticket_created(_created())

    assert rendered.subject == "New Maintenance Ticket Created - #42"
    assert "Serial Number: EXT-0001" in rendered.text
    assert "Priority: HIGH" in rendered.text
    assert 'href="http://localhost:3000/client/tickets/TKT-20250101-001"' in rendered.html


def test_html_body_escapes_user_content():
    rendered = render_ticket_created(_created(description="<script>alert(1)</script>"))

    assert "<script>" not in rendered.html
    assert "&lt;script&gt;" in rendered.html
    assert "<script>alert(1)</script>" in rendered.text


def test_updated_email_includes_optional_sections_when_present():
    params = TicketUpdatedEmail(
        to="vendor@safefire.test",
        recipient_name="SafeFire Ltd",
        ticket_id=42,
        equipment_name="CO2 Extinguisher",
        status="closed",
        dashboard_url="http://localhost:3000/vendor/tickets/TKT-20250101-001",
        update_reason="Ticket has been closed",
    )

    rendered = render_ticket_updated(params)

    assert "Update Reason:\nTicket has been closed" in rendered.text
    assert "Technician" not in rendered.text


def test_high_priority_sms_fits_single_segment():
    message = render_sms(
        SmsMessageType.HIGH_PRIORITY_TICKET, ticket_number="TKT-20250101-001", equipment="CO2 Extinguisher"
    )

    assert message.startswith("URGENT: Service ticket #TKT-20250101-001 created for CO2 Extinguisher.")
    assert len(message) <= 160
