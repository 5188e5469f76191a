from __future__ import annotations

import smtplib

import pytest

from fireguardian.notifications.email import NOT_CONFIGURED_ERROR, SmtpEmailGateway
from fireguardian.notifications.templates import MaintenanceCompletedEmail


class RecordingSMTP:
    instances: list["RecordingSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, message):
        if RecordingSMTP.fail_with is not None:
            raise RecordingSMTP.fail_with
        self.sent.append(message)


@pytest.fixture(autouse=True)
def reset_smtp():
    RecordingSMTP.instances = []
    RecordingSMTP.fail_with = None
    yield


def _gateway(**overrides) -> SmtpEmailGateway:
    values = dict(
        host="smtp.test",
        port=587,
        username="alerts@fireguardian.test",
        password="secret",
        smtp_factory=RecordingSMTP,
    )
    values.update(overrides)
    return SmtpEmailGateway(**values)


def _completed() -> MaintenanceCompletedEmail:
    return MaintenanceCompletedEmail(
        to="client@acme.test",
        recipient_name="Acme Towers",
        ticket_id=42,
        equipment_name="CO2 Extinguisher",
        completed_date="2025-01-12",
        technician_name="Nimal Perera",
        dashboard_url="http://localhost:3000/client/tickets/TKT-20250101-001",
        technician_notes="Replaced valve",
    )


@pytest.mark.asyncio
async def test_sends_multipart_message():
    result = await _gateway().send_maintenance_completed(_completed())

    assert result.success
    assert result.message_id
    smtp = RecordingSMTP.instances[0]
    assert smtp.started_tls
    assert smtp.logged_in == ("alerts@fireguardian.test", "secret")
    message = smtp.sent[0]
    assert message["Subject"] == "Maintenance Completed - #42"
    assert message["To"] == "client@acme.test"
    assert [part.get_content_type() for part in message.get_payload()] == ["text/plain", "text/html"]


@pytest.mark.asyncio
async def test_unconfigured_gateway_reports_failure_without_connecting():
    result = await _gateway(username=None, password=None).send_maintenance_completed(_completed())

    assert not result.success
    assert result.error == NOT_CONFIGURED_ERROR
    assert RecordingSMTP.instances == []


@pytest.mark.asyncio
async def test_delivery_error_is_reported_not_raised():
    RecordingSMTP.fail_with = smtplib.SMTPRecipientsRefused({"client@acme.test": (550, b"No such user")})

    result = await _gateway().send_maintenance_completed(_completed())

    assert not result.success
    assert result.error
