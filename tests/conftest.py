from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from fireguardian.metrics import MetricsRegistry, register_default_metrics
from fireguardian.tickets.models import (
    CallerContext,
    NotificationContact,
    NotificationContext,
    Ticket,
    TicketDetails,
)
from fireguardian.tickets.state import SupportType, TicketPriority, TicketStatus


class DummyAcquire:
    def __init__(self, connection):
        self._connection = connection

    async def __aenter__(self):
        return self._connection

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummyTransaction:
    def __init__(self):
        self.entered = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummyPool:
    def __init__(self, connection):
        self._connection = connection

    def acquire(self):
        return DummyAcquire(self._connection)


@pytest.fixture
def connection():
    connection = AsyncMock()
    connection.transaction = MagicMock(return_value=DummyTransaction())
    return connection


@pytest.fixture
def pool(connection):
    return DummyPool(connection)


@pytest.fixture
def metrics():
    return register_default_metrics(MetricsRegistry())


@pytest.fixture
def caller():
    return CallerContext(caller_id=2, tenant_id=7)


@pytest.fixture
def make_ticket():
    def factory(**overrides) -> Ticket:
        now = datetime.now(timezone.utc)
        values = dict(
            id=42,
            ticket_number="TKT-20250101-001",
            vendor_id=7,
            client_id=3,
            equipment_instance_id=11,
            support_type=SupportType.MAINTENANCE,
            priority=TicketPriority.NORMAL,
            status=TicketStatus.OPEN,
            issue_description="Extinguisher low pressure",
            scheduled_date=None,
            assigned_technician=2,
            resolution_description=None,
            actual_hours=None,
            cost=None,
            created_at=now,
            updated_at=now,
        )
        values.update(overrides)
        return Ticket(**values)

    return factory


@pytest.fixture
def make_details():
    def factory(**overrides) -> TicketDetails:
        now = datetime.now(timezone.utc)
        values = dict(
            id=42,
            ticket_number="TKT-20250101-001",
            status=TicketStatus.OPEN,
            support_type=SupportType.MAINTENANCE,
            priority=TicketPriority.NORMAL,
            issue_description="Extinguisher low pressure",
            scheduled_date=None,
            created_at=now,
            updated_at=now,
            resolved_at=None,
            resolution_description=None,
            actual_hours=None,
            cost=None,
            assigned_technician="Nimal Perera",
            client_id=3,
            client_name="Acme Towers",
            serial_number="EXT-0001",
            equipment_name="CO2 Extinguisher",
        )
        values.update(overrides)
        return TicketDetails(**values)

    return factory


@pytest.fixture
def make_context():
    def factory(**overrides) -> NotificationContext:
        values = dict(
            ticket_id=42,
            ticket_number="TKT-20250101-001",
            status=TicketStatus.OPEN,
            priority=TicketPriority.NORMAL,
            issue_description="Extinguisher low pressure",
            scheduled_date=datetime(2025, 1, 10, 9, 30, tzinfo=timezone.utc),
            resolved_at=None,
            resolution_description=None,
            equipment_name="CO2 Extinguisher",
            serial_number="EXT-0001",
            technician_name="Nimal Perera",
            contacts=[
                NotificationContact(
                    role="client", user_id=30, name="Acme Towers", email="client@acme.test", phone="0771234567"
                ),
                NotificationContact(
                    role="vendor", user_id=20, name="SafeFire Ltd", email="vendor@safefire.test", phone=None
                ),
            ],
        )
        values.update(overrides)
        return NotificationContext(**values)

    return factory
