from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from fireguardian.dependencies import tickets as ticket_deps
from fireguardian.main import create_app
from fireguardian.tickets.errors import (
    TicketAuthorizationError,
    TicketNotFoundError,
    TicketStoreError,
    TicketValidationError,
)
from fireguardian.tickets.models import CallerContext, TicketListItem, TicketPage, TicketRef
from fireguardian.tickets.state import SupportType, TicketPriority, TicketStatus

CALLER = CallerContext(caller_id=2, tenant_id=7)
REF = TicketRef(id=42, ticket_number="TKT-20250101-001")
VENDOR_AUTH = {"Authorization": "Bearer vendor-token"}


def _list_item(number: str) -> TicketListItem:
    return TicketListItem(
        ticket_number=number,
        equipment_serial="EXT-0001",
        client="Acme Towers",
        status=TicketStatus.OPEN,
        support_type=SupportType.MAINTENANCE,
        priority=TicketPriority.HIGH,
        issue_description="Extinguisher low pressure",
        scheduled_date=datetime(2025, 1, 10, tzinfo=timezone.utc),
    )


@pytest.fixture
def ticket_client():
    app = create_app()
    service = AsyncMock()

    async def override_service():
        return service

    app.dependency_overrides[ticket_deps.get_ticket_service] = override_service
    app.dependency_overrides[ticket_deps.get_caller_context] = lambda: CALLER

    client = TestClient(app)
    try:
        yield client, service
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_client():
    app = create_app()
    service = AsyncMock()
    service.resolve_caller = AsyncMock(return_value=CALLER)

    async def override_service():
        return service

    app.dependency_overrides[ticket_deps.get_ticket_service] = override_service

    client = TestClient(app)
    try:
        yield client, service
    finally:
        app.dependency_overrides.clear()


def test_create_ticket_returns_created_envelope(ticket_client):
    client, service = ticket_client
    service.create_ticket = AsyncMock(return_value=REF)

    response = client.post(
        "/api/vendor/tickets",
        json={"support_type": "maintenance", "issue_description": "Low pressure", "client_id": "3"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Ticket created successfully"
    assert body["data"] == {"id": 42, "ticket_number": "TKT-20250101-001"}
    assert "timestamp" in body["meta"]
    caller, payload = service.create_ticket.await_args.args
    assert caller == CALLER
    assert payload["client_id"] == "3"
    assert payload["priority"] is None


def test_create_ticket_validation_error_maps_to_400(ticket_client):
    client, service = ticket_client
    service.create_ticket = AsyncMock(side_effect=TicketValidationError("Invalid support type", field="support_type"))

    response = client.post("/api/vendor/tickets", json={"support_type": "bogus"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid support type"
    assert body["code"] == "BAD_REQUEST"
    assert body["errors"] == [{"field": "support_type", "message": "Invalid support type"}]


def test_list_tickets_returns_pagination(ticket_client):
    client, service = ticket_client
    service.list_tickets = AsyncMock(
        return_value=TicketPage(
            total_tickets=3,
            open_tickets=3,
            high_priority=3,
            resolved_tickets=0,
            tickets=[_list_item("TKT-20250101-001"), _list_item("TKT-20250101-002")],
            limit=2,
            offset=0,
        )
    )

    response = client.get("/api/vendor/tickets", params={"status": "open", "limit": 2})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["pagination"] == {"total": 3, "limit": 2, "offset": 0, "hasMore": True}
    assert [ticket["ticket_number"] for ticket in data["tickets"]] == ["TKT-20250101-001", "TKT-20250101-002"]
    kwargs = service.list_tickets.await_args.kwargs
    assert kwargs["status"] == "open"
    assert kwargs["limit"] == 2


def test_update_ticket_accepts_ticket_status_alias(ticket_client):
    client, service = ticket_client
    service.update_ticket = AsyncMock(return_value=REF)

    response = client.put("/api/vendor/tickets/42", json={"ticket_status": "resolved", "update_reason": "Done"})

    assert response.status_code == 200
    assert response.json()["message"] == "Ticket updated successfully"
    reference, caller, update = service.update_ticket.await_args.args
    assert reference == "42"
    assert update.status == "resolved"
    assert update.update_reason == "Done"
    assert "priority" not in update.provided()


def test_missing_ticket_maps_to_404(ticket_client):
    client, service = ticket_client
    service.get_ticket = AsyncMock(side_effect=TicketNotFoundError())

    response = client.get("/api/vendor/tickets/TKT-20250101-999")

    assert response.status_code == 404
    assert response.json()["message"] == "Ticket not found"


def test_store_failure_maps_to_500(ticket_client):
    client, service = ticket_client
    service.close_ticket = AsyncMock(side_effect=TicketStoreError("Failed to close ticket"))

    response = client.put("/api/vendor/tickets/42/close")

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to close ticket"
    assert response.json()["code"] == "INTERNAL_ERROR"


def test_delete_is_rejected_without_authentication():
    client = TestClient(create_app())

    response = client.delete("/api/vendor/tickets/42")

    assert response.status_code == 405
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Ticket deletion is not allowed for safety reasons"


def test_missing_token_is_rejected(auth_client):
    client, service = auth_client

    response = client.get("/api/vendor/tickets/kpis")

    assert response.status_code == 401
    assert response.json()["message"] == "Authentication required"
    service.get_kpis.assert_not_awaited()


def test_non_vendor_user_is_forbidden(auth_client):
    client, _ = auth_client

    response = client.get("/api/vendor/tickets/kpis", headers={"Authorization": "Bearer client-token"})

    assert response.status_code == 403
    assert response.json()["message"] == "Vendor access required"


def test_vendor_user_is_resolved_to_tenant(auth_client):
    client, service = auth_client
    service.get_kpis = AsyncMock(return_value={"total_tickets": 5, "open_tickets": 2, "high_priority_tickets": 1})

    response = client.get("/api/vendor/tickets/kpis", headers=VENDOR_AUTH)

    assert response.status_code == 200
    assert response.json()["data"] == {"total_tickets": 5, "open_tickets": 2, "high_priority_tickets": 1}
    service.resolve_caller.assert_awaited_once_with(2)
    service.get_kpis.assert_awaited_once_with(CALLER)


def test_vendor_without_account_is_forbidden(auth_client):
    client, service = auth_client
    service.resolve_caller = AsyncMock(side_effect=TicketAuthorizationError("Vendor account not found"))

    response = client.get("/api/vendor/tickets/clients", headers=VENDOR_AUTH)

    assert response.status_code == 403
    assert response.json()["message"] == "Vendor account not found"


def test_unconfigured_service_returns_503():
    client = TestClient(create_app())

    response = client.get("/api/vendor/tickets/technicians", headers=VENDOR_AUTH)

    assert response.status_code == 503
    assert response.json()["message"] == "Ticket service is not configured"
