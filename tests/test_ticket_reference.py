from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from fireguardian.tickets.errors import TicketNotFoundError, TicketValidationError
from fireguardian.tickets.reference import ById, ByNumber, parse_reference, resolve_ticket_number


def test_numeric_reference_is_an_id():
    assert parse_reference("42") == ById(42)


def test_other_references_are_ticket_numbers():
    assert parse_reference("TKT-20250101-001") == ByNumber("TKT-20250101-001")
    assert parse_reference(" 42a ") == ByNumber("42a")


def test_blank_reference_is_rejected():
    with pytest.raises(TicketValidationError):
        parse_reference("  ")


@pytest.mark.asyncio
async def test_ticket_number_passes_through_without_store_access(caller):
    store = AsyncMock()

    number = await resolve_ticket_number(ByNumber("TKT-20250101-001"), caller, store)

    assert number == "TKT-20250101-001"
    store.get_ticket_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_id_is_resolved_within_tenant(caller, make_ticket):
    store = AsyncMock()
    store.get_ticket_by_id = AsyncMock(return_value=make_ticket(ticket_number="TKT-20250101-007"))

    number = await resolve_ticket_number(ById(42), caller, store)

    assert number == "TKT-20250101-007"
    store.get_ticket_by_id.assert_awaited_once_with(42, caller.tenant_id)


@pytest.mark.asyncio
async def test_unknown_id_is_not_found(caller):
    store = AsyncMock()
    store.get_ticket_by_id = AsyncMock(return_value=None)

    with pytest.raises(TicketNotFoundError):
        await resolve_ticket_number(ById(999), caller, store)
