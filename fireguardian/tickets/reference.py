"""Translate caller-supplied ticket references into canonical ticket numbers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from .errors import TicketNotFoundError, TicketValidationError
from .models import CallerContext

if TYPE_CHECKING:
    from .repository import TicketStore

_NUMERIC_REFERENCE = re.compile(r"^\d+$")


@dataclass(slots=True, frozen=True)
class ById:
    ticket_id: int


@dataclass(slots=True, frozen=True)
class ByNumber:
    ticket_number: str


TicketReference = Union[ById, ByNumber]


def parse_reference(raw: str) -> TicketReference:
    value = (raw or "").strip()
    if not value:
        raise TicketValidationError("Ticket reference is required", field="id")
    if _NUMERIC_REFERENCE.match(value):
        return ById(int(value))
    return ByNumber(value)


async def resolve_ticket_number(
    reference: TicketReference,
    caller: CallerContext,
    store: TicketStore,
) -> str:
    """Return the ticket number for ``reference`` within the caller's tenant.

    Numeric references are looked up by surrogate id. Ticket numbers pass through
    unchanged; the follow-up tenant-scoped store call decides whether they exist.
    """

    if isinstance(reference, ByNumber):
        return reference.ticket_number
    ticket = await store.get_ticket_by_id(reference.ticket_id, caller.tenant_id)
    if ticket is None:
        raise TicketNotFoundError()
    return ticket.ticket_number
