from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from .state import SupportType, TicketPriority, TicketStatus, is_completed

DEFAULT_PAGE_SIZE = 25


@dataclass(slots=True, frozen=True)
class CallerContext:
    """Authenticated caller and the vendor tenant its operations are scoped to."""

    caller_id: int
    tenant_id: int


@dataclass(slots=True, frozen=True)
class TicketRef:
    id: int
    ticket_number: str


@dataclass(slots=True)
class Ticket:
    """Stored maintenance ticket row."""

    id: int
    ticket_number: str
    vendor_id: int
    client_id: int | None
    equipment_instance_id: int | None
    support_type: SupportType
    priority: TicketPriority
    status: TicketStatus
    issue_description: str
    scheduled_date: datetime | None
    assigned_technician: int | None
    resolution_description: str | None
    actual_hours: Decimal | None
    cost: Decimal | None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None
    closed_at: datetime | None = None


@dataclass(slots=True)
class TicketDetails:
    """Ticket joined with its technician, client and equipment."""

    id: int
    ticket_number: str
    status: TicketStatus
    support_type: SupportType
    priority: TicketPriority
    issue_description: str
    scheduled_date: datetime | None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None
    resolution_description: str | None
    actual_hours: Decimal | None
    cost: Decimal | None
    assigned_technician: str
    client_id: int | None = None
    client_name: str | None = None
    client_phone: str | None = None
    client_email: str | None = None
    client_address: str | None = None
    equipment_id: int | None = None
    serial_number: str | None = None
    equipment_name: str | None = None
    equipment_type: str | None = None
    compliance_status: str | None = None


@dataclass(slots=True)
class TicketListItem:
    ticket_number: str
    equipment_serial: str
    client: str
    status: TicketStatus
    support_type: SupportType
    priority: TicketPriority
    issue_description: str
    scheduled_date: datetime | None


@dataclass(slots=True)
class RelatedTicket:
    ticket_number: str
    equipment_serial: str
    issue_description: str
    status: TicketStatus
    priority: TicketPriority
    scheduled_date: datetime | None


@dataclass(slots=True)
class TicketKPIs:
    total_tickets: int
    open_tickets: int
    high_priority_tickets: int


@dataclass(slots=True)
class TicketFilters:
    status: TicketStatus | None = None
    support_type: SupportType | None = None
    priority: TicketPriority | None = None
    search: str | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0


@dataclass(slots=True)
class TicketPage:
    """One page of the ticket list plus counters over the filtered set."""

    total_tickets: int
    open_tickets: int
    high_priority: int
    resolved_tickets: int
    tickets: list[TicketListItem]
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.tickets) < self.total_tickets


@dataclass(slots=True)
class ClientOption:
    id: int
    company_name: str


@dataclass(slots=True)
class EquipmentOption:
    id: int
    serial_number: str
    equipment_name: str | None


@dataclass(slots=True)
class TechnicianOption:
    id: int
    display_name: str


@dataclass(slots=True)
class CreateTicketData:
    support_type: SupportType
    issue_description: str
    priority: TicketPriority
    client_id: int | None = None
    equipment_instance_id: int | None = None
    scheduled_date: datetime | None = None
    assigned_technician: int | None = None


class Missing(Enum):
    """Markers for an update slot that carries no value.

    ``ABSENT`` means the caller never sent the field. ``BLANK`` means it was sent
    as ``null`` or an empty string. Neither clears stored data.
    """

    ABSENT = "absent"
    BLANK = "blank"


UPDATABLE_FIELDS: tuple[str, ...] = (
    "status",
    "priority",
    "issue_description",
    "scheduled_date",
    "assigned_technician",
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(slots=True)
class TicketUpdate:
    """Raw partial update as received from the caller."""

    status: Any = Missing.ABSENT
    priority: Any = Missing.ABSENT
    issue_description: Any = Missing.ABSENT
    scheduled_date: Any = Missing.ABSENT
    assigned_technician: Any = Missing.ABSENT
    update_reason: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> TicketUpdate:
        values: dict[str, Any] = {}
        for name in UPDATABLE_FIELDS:
            if name not in payload:
                continue
            raw = payload[name]
            values[name] = Missing.BLANK if _is_blank(raw) else raw
        reason = payload.get("update_reason")
        return cls(**values, update_reason=None if _is_blank(reason) else str(reason).strip())

    def provided(self) -> dict[str, Any]:
        """Return only the slots that carry a real value."""

        return {
            name: getattr(self, name)
            for name in UPDATABLE_FIELDS
            if not isinstance(getattr(self, name), Missing)
        }


@dataclass(slots=True)
class TicketChanges:
    """Validated column changes; ``None`` means leave the stored value untouched."""

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    issue_description: str | None = None
    scheduled_date: datetime | None = None
    assigned_technician: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in UPDATABLE_FIELDS
            if getattr(self, name) is not None
        }

    @property
    def notifies(self) -> bool:
        return self.status is not None or self.scheduled_date is not None


@dataclass(slots=True)
class ResolveTicketData:
    resolution_description: str
    actual_hours: Decimal | None = None
    cost: Decimal | None = None


@dataclass(slots=True)
class NotificationContact:
    """One notification recipient attached to a ticket."""

    role: str
    user_id: int | None
    name: str | None
    email: str | None
    phone: str | None


@dataclass(slots=True)
class NotificationContext:
    """Joined ticket projection used to compose notifications."""

    ticket_id: int
    ticket_number: str
    status: TicketStatus
    priority: TicketPriority
    issue_description: str
    scheduled_date: datetime | None
    resolved_at: datetime | None
    resolution_description: str | None
    equipment_name: str | None
    serial_number: str | None
    technician_name: str | None
    contacts: list[NotificationContact] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return is_completed(self.status, self.resolved_at)
