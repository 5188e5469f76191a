from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Protocol

import asyncpg

from .errors import TicketValidationError
from .models import (
    ClientOption,
    CreateTicketData,
    EquipmentOption,
    NotificationContact,
    NotificationContext,
    RelatedTicket,
    ResolveTicketData,
    TechnicianOption,
    Ticket,
    TicketChanges,
    TicketDetails,
    TicketFilters,
    TicketKPIs,
    TicketListItem,
    TicketPage,
    TicketRef,
)
from .state import SupportType, TicketPriority, TicketStatus

TICKET_NUMBER_PREFIX = "TKT"
RELATED_TICKETS_LIMIT = 10

# Column names for TicketChanges slots.
_CHANGE_COLUMNS: dict[str, str] = {
    "status": "ticket_status",
    "priority": "priority",
    "issue_description": "issue_description",
    "scheduled_date": "scheduled_date",
    "assigned_technician": "assigned_technician",
}


def next_ticket_number(last_number: str | None, today: date) -> str:
    """Return the ticket number following ``last_number`` for ``today``."""

    sequence = 1
    if last_number:
        try:
            sequence = int(last_number.rsplit("-", 1)[1]) + 1
        except (IndexError, ValueError):
            sequence = 1
    return f"{TICKET_NUMBER_PREFIX}-{today:%Y%m%d}-{sequence:03d}"


class TicketStore(Protocol):
    """Persistence contract used by the lifecycle service.

    Every call is scoped by ``vendor_id`` and never returns rows owned by another
    tenant.
    """

    async def get_vendor_id_for_user(self, user_id: int) -> int | None: ...

    async def get_kpis(self, vendor_id: int) -> TicketKPIs: ...

    async def list_tickets(self, vendor_id: int, filters: TicketFilters) -> TicketPage: ...

    async def list_clients(self, vendor_id: int) -> list[ClientOption]: ...

    async def list_equipment(self, vendor_id: int) -> list[EquipmentOption]: ...

    async def list_technicians(self, vendor_id: int) -> list[TechnicianOption]: ...

    async def list_equipment_for_client(self, vendor_id: int, client_id: int) -> list[EquipmentOption]: ...

    async def create_ticket(self, vendor_id: int, data: CreateTicketData) -> TicketRef: ...

    async def get_ticket_by_id(self, ticket_id: int, vendor_id: int) -> Ticket | None: ...

    async def get_ticket_details_by_number(self, ticket_number: str, vendor_id: int) -> TicketDetails | None: ...

    async def get_related_tickets(self, ticket_number: str, vendor_id: int) -> list[RelatedTicket]: ...

    async def update_ticket(
        self, ticket_number: str, vendor_id: int, changes: TicketChanges
    ) -> TicketRef | None: ...

    async def resolve_ticket(
        self, ticket_number: str, vendor_id: int, data: ResolveTicketData
    ) -> TicketRef | None: ...

    async def close_ticket(self, ticket_number: str, vendor_id: int) -> TicketRef | None: ...

    async def get_notification_context(self, ticket_id: int, vendor_id: int) -> NotificationContext | None: ...


class TicketRepository:
    """asyncpg implementation of :class:`TicketStore` over ``maintenance_ticket``."""

    _TICKET_COLUMNS = """
        id, ticket_number, vendor_id, client_id, equipment_instance_id, support_type, priority,
        ticket_status, issue_description, scheduled_date, assigned_technician,
        resolution_description, actual_hours, cost, created_at, updated_at, resolved_at, closed_at
    """

    _SELECT_VENDOR_ID_SQL = """
    SELECT id FROM vendors WHERE user_id = $1
    """

    _SELECT_KPIS_SQL = """
    SELECT
        COUNT(*) AS total_tickets,
        COUNT(*) FILTER (WHERE ticket_status = 'open') AS open_tickets,
        COUNT(*) FILTER (WHERE priority = 'high') AS high_priority_tickets
    FROM maintenance_ticket
    WHERE vendor_id = $1
    """

    _LIST_TICKETS_SQL = """
    SELECT
        mt.ticket_number,
        COALESCE(ei.serial_number, 'N/A') AS equipment_serial,
        COALESCE(c.company_name, 'N/A') AS client,
        mt.ticket_status,
        mt.support_type,
        mt.priority,
        LEFT(mt.issue_description, 50) AS issue_description,
        mt.scheduled_date
    FROM maintenance_ticket mt
    LEFT JOIN equipment_instance ei ON mt.equipment_instance_id = ei.id
    LEFT JOIN clients c ON mt.client_id = c.id
    WHERE {where}
    ORDER BY mt.created_at DESC
    LIMIT ${limit} OFFSET ${offset}
    """

    _SUMMARY_TICKETS_SQL = """
    SELECT
        COUNT(*) AS total_tickets,
        COUNT(*) FILTER (WHERE mt.ticket_status = 'open') AS open_tickets,
        COUNT(*) FILTER (WHERE mt.priority = 'high') AS high_priority,
        COUNT(*) FILTER (WHERE mt.ticket_status = 'resolved') AS resolved_tickets
    FROM maintenance_ticket mt
    WHERE {where}
    """

    _LIST_CLIENTS_SQL = """
    SELECT id, company_name
    FROM clients
    WHERE created_by_vendor_id = $1
      AND status = 'active'
    ORDER BY company_name
    """

    _LIST_EQUIPMENT_SQL = """
    SELECT ei.id, ei.serial_number, eq.equipment_name
    FROM equipment_instance ei
    LEFT JOIN equipment eq ON ei.equipment_id = eq.id
    WHERE ei.vendor_id = $1
      AND ei.deleted_at IS NULL
    ORDER BY ei.serial_number
    """

    _LIST_CLIENT_EQUIPMENT_SQL = """
    SELECT ei.id, ei.serial_number, eq.equipment_name
    FROM equipment_instance ei
    LEFT JOIN equipment eq ON ei.equipment_id = eq.id
    JOIN clients c ON ei.assigned_to = c.id
    WHERE ei.vendor_id = $1
      AND c.id = $2
      AND c.created_by_vendor_id = $1
      AND ei.deleted_at IS NULL
    ORDER BY ei.serial_number
    """

    _LIST_TECHNICIANS_SQL = """
    SELECT u.id, COALESCE(u.display_name, u.first_name || ' ' || u.last_name) AS display_name
    FROM "user" u
    JOIN vendors v ON u.id = v.user_id
    WHERE v.id = $1
      AND u.user_type = 'vendor'
    ORDER BY display_name
    """

    _CLIENT_ACCESS_SQL = """
    SELECT EXISTS (SELECT 1 FROM clients WHERE id = $1 AND created_by_vendor_id = $2)
    """

    _EQUIPMENT_ACCESS_SQL = """
    SELECT EXISTS (
        SELECT 1 FROM equipment_instance WHERE id = $1 AND vendor_id = $2 AND deleted_at IS NULL
    )
    """

    _LOCK_TICKET_NUMBER_SQL = """
    SELECT pg_advisory_xact_lock(hashtext('maintenance_ticket_number'))
    """

    _LAST_TICKET_NUMBER_SQL = """
    SELECT ticket_number
    FROM maintenance_ticket
    WHERE ticket_number LIKE $1
    ORDER BY LENGTH(ticket_number) DESC, ticket_number DESC
    LIMIT 1
    """

    _INSERT_TICKET_SQL = """
    INSERT INTO maintenance_ticket (
        ticket_number, equipment_instance_id, client_id, vendor_id, ticket_status, support_type,
        issue_description, priority, scheduled_date, assigned_technician, created_at, updated_at
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    RETURNING id, ticket_number
    """

    _SELECT_TICKET_BY_ID_SQL = f"""
    SELECT {_TICKET_COLUMNS}
    FROM maintenance_ticket
    WHERE id = $1 AND vendor_id = $2
    """

    _SELECT_DETAILS_SQL = """
    SELECT
        mt.id, mt.ticket_number, mt.ticket_status, mt.support_type, mt.priority,
        mt.issue_description, mt.scheduled_date, mt.created_at, mt.updated_at, mt.resolved_at,
        mt.resolution_description, mt.actual_hours, mt.cost,
        COALESCE(tech.display_name, 'Unassigned') AS assigned_technician,
        c.id AS client_id, c.company_name AS client_name, c.primary_phone AS client_phone,
        cu.email AS client_email, c.street_address AS client_address,
        ei.id AS equipment_id, ei.serial_number, eq.equipment_name,
        eq.equipment_type, ei.compliance_status
    FROM maintenance_ticket mt
    LEFT JOIN "user" tech ON mt.assigned_technician = tech.id
    LEFT JOIN clients c ON mt.client_id = c.id
    LEFT JOIN "user" cu ON c.user_id = cu.id
    LEFT JOIN equipment_instance ei ON mt.equipment_instance_id = ei.id
    LEFT JOIN equipment eq ON ei.equipment_id = eq.id
    WHERE mt.ticket_number = $1
      AND mt.vendor_id = $2
    """

    _SELECT_RELATED_SQL = """
    WITH target AS (
        SELECT id, client_id, equipment_instance_id
        FROM maintenance_ticket
        WHERE ticket_number = $1 AND vendor_id = $2
    )
    SELECT
        mt.ticket_number,
        COALESCE(ei.serial_number, 'N/A') AS equipment_serial,
        mt.issue_description,
        mt.ticket_status,
        mt.priority,
        mt.scheduled_date
    FROM maintenance_ticket mt
    JOIN target t ON mt.id <> t.id
    LEFT JOIN equipment_instance ei ON mt.equipment_instance_id = ei.id
    WHERE mt.vendor_id = $2
      AND (mt.client_id = t.client_id OR mt.equipment_instance_id = t.equipment_instance_id)
    ORDER BY mt.created_at DESC
    LIMIT $3
    """

    _UPDATE_TICKET_SQL = """
    UPDATE maintenance_ticket
    SET {assignments}, updated_at = CURRENT_TIMESTAMP
    WHERE ticket_number = ${number} AND vendor_id = ${vendor}
    RETURNING id, ticket_number
    """

    _RESOLVE_TICKET_SQL = """
    UPDATE maintenance_ticket
    SET ticket_status = 'resolved',
        resolution_description = $3,
        actual_hours = $4,
        cost = $5,
        resolved_at = CURRENT_TIMESTAMP,
        updated_at = CURRENT_TIMESTAMP
    WHERE ticket_number = $1 AND vendor_id = $2
    RETURNING id, ticket_number
    """

    _CLOSE_TICKET_SQL = """
    UPDATE maintenance_ticket
    SET ticket_status = 'closed',
        closed_at = CURRENT_TIMESTAMP,
        updated_at = CURRENT_TIMESTAMP
    WHERE ticket_number = $1 AND vendor_id = $2
    RETURNING id, ticket_number
    """

    _SELECT_NOTIFICATION_SQL = """
    SELECT
        mt.id, mt.ticket_number, mt.ticket_status, mt.priority, mt.issue_description,
        mt.scheduled_date, mt.resolved_at, mt.resolution_description,
        eq.equipment_name, ei.serial_number,
        NULLIF(TRIM(COALESCE(tech.first_name, '') || ' ' || COALESCE(tech.last_name, '')), '')
            AS technician_name,
        c.company_name AS client_name, cu.id AS client_user_id,
        cu.email AS client_email, cu.phone AS client_phone,
        v.company_name AS vendor_name, vu.id AS vendor_user_id,
        vu.email AS vendor_email, vu.phone AS vendor_phone
    FROM maintenance_ticket mt
    LEFT JOIN equipment_instance ei ON mt.equipment_instance_id = ei.id
    LEFT JOIN equipment eq ON ei.equipment_id = eq.id
    LEFT JOIN clients c ON mt.client_id = c.id
    LEFT JOIN "user" cu ON c.user_id = cu.id
    JOIN vendors v ON mt.vendor_id = v.id
    JOIN "user" vu ON v.user_id = vu.id
    LEFT JOIN "user" tech ON mt.assigned_technician = tech.id
    WHERE mt.id = $1 AND mt.vendor_id = $2
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get_vendor_id_for_user(self, user_id: int) -> int | None:
        async with self._pool.acquire() as connection:
            value = await connection.fetchval(self._SELECT_VENDOR_ID_SQL, user_id)
        return None if value is None else int(value)

    async def get_kpis(self, vendor_id: int) -> TicketKPIs:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_KPIS_SQL, vendor_id)
        return TicketKPIs(
            total_tickets=int(row["total_tickets"]),
            open_tickets=int(row["open_tickets"]),
            high_priority_tickets=int(row["high_priority_tickets"]),
        )

    async def list_tickets(self, vendor_id: int, filters: TicketFilters) -> TicketPage:
        where, params = self._build_filters(vendor_id, filters)
        list_sql = self._LIST_TICKETS_SQL.format(
            where=where, limit=len(params) + 1, offset=len(params) + 2
        )
        async with self._pool.acquire() as connection:
            summary = await connection.fetchrow(self._SUMMARY_TICKETS_SQL.format(where=where), *params)
            rows = await connection.fetch(list_sql, *params, filters.limit, filters.offset)
        return TicketPage(
            total_tickets=int(summary["total_tickets"]),
            open_tickets=int(summary["open_tickets"]),
            high_priority=int(summary["high_priority"]),
            resolved_tickets=int(summary["resolved_tickets"]),
            tickets=[self._row_to_list_item(row) for row in rows],
            limit=filters.limit,
            offset=filters.offset,
        )

    async def list_clients(self, vendor_id: int) -> list[ClientOption]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_CLIENTS_SQL, vendor_id)
        return [ClientOption(id=int(row["id"]), company_name=str(row["company_name"])) for row in rows]

    async def list_equipment(self, vendor_id: int) -> list[EquipmentOption]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_EQUIPMENT_SQL, vendor_id)
        return [self._row_to_equipment_option(row) for row in rows]

    async def list_equipment_for_client(self, vendor_id: int, client_id: int) -> list[EquipmentOption]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_CLIENT_EQUIPMENT_SQL, vendor_id, client_id)
        return [self._row_to_equipment_option(row) for row in rows]

    async def list_technicians(self, vendor_id: int) -> list[TechnicianOption]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_TECHNICIANS_SQL, vendor_id)
        return [TechnicianOption(id=int(row["id"]), display_name=str(row["display_name"])) for row in rows]

    async def create_ticket(self, vendor_id: int, data: CreateTicketData) -> TicketRef:
        async with self._pool.acquire() as connection:
            if data.client_id is not None:
                if not await connection.fetchval(self._CLIENT_ACCESS_SQL, data.client_id, vendor_id):
                    raise TicketValidationError("Invalid client selected", field="client_id")
            if data.equipment_instance_id is not None:
                allowed = await connection.fetchval(
                    self._EQUIPMENT_ACCESS_SQL, data.equipment_instance_id, vendor_id
                )
                if not allowed:
                    raise TicketValidationError("Invalid equipment selected", field="equipment_instance_id")

            async with connection.transaction():
                await connection.execute(self._LOCK_TICKET_NUMBER_SQL)
                today = datetime.now(timezone.utc).date()
                last_number = await connection.fetchval(
                    self._LAST_TICKET_NUMBER_SQL, f"{TICKET_NUMBER_PREFIX}-{today:%Y%m%d}-%"
                )
                row = await connection.fetchrow(
                    self._INSERT_TICKET_SQL,
                    next_ticket_number(last_number, today),
                    data.equipment_instance_id,
                    data.client_id,
                    vendor_id,
                    TicketStatus.OPEN.value,
                    data.support_type.value,
                    data.issue_description,
                    data.priority.value,
                    data.scheduled_date,
                    data.assigned_technician,
                )
        if row is None:
            raise RuntimeError("Failed to insert maintenance ticket")
        return self._row_to_ref(row)

    async def get_ticket_by_id(self, ticket_id: int, vendor_id: int) -> Ticket | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_TICKET_BY_ID_SQL, ticket_id, vendor_id)
        if row is None:
            return None
        return self._row_to_ticket(row)

    async def get_ticket_details_by_number(self, ticket_number: str, vendor_id: int) -> TicketDetails | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_DETAILS_SQL, ticket_number, vendor_id)
        if row is None:
            return None
        return self._row_to_details(row)

    async def get_related_tickets(self, ticket_number: str, vendor_id: int) -> list[RelatedTicket]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(
                self._SELECT_RELATED_SQL, ticket_number, vendor_id, RELATED_TICKETS_LIMIT
            )
        return [
            RelatedTicket(
                ticket_number=str(row["ticket_number"]),
                equipment_serial=str(row["equipment_serial"]),
                issue_description=str(row["issue_description"]),
                status=TicketStatus(str(row["ticket_status"])),
                priority=TicketPriority(str(row["priority"])),
                scheduled_date=row["scheduled_date"],
            )
            for row in rows
        ]

    async def update_ticket(
        self, ticket_number: str, vendor_id: int, changes: TicketChanges
    ) -> TicketRef | None:
        values = changes.as_dict()
        if not values:
            raise TicketValidationError("No update data provided")
        assignments: list[str] = []
        params: list[Any] = []
        for name, value in values.items():
            params.append(value.value if isinstance(value, (TicketStatus, TicketPriority)) else value)
            assignments.append(f"{_CHANGE_COLUMNS[name]} = ${len(params)}")
        sql = self._UPDATE_TICKET_SQL.format(
            assignments=", ".join(assignments), number=len(params) + 1, vendor=len(params) + 2
        )
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(sql, *params, ticket_number, vendor_id)
        if row is None:
            return None
        return self._row_to_ref(row)

    async def resolve_ticket(
        self, ticket_number: str, vendor_id: int, data: ResolveTicketData
    ) -> TicketRef | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(
                self._RESOLVE_TICKET_SQL,
                ticket_number,
                vendor_id,
                data.resolution_description,
                data.actual_hours,
                data.cost,
            )
        if row is None:
            return None
        return self._row_to_ref(row)

    async def close_ticket(self, ticket_number: str, vendor_id: int) -> TicketRef | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._CLOSE_TICKET_SQL, ticket_number, vendor_id)
        if row is None:
            return None
        return self._row_to_ref(row)

    async def get_notification_context(self, ticket_id: int, vendor_id: int) -> NotificationContext | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_NOTIFICATION_SQL, ticket_id, vendor_id)
        if row is None:
            return None
        return self._row_to_notification_context(row)

    @staticmethod
    def _build_filters(vendor_id: int, filters: TicketFilters) -> tuple[str, list[Any]]:
        clauses = ["mt.vendor_id = $1"]
        params: list[Any] = [vendor_id]
        if filters.status is not None:
            params.append(filters.status.value)
            clauses.append(f"mt.ticket_status = ${len(params)}")
        if filters.support_type is not None:
            params.append(filters.support_type.value)
            clauses.append(f"mt.support_type = ${len(params)}")
        if filters.priority is not None:
            params.append(filters.priority.value)
            clauses.append(f"mt.priority = ${len(params)}")
        if filters.search:
            params.append(f"%{_escape_like(filters.search)}%")
            placeholder = f"${len(params)}"
            clauses.append(
                f"(mt.ticket_number ILIKE {placeholder} ESCAPE '\\' "
                f"OR mt.issue_description ILIKE {placeholder} ESCAPE '\\')"
            )
        return " AND ".join(clauses), params

    @staticmethod
    def _row_to_ref(row: Mapping[str, Any]) -> TicketRef:
        return TicketRef(id=int(row["id"]), ticket_number=str(row["ticket_number"]))

    @staticmethod
    def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
        return Ticket(
            id=int(row["id"]),
            ticket_number=str(row["ticket_number"]),
            vendor_id=int(row["vendor_id"]),
            client_id=_optional_int(row["client_id"]),
            equipment_instance_id=_optional_int(row["equipment_instance_id"]),
            support_type=SupportType(str(row["support_type"])),
            priority=TicketPriority(str(row["priority"])),
            status=TicketStatus(str(row["ticket_status"])),
            issue_description=str(row["issue_description"]),
            scheduled_date=row["scheduled_date"],
            assigned_technician=_optional_int(row["assigned_technician"]),
            resolution_description=row["resolution_description"],
            actual_hours=_optional_decimal(row["actual_hours"]),
            cost=_optional_decimal(row["cost"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            resolved_at=row["resolved_at"],
            closed_at=row["closed_at"],
        )

    @staticmethod
    def _row_to_details(row: Mapping[str, Any]) -> TicketDetails:
        return TicketDetails(
            id=int(row["id"]),
            ticket_number=str(row["ticket_number"]),
            status=TicketStatus(str(row["ticket_status"])),
            support_type=SupportType(str(row["support_type"])),
            priority=TicketPriority(str(row["priority"])),
            issue_description=str(row["issue_description"]),
            scheduled_date=row["scheduled_date"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            resolved_at=row["resolved_at"],
            resolution_description=row["resolution_description"],
            actual_hours=_optional_decimal(row["actual_hours"]),
            cost=_optional_decimal(row["cost"]),
            assigned_technician=str(row["assigned_technician"]),
            client_id=_optional_int(row["client_id"]),
            client_name=row["client_name"],
            client_phone=row["client_phone"],
            client_email=row["client_email"],
            client_address=row["client_address"],
            equipment_id=_optional_int(row["equipment_id"]),
            serial_number=row["serial_number"],
            equipment_name=row["equipment_name"],
            equipment_type=row["equipment_type"],
            compliance_status=row["compliance_status"],
        )

    @staticmethod
    def _row_to_list_item(row: Mapping[str, Any]) -> TicketListItem:
        return TicketListItem(
            ticket_number=str(row["ticket_number"]),
            equipment_serial=str(row["equipment_serial"]),
            client=str(row["client"]),
            status=TicketStatus(str(row["ticket_status"])),
            support_type=SupportType(str(row["support_type"])),
            priority=TicketPriority(str(row["priority"])),
            issue_description=str(row["issue_description"]),
            scheduled_date=row["scheduled_date"],
        )

    @staticmethod
    def _row_to_equipment_option(row: Mapping[str, Any]) -> EquipmentOption:
        return EquipmentOption(
            id=int(row["id"]),
            serial_number=str(row["serial_number"]),
            equipment_name=row["equipment_name"],
        )

    @staticmethod
    def _row_to_notification_context(row: Mapping[str, Any]) -> NotificationContext:
        contacts = [
            NotificationContact(
                role="client",
                user_id=_optional_int(row["client_user_id"]),
                name=row["client_name"],
                email=row["client_email"],
                phone=row["client_phone"],
            ),
            NotificationContact(
                role="vendor",
                user_id=_optional_int(row["vendor_user_id"]),
                name=row["vendor_name"],
                email=row["vendor_email"],
                phone=row["vendor_phone"],
            ),
        ]
        return NotificationContext(
            ticket_id=int(row["id"]),
            ticket_number=str(row["ticket_number"]),
            status=TicketStatus(str(row["ticket_status"])),
            priority=TicketPriority(str(row["priority"])),
            issue_description=str(row["issue_description"]),
            scheduled_date=row["scheduled_date"],
            resolved_at=row["resolved_at"],
            resolution_description=row["resolution_description"],
            equipment_name=row["equipment_name"],
            serial_number=row["serial_number"],
            technician_name=row["technician_name"],
            # a ticket without a client only notifies its vendor
            contacts=[contact for contact in contacts if contact.user_id is not None or contact.email],
        )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def _optional_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
