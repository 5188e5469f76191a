from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, AsyncIterator, Mapping, TypeVar

from opentelemetry import trace

from fireguardian.metrics import MetricsRegistry, register_default_metrics
from fireguardian.metrics.definitions import TICKET_OPERATIONS
from fireguardian.notifications.dispatcher import NotificationDispatcher
from fireguardian.notifications.orchestrator import NotificationEvent, NotificationJob

from .errors import (
    TicketAuthorizationError,
    TicketDeletionDisabledError,
    TicketNotFoundError,
    TicketServiceError,
    TicketStoreError,
    TicketValidationError,
)
from .models import (
    DEFAULT_PAGE_SIZE,
    CallerContext,
    ClientOption,
    CreateTicketData,
    EquipmentOption,
    RelatedTicket,
    ResolveTicketData,
    TechnicianOption,
    TicketChanges,
    TicketDetails,
    TicketFilters,
    TicketKPIs,
    TicketPage,
    TicketRef,
    TicketUpdate,
)
from .reference import parse_reference, resolve_ticket_number
from .repository import TicketStore
from .state import SupportType, TicketPriority, TicketStateMachine, TicketStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MAX_DESCRIPTION_LENGTH = 1000
MAX_SEARCH_LENGTH = 255
MAX_PAGE_SIZE = 100
MAX_ACTUAL_HOURS = Decimal("999.99")
MAX_COST = Decimal("999999.99")
CLOSE_REASON = "Ticket has been closed"

E = TypeVar("E", bound=Enum)


def reject_ticket_deletion() -> None:
    """Deletion is disabled for every caller and every ticket."""

    raise TicketDeletionDisabledError()


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_enum(enum_type: type[E], value: Any, message: str, field: str) -> E:
    try:
        return enum_type(str(value).strip().lower())
    except ValueError as exc:
        raise TicketValidationError(message, field=field) from exc


def _parse_id(value: Any, message: str, field: str) -> int:
    if isinstance(value, bool):
        raise TicketValidationError(message, field=field)
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise TicketValidationError(message, field=field) from exc
    if parsed <= 0:
        raise TicketValidationError(message, field=field)
    return parsed


def _parse_datetime(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise TicketValidationError("Invalid scheduled date", field=field) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_description(value: Any, field: str, message: str) -> str:
    text = str(value).strip()
    if not text:
        raise TicketValidationError(message, field=field)
    if len(text) > MAX_DESCRIPTION_LENGTH:
        raise TicketValidationError(
            f"{field.replace('_', ' ').capitalize()} must be at most {MAX_DESCRIPTION_LENGTH} characters",
            field=field,
        )
    return text


def _parse_amount(value: Any, maximum: Decimal, message: str, field: str) -> Decimal | None:
    if _blank(value):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise TicketValidationError(message, field=field) from exc
    if not amount.is_finite() or amount < 0 or amount > maximum:
        raise TicketValidationError(message, field=field)
    return amount


class TicketLifecycleService:
    """Vendor-scoped ticket operations.

    Inputs are validated before any store access. Store failures surface as
    ``TicketStoreError`` with a fixed message; the original cause is logged.
    Notifications are submitted after a successful write and never affect the
    result returned to the caller.
    """

    def __init__(
        self,
        store: TicketStore,
        *,
        dispatcher: NotificationDispatcher | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self.metrics = register_default_metrics(metrics)

    @asynccontextmanager
    async def _operation(self, name: str, failure_message: str) -> AsyncIterator[None]:
        counter = self.metrics.counter(TICKET_OPERATIONS)
        try:
            with tracer.start_as_current_span(f"tickets.{name}"):
                yield
        except TicketServiceError:
            counter.inc(labels={"operation": name, "outcome": "rejected"})
            raise
        except Exception as exc:
            logger.exception("Ticket %s failed", name)
            counter.inc(labels={"operation": name, "outcome": "error"})
            raise TicketStoreError(failure_message) from exc
        counter.inc(labels={"operation": name, "outcome": "success"})

    def _notify(self, event: NotificationEvent, ticket_id: int, caller: CallerContext, reason: str | None = None) -> None:
        if self._dispatcher is None:
            return
        self._dispatcher.submit(
            NotificationJob(event=event, ticket_id=ticket_id, vendor_id=caller.tenant_id, update_reason=reason)
        )

    async def resolve_caller(self, user_id: int) -> CallerContext:
        """Map an authenticated vendor user onto its tenant."""

        async with self._operation("authorize", "Failed to verify vendor access"):
            vendor_id = await self._store.get_vendor_id_for_user(user_id)
            if vendor_id is None:
                raise TicketAuthorizationError("Vendor account not found")
        return CallerContext(caller_id=user_id, tenant_id=vendor_id)

    async def get_kpis(self, caller: CallerContext) -> TicketKPIs:
        async with self._operation("kpis", "Failed to fetch KPI data"):
            kpis = await self._store.get_kpis(caller.tenant_id)
        return kpis

    async def list_tickets(
        self,
        caller: CallerContext,
        *,
        status: str | None = None,
        support_type: str | None = None,
        priority: str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> TicketPage:
        async with self._operation("list", "Failed to fetch tickets"):
            filters = TicketFilters(
                status=None if _blank(status) else _parse_enum(TicketStatus, status, "Invalid ticket status", "status"),
                support_type=None
                if _blank(support_type)
                else _parse_enum(SupportType, support_type, "Invalid support type", "support_type"),
                priority=None if _blank(priority) else _parse_enum(TicketPriority, priority, "Invalid priority", "priority"),
                search=None if _blank(search) else search.strip(),
                limit=DEFAULT_PAGE_SIZE if limit is None else limit,
                offset=0 if offset is None else offset,
            )
            if filters.search is not None and len(filters.search) > MAX_SEARCH_LENGTH:
                raise TicketValidationError(
                    f"Search term must be at most {MAX_SEARCH_LENGTH} characters", field="search"
                )
            if not 1 <= filters.limit <= MAX_PAGE_SIZE:
                raise TicketValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
            if filters.offset < 0:
                raise TicketValidationError("Offset must be a non-negative integer", field="offset")
            page = await self._store.list_tickets(caller.tenant_id, filters)
        return page

    async def list_clients(self, caller: CallerContext) -> list[ClientOption]:
        async with self._operation("list_clients", "Failed to fetch clients"):
            clients = await self._store.list_clients(caller.tenant_id)
        return clients

    async def list_equipment(self, caller: CallerContext) -> list[EquipmentOption]:
        async with self._operation("list_equipment", "Failed to fetch equipment"):
            equipment = await self._store.list_equipment(caller.tenant_id)
        return equipment

    async def list_technicians(self, caller: CallerContext) -> list[TechnicianOption]:
        async with self._operation("list_technicians", "Failed to fetch technicians"):
            technicians = await self._store.list_technicians(caller.tenant_id)
        return technicians

    async def list_equipment_for_client(self, caller: CallerContext, client_id: Any) -> list[EquipmentOption]:
        async with self._operation("list_client_equipment", "Failed to fetch client equipment"):
            parsed = _parse_id(client_id, "Valid client ID is required", "client_id")
            equipment = await self._store.list_equipment_for_client(caller.tenant_id, parsed)
        return equipment

    async def create_ticket(self, caller: CallerContext, payload: Mapping[str, Any]) -> TicketRef:
        async with self._operation("create", "Failed to create ticket"):
            data = self._validate_create(caller, payload)
            ref = await self._store.create_ticket(caller.tenant_id, data)
        logger.info("Ticket %s created for vendor %s", ref.ticket_number, caller.tenant_id)

        self._notify(NotificationEvent.CREATED, ref.id, caller)
        if data.priority is TicketPriority.HIGH:
            self._notify(NotificationEvent.HIGH_PRIORITY_ALERT, ref.id, caller)
        return ref

    @staticmethod
    def _validate_create(caller: CallerContext, payload: Mapping[str, Any]) -> CreateTicketData:
        support_type = payload.get("support_type")
        issue_description = payload.get("issue_description")
        priority = payload.get("priority")
        if _blank(support_type) or _blank(issue_description) or _blank(priority):
            raise TicketValidationError("Support type, issue description, and priority are required")

        data = CreateTicketData(
            support_type=_parse_enum(SupportType, support_type, "Invalid support type", "support_type"),
            priority=_parse_enum(TicketPriority, priority, "Invalid priority", "priority"),
            issue_description=_parse_description(
                issue_description, "issue_description", "Issue description is required"
            ),
        )
        if not _blank(payload.get("client_id")):
            data.client_id = _parse_id(payload["client_id"], "Invalid client ID", "client_id")
        if not _blank(payload.get("equipment_instance_id")):
            data.equipment_instance_id = _parse_id(
                payload["equipment_instance_id"], "Invalid equipment ID", "equipment_instance_id"
            )
        if not _blank(payload.get("scheduled_date")):
            data.scheduled_date = _parse_datetime(payload["scheduled_date"], "scheduled_date")
        if _blank(payload.get("assigned_technician")):
            data.assigned_technician = caller.caller_id
        else:
            data.assigned_technician = _parse_id(
                payload["assigned_technician"], "Invalid technician ID", "assigned_technician"
            )
        return data

    async def _details(self, ticket_number: str, caller: CallerContext) -> TicketDetails:
        details = await self._store.get_ticket_details_by_number(ticket_number, caller.tenant_id)
        if details is None:
            raise TicketNotFoundError()
        return details

    async def get_ticket(self, reference: str, caller: CallerContext) -> TicketDetails:
        async with self._operation("detail", "Failed to fetch ticket details"):
            number = await resolve_ticket_number(parse_reference(reference), caller, self._store)
            details = await self._details(number, caller)
        return details

    async def get_related_tickets(self, reference: str, caller: CallerContext) -> list[RelatedTicket]:
        async with self._operation("related", "Failed to fetch related tickets"):
            number = await resolve_ticket_number(parse_reference(reference), caller, self._store)
            await self._details(number, caller)
            related = await self._store.get_related_tickets(number, caller.tenant_id)
        return related

    async def update_ticket(self, reference: str, caller: CallerContext, update: TicketUpdate) -> TicketRef:
        async with self._operation("update", "Failed to update ticket"):
            ticket_ref = parse_reference(reference)
            changes = self._validate_update(update)
            number = await resolve_ticket_number(ticket_ref, caller, self._store)
            if changes.status is not None:
                current = await self._details(number, caller)
                if not TicketStateMachine.can_transition(current.status, changes.status):
                    logger.warning(
                        "Ticket %s moved from %s to %s outside the lifecycle graph",
                        number,
                        current.status.value,
                        changes.status.value,
                    )
            ref = await self._store.update_ticket(number, caller.tenant_id, changes)
            if ref is None:
                raise TicketNotFoundError("Ticket not found or access denied")
        logger.info("Ticket %s updated: %s", ref.ticket_number, sorted(changes.as_dict()))

        if changes.notifies:
            self._notify(NotificationEvent.UPDATED, ref.id, caller, update.update_reason)
        return ref

    @staticmethod
    def _validate_update(update: TicketUpdate) -> TicketChanges:
        provided = update.provided()
        if not provided:
            raise TicketValidationError("No update data provided")

        changes = TicketChanges()
        if "status" in provided:
            changes.status = _parse_enum(TicketStatus, provided["status"], "Invalid ticket status", "status")
        if "priority" in provided:
            changes.priority = _parse_enum(TicketPriority, provided["priority"], "Invalid priority", "priority")
        if "issue_description" in provided:
            changes.issue_description = _parse_description(
                provided["issue_description"], "issue_description", "Issue description is required"
            )
        if "scheduled_date" in provided:
            changes.scheduled_date = _parse_datetime(provided["scheduled_date"], "scheduled_date")
        if "assigned_technician" in provided:
            changes.assigned_technician = _parse_id(
                provided["assigned_technician"], "Invalid technician ID", "assigned_technician"
            )
        return changes

    async def resolve_ticket(self, reference: str, caller: CallerContext, payload: Mapping[str, Any]) -> TicketRef:
        async with self._operation("resolve", "Failed to resolve ticket"):
            ticket_ref = parse_reference(reference)
            if _blank(payload.get("resolution_description")):
                raise TicketValidationError("Resolution description is required", field="resolution_description")
            data = ResolveTicketData(
                resolution_description=_parse_description(
                    payload["resolution_description"],
                    "resolution_description",
                    "Resolution description is required",
                ),
                actual_hours=_parse_amount(
                    payload.get("actual_hours"),
                    MAX_ACTUAL_HOURS,
                    f"Actual hours must be between 0 and {MAX_ACTUAL_HOURS}",
                    "actual_hours",
                ),
                cost=_parse_amount(payload.get("cost"), MAX_COST, f"Cost must be between 0 and {MAX_COST}", "cost"),
            )
            number = await resolve_ticket_number(ticket_ref, caller, self._store)
            ref = await self._store.resolve_ticket(number, caller.tenant_id, data)
            if ref is None:
                raise TicketNotFoundError("Ticket not found or access denied")
        logger.info("Ticket %s resolved", ref.ticket_number)

        self._notify(NotificationEvent.COMPLETED, ref.id, caller)
        return ref

    async def close_ticket(self, reference: str, caller: CallerContext) -> TicketRef:
        async with self._operation("close", "Failed to close ticket"):
            number = await resolve_ticket_number(parse_reference(reference), caller, self._store)
            ref = await self._store.close_ticket(number, caller.tenant_id)
            if ref is None:
                raise TicketNotFoundError("Ticket not found or access denied")
        logger.info("Ticket %s closed", ref.ticket_number)

        self._notify(NotificationEvent.UPDATED, ref.id, caller, CLOSE_REASON)
        return ref
