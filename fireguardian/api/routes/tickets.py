from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from fireguardian.api.responses import ApiResponse
from fireguardian.dependencies.tickets import Caller, TicketServiceDep
from fireguardian.tickets.models import TicketPage, TicketRef, TicketUpdate
from fireguardian.tickets.service import reject_ticket_deletion
from fireguardian.tickets.state import SupportType, TicketPriority, TicketStatus

router = APIRouter(prefix="/api/vendor/tickets", tags=["tickets"])

# Identifiers arrive as numbers or numeric strings; the service validates them.
IdInput = int | str | None
AmountInput = float | str | None


class TicketCreateRequest(BaseModel):
    support_type: str | None = None
    issue_description: str | None = None
    priority: str | None = None
    client_id: IdInput = None
    equipment_instance_id: IdInput = None
    scheduled_date: str | None = None
    assigned_technician: IdInput = None


class TicketUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str | None = Field(default=None, validation_alias=AliasChoices("ticket_status", "status"))
    priority: str | None = None
    issue_description: str | None = None
    scheduled_date: str | None = None
    assigned_technician: IdInput = None
    update_reason: str | None = None

    def to_update(self) -> TicketUpdate:
        return TicketUpdate.from_mapping(self.model_dump(exclude_unset=True))


class TicketResolveRequest(BaseModel):
    resolution_description: str | None = None
    actual_hours: AmountInput = None
    cost: AmountInput = None


class TicketRefResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_number: str


class TicketKPIResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_tickets: int
    open_tickets: int
    high_priority_tickets: int


class TicketListItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ticket_number: str
    equipment_serial: str
    client: str
    status: TicketStatus
    support_type: SupportType
    priority: TicketPriority
    issue_description: str
    scheduled_date: datetime | None


class PaginationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    limit: int
    offset: int
    has_more: bool = Field(serialization_alias="hasMore")


class TicketPageResponse(BaseModel):
    total_tickets: int
    open_tickets: int
    high_priority: int
    resolved_tickets: int
    tickets: list[TicketListItemResponse]
    pagination: PaginationResponse


class ClientOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_name: str


class EquipmentOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    serial_number: str
    equipment_name: str | None


class TechnicianOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str


class TicketDetailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
    client_id: int | None
    client_name: str | None
    client_phone: str | None
    client_email: str | None
    client_address: str | None
    equipment_id: int | None
    serial_number: str | None
    equipment_name: str | None
    equipment_type: str | None
    compliance_status: str | None


class RelatedTicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ticket_number: str
    equipment_serial: str
    issue_description: str
    status: TicketStatus
    priority: TicketPriority
    scheduled_date: datetime | None


def _ref_response(ref: TicketRef, message: str) -> ApiResponse[TicketRefResponse]:
    return ApiResponse[TicketRefResponse](message=message, data=TicketRefResponse.model_validate(ref))


def _page_response(page: TicketPage) -> TicketPageResponse:
    return TicketPageResponse(
        total_tickets=page.total_tickets,
        open_tickets=page.open_tickets,
        high_priority=page.high_priority,
        resolved_tickets=page.resolved_tickets,
        tickets=[TicketListItemResponse.model_validate(item) for item in page.tickets],
        pagination=PaginationResponse(
            total=page.total_tickets, limit=page.limit, offset=page.offset, has_more=page.has_more
        ),
    )


@router.get("/kpis", response_model=ApiResponse[TicketKPIResponse])
async def get_kpis(caller: Caller, service: TicketServiceDep) -> ApiResponse[TicketKPIResponse]:
    kpis = await service.get_kpis(caller)
    return ApiResponse[TicketKPIResponse](
        message="KPI data retrieved successfully", data=TicketKPIResponse.model_validate(kpis)
    )


@router.get("", response_model=ApiResponse[TicketPageResponse])
async def list_tickets(
    caller: Caller,
    service: TicketServiceDep,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    support_type: str | None = None,
    priority: str | None = None,
    search: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> ApiResponse[TicketPageResponse]:
    page = await service.list_tickets(
        caller,
        status=status_filter,
        support_type=support_type,
        priority=priority,
        search=search,
        limit=limit,
        offset=offset,
    )
    return ApiResponse[TicketPageResponse](message="Tickets retrieved successfully", data=_page_response(page))


@router.get("/clients", response_model=ApiResponse[list[ClientOptionResponse]])
async def list_clients(caller: Caller, service: TicketServiceDep) -> ApiResponse[list[ClientOptionResponse]]:
    clients = await service.list_clients(caller)
    return ApiResponse[list[ClientOptionResponse]](
        message="Clients retrieved successfully",
        data=[ClientOptionResponse.model_validate(client) for client in clients],
    )


@router.get("/equipment", response_model=ApiResponse[list[EquipmentOptionResponse]])
async def list_equipment(caller: Caller, service: TicketServiceDep) -> ApiResponse[list[EquipmentOptionResponse]]:
    equipment = await service.list_equipment(caller)
    return ApiResponse[list[EquipmentOptionResponse]](
        message="Equipment retrieved successfully",
        data=[EquipmentOptionResponse.model_validate(item) for item in equipment],
    )


@router.get("/equipment/{client_id}", response_model=ApiResponse[list[EquipmentOptionResponse]])
async def list_client_equipment(
    client_id: str, caller: Caller, service: TicketServiceDep
) -> ApiResponse[list[EquipmentOptionResponse]]:
    equipment = await service.list_equipment_for_client(caller, client_id)
    return ApiResponse[list[EquipmentOptionResponse]](
        message="Client equipment retrieved successfully",
        data=[EquipmentOptionResponse.model_validate(item) for item in equipment],
    )


@router.get("/technicians", response_model=ApiResponse[list[TechnicianOptionResponse]])
async def list_technicians(
    caller: Caller, service: TicketServiceDep
) -> ApiResponse[list[TechnicianOptionResponse]]:
    technicians = await service.list_technicians(caller)
    return ApiResponse[list[TechnicianOptionResponse]](
        message="Technicians retrieved successfully",
        data=[TechnicianOptionResponse.model_validate(item) for item in technicians],
    )


@router.post("", response_model=ApiResponse[TicketRefResponse], status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest, caller: Caller, service: TicketServiceDep
) -> ApiResponse[TicketRefResponse]:
    ref = await service.create_ticket(caller, payload.model_dump())
    return _ref_response(ref, "Ticket created successfully")


@router.get("/{reference}", response_model=ApiResponse[TicketDetailResponse])
async def get_ticket(reference: str, caller: Caller, service: TicketServiceDep) -> ApiResponse[TicketDetailResponse]:
    details = await service.get_ticket(reference, caller)
    return ApiResponse[TicketDetailResponse](
        message="Ticket details retrieved successfully", data=TicketDetailResponse.model_validate(details)
    )


@router.get("/{reference}/related", response_model=ApiResponse[list[RelatedTicketResponse]])
async def get_related_tickets(
    reference: str, caller: Caller, service: TicketServiceDep
) -> ApiResponse[list[RelatedTicketResponse]]:
    related = await service.get_related_tickets(reference, caller)
    return ApiResponse[list[RelatedTicketResponse]](
        message="Related tickets retrieved successfully",
        data=[RelatedTicketResponse.model_validate(item) for item in related],
    )


@router.put("/{reference}", response_model=ApiResponse[TicketRefResponse])
async def update_ticket(
    reference: str, payload: TicketUpdateRequest, caller: Caller, service: TicketServiceDep
) -> ApiResponse[TicketRefResponse]:
    ref = await service.update_ticket(reference, caller, payload.to_update())
    return _ref_response(ref, "Ticket updated successfully")


@router.put("/{reference}/resolve", response_model=ApiResponse[TicketRefResponse])
async def resolve_ticket(
    reference: str, payload: TicketResolveRequest, caller: Caller, service: TicketServiceDep
) -> ApiResponse[TicketRefResponse]:
    ref = await service.resolve_ticket(reference, caller, payload.model_dump())
    return _ref_response(ref, "Ticket resolved successfully")


@router.put("/{reference}/close", response_model=ApiResponse[TicketRefResponse])
async def close_ticket(reference: str, caller: Caller, service: TicketServiceDep) -> ApiResponse[TicketRefResponse]:
    ref = await service.close_ticket(reference, caller)
    return _ref_response(ref, "Ticket closed successfully")


@router.delete("/{reference}", status_code=status.HTTP_405_METHOD_NOT_ALLOWED)
async def delete_ticket(reference: str) -> None:
    reject_ticket_deletion()
