from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from fireguardian.dependencies.auth import User, UserType, user_type_required
from fireguardian.tickets.models import CallerContext
from fireguardian.tickets.service import TicketLifecycleService

require_vendor = user_type_required(UserType.VENDOR)

VendorUser = Annotated[User, Depends(require_vendor)]


async def get_ticket_service(request: Request) -> TicketLifecycleService:
    service = getattr(request.app.state, "ticket_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Ticket service is not configured")
    return service


TicketServiceDep = Annotated[TicketLifecycleService, Depends(get_ticket_service)]


async def get_caller_context(user: VendorUser, service: TicketServiceDep) -> CallerContext:
    return await service.resolve_caller(user.user_id)


Caller = Annotated[CallerContext, Depends(get_caller_context)]
