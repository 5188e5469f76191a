"""Maintenance ticket lifecycle domain."""

from .errors import (
    TicketAuthorizationError,
    TicketDeletionDisabledError,
    TicketNotFoundError,
    TicketServiceError,
    TicketStoreError,
    TicketValidationError,
)
from .models import CallerContext, TicketRef, TicketUpdate
from .state import SupportType, TicketPriority, TicketStateMachine, TicketStatus

__all__ = [
    "CallerContext",
    "SupportType",
    "TicketAuthorizationError",
    "TicketDeletionDisabledError",
    "TicketNotFoundError",
    "TicketPriority",
    "TicketRef",
    "TicketServiceError",
    "TicketStateMachine",
    "TicketStatus",
    "TicketStoreError",
    "TicketUpdate",
    "TicketValidationError",
]
