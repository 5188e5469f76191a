from __future__ import annotations

from datetime import datetime
from enum import Enum


class TicketStatus(str, Enum):
    """Supported states for a maintenance ticket's lifecycle."""

    OPEN = "open"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class SupportType(str, Enum):
    MAINTENANCE = "maintenance"
    SYSTEM = "system"
    USER = "user"


class TicketStateMachine:
    """Describe the expected ticket lifecycle.

    Resolve and Close follow the graph below. Direct status edits through Update are
    allowed to leave it; callers use ``can_transition`` to flag such edits rather than
    to reject them.
    """

    _TRANSITIONS: dict[TicketStatus, set[TicketStatus]] = {
        TicketStatus.OPEN: {TicketStatus.RESOLVED, TicketStatus.CLOSED},
        TicketStatus.RESOLVED: {TicketStatus.CLOSED, TicketStatus.OPEN},
        TicketStatus.CLOSED: set(),
    }

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.OPEN

    @classmethod
    def can_transition(cls, current: TicketStatus, new: TicketStatus) -> bool:
        if current == new:
            return True
        return new in cls._TRANSITIONS.get(current, set())


def is_completed(status: TicketStatus | str, resolved_at: datetime | None) -> bool:
    """Return whether a ticket row denotes finished work."""

    return TicketStatus(status) == TicketStatus.RESOLVED and resolved_at is not None
