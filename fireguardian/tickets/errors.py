from __future__ import annotations

DELETION_DISABLED_MESSAGE = "Ticket deletion is not allowed for safety reasons"


class TicketServiceError(RuntimeError):
    """Base error for ticket service issues."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TicketValidationError(TicketServiceError):
    """Raised when caller input violates a field constraint."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class TicketAuthorizationError(TicketServiceError):
    """Raised when the caller is not allowed to act for a vendor tenant."""

    def __init__(self, message: str = "Vendor access required", *, authenticated: bool = True) -> None:
        super().__init__(message)
        self.authenticated = authenticated


class TicketNotFoundError(TicketServiceError):
    """Raised when a ticket could not be located within the caller's tenant."""

    def __init__(self, message: str = "Ticket not found") -> None:
        super().__init__(message)


class TicketDeletionDisabledError(TicketServiceError):
    """Raised for every delete attempt."""

    def __init__(self) -> None:
        super().__init__(DELETION_DISABLED_MESSAGE)


class TicketStoreError(TicketServiceError):
    """Raised when persistence fails unexpectedly; the message is safe to expose."""
