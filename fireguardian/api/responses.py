"""Response envelope and error mapping shared by every route."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from fireguardian.tickets.errors import (
    TicketAuthorizationError,
    TicketDeletionDisabledError,
    TicketNotFoundError,
    TicketServiceError,
    TicketValidationError,
)

logger = logging.getLogger(__name__)

DataT = TypeVar("DataT")

_STATUS_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "INTERNAL_ERROR",
    status.HTTP_503_SERVICE_UNAVAILABLE: "SERVICE_UNAVAILABLE",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResponseMeta(BaseModel):
    timestamp: str = Field(default_factory=_timestamp)


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = True
    message: str
    data: DataT | None = None
    meta: ResponseMeta = Field(default_factory=ResponseMeta)


def error_response(
    status_code: int,
    message: str,
    *,
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "success": False,
        "message": message,
        "code": _STATUS_CODES.get(status_code, "ERROR"),
        "meta": {"timestamp": _timestamp()},
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def status_for(exc: TicketServiceError) -> int:
    if isinstance(exc, TicketValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, TicketAuthorizationError):
        return status.HTTP_403_FORBIDDEN if exc.authenticated else status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, TicketNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, TicketDeletionDisabledError):
        return status.HTTP_405_METHOD_NOT_ALLOWED
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def ticket_error_handler(request: Request, exc: TicketServiceError) -> JSONResponse:
    status_code = status_for(exc)
    errors = None
    if isinstance(exc, TicketValidationError) and exc.field:
        errors = [{"field": exc.field, "message": exc.message}]
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(status_code, exc.message, errors=errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = error_response(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TicketServiceError, ticket_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
