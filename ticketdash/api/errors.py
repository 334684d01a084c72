"""Unified error handling — service, fetch and request errors → JSON."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ticketdash.engines.ticket_fetcher.jira_client import (
    FetchError,
    RateLimitError,
    UnauthorizedError,
)
from ticketdash.services import (
    AuthenticationError,
    ConfigurationError,
    ServiceError,
    StoreError,
    SyncAlreadyInProgressError,
    ValidationError,
)

_STATUS_MAP: dict[type[ServiceError], int] = {
    ConfigurationError: 422,
    ValidationError: 422,
    AuthenticationError: 401,
    SyncAlreadyInProgressError: 409,
    StoreError: 500,
}


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    status = 500
    for cls in type(exc).__mro__:
        if cls in _STATUS_MAP:
            status = _STATUS_MAP[cls]
            break
    return JSONResponse(status_code=status, content={"detail": str(exc)})


async def _fetch_error_handler(_request: Request, exc: FetchError) -> JSONResponse:
    if isinstance(exc, UnauthorizedError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})
    if isinstance(exc, RateLimitError):
        return JSONResponse(
            status_code=429,
            content={"detail": str(exc), "retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )
    return JSONResponse(status_code=502, content={"detail": str(exc)})


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return JSONResponse(status_code=422, content={"detail": "; ".join(messages)})


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(FetchError, _fetch_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
