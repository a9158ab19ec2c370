"""Mapping from booking engine errors to HTTP responses.

Domain functions raise ``BookingError`` subclasses; the app factory installs
``booking_error_handler`` so routes can let them propagate. Auth, routing and
request-body failures get the same ``{"detail", "error"}`` body.
"""

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from carrental.domain.errors import (
    BookingError,
    ConflictError,
    ForbiddenError,
    InvalidIntervalError,
    InvalidStateError,
    NotAvailableError,
    NotFoundError,
    ValidationError,
)
from carrental.observability.logging import get_logger
from carrental.observability.redaction import safe_log_context

logger = get_logger(__name__)

HTTP_STATUS_BY_ERROR: dict[type[BookingError], int] = {
    InvalidIntervalError: 400,
    ValidationError: 422,
    NotFoundError: 404,
    ForbiddenError: 403,
    NotAvailableError: 409,
    ConflictError: 409,
    InvalidStateError: 409,
}


def status_for(exc: BookingError) -> int:
    """HTTP status for a domain error; unknown kinds are client errors (400)."""
    for error_type in type(exc).__mro__:
        if error_type in HTTP_STATUS_BY_ERROR:
            return HTTP_STATUS_BY_ERROR[error_type]
    return 400


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "booking request rejected",
        extra={
            "extra_fields": safe_log_context(
                path=request.url.path,
                error=exc.kind,
                status_code=status_code,
            )
        },
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": exc.kind},
    )


ERROR_KIND_BY_HTTP_STATUS: dict[int, str] = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    503: "unavailable",
}


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Give auth and routing failures the same body shape as domain errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error": ERROR_KIND_BY_HTTP_STATUS.get(exc.status_code, "http_error"),
        },
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(
        "request body rejected",
        extra={
            "extra_fields": safe_log_context(
                path=request.url.path,
                error=ValidationError.kind,
                status_code=422,
            )
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "error": ValidationError.kind},
    )
