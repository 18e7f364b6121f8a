import time
from enum import StrEnum
from typing import Dict, Optional, Tuple, Type

from fastapi import Request
from fastapi.responses import JSONResponse

from ...constants import ERROR_INTERNAL
from ...domain.exceptions import (
    InvalidStateError,
    MentorHubException,
    NotFoundError,
)
from ...logging import error, warning, LogRecord, LogEvent


class ErrorType(StrEnum):
    INVALID_REQUEST = "invalid_request_error"
    NOT_FOUND = "not_found_error"
    INVALID_STATE = "invalid_state_error"
    API_ERROR = "api_error"


# Caller misuse maps to 4xx; everything else is a system fault
CLIENT_ERROR_MAP: Dict[Type[MentorHubException], Tuple[int, ErrorType]] = {
    NotFoundError: (404, ErrorType.NOT_FOUND),
    InvalidStateError: (409, ErrorType.INVALID_STATE),
}


def get_error_details_from_exc(
    exc: Exception, fallback_message: str = ERROR_INTERNAL
) -> Tuple[int, ErrorType, str]:
    """Maps caught exceptions to status code, error type and caller-facing message."""
    for exc_type, (status_code, error_type) in CLIENT_ERROR_MAP.items():
        if isinstance(exc, exc_type):
            return status_code, error_type, str(exc)
    return 500, ErrorType.API_ERROR, fallback_message


def build_error_response(
    error_type: ErrorType, message: str, status_code: int
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": message, "type": error_type.value}
    )


async def log_and_return_error_response(
    request: Request,
    status_code: int,
    error_type: ErrorType,
    error_message: str,
    caught_exception: Optional[Exception] = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    start_time_mono = getattr(request.state, "start_time_monotonic", time.monotonic())
    duration_ms = (time.monotonic() - start_time_mono) * 1000

    log_data = {
        "status_code": status_code,
        "duration_ms": duration_ms,
        "error_type": error_type.value,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }
    record = LogRecord(
        event=LogEvent.REQUEST_FAILURE.value,
        message=f"Request failed: {error_message}",
        request_id=request_id,
        data=log_data,
    )
    if status_code < 500:
        warning(record, exc=caught_exception)
    else:
        error(record, exc=caught_exception)
    return build_error_response(error_type, error_message, status_code)


async def handle_route_exception(
    request: Request, exc: Exception, fallback_message: str
) -> JSONResponse:
    """Convert an exception raised inside a route into a logged error response."""
    status_code, error_type, message = get_error_details_from_exc(exc, fallback_message)
    return await log_and_return_error_response(
        request, status_code, error_type, message, caught_exception=exc
    )
