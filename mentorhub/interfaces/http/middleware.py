"""Common FastAPI middleware utilities for the MentorHub HTTP interface."""

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request
from fastapi.responses import Response

from ...logging import debug, LogRecord, LogEvent


async def logging_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Attach request ID and timing headers.

    Generates a per-request UUID (``X-Request-ID``) unless the client sent
    one, stores it with the monotonic start time on ``request.state`` for
    downstream handlers, and reports the wall-clock latency in
    ``X-Response-Time-ms``.
    """
    if not hasattr(request.state, "request_id"):
        request.state.request_id = request.headers.get("x-request-id") or str(
            uuid.uuid4()
        )
    if not hasattr(request.state, "start_time_monotonic"):
        request.state.start_time_monotonic = time.monotonic()

    response = await call_next(request)

    duration_ms = (time.monotonic() - request.state.start_time_monotonic) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    response.headers["X-Response-Time-ms"] = str(duration_ms)

    debug(
        LogRecord(
            event=LogEvent.REQUEST_COMPLETED.value,
            message=f"{request.method} {request.url.path} -> {response.status_code}",
            request_id=request.state.request_id,
            data={"status_code": response.status_code, "duration_ms": duration_ms},
        )
    )
    return response
