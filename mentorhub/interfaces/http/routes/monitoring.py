"""HTTP cache monitoring endpoints."""

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ....infrastructure.http.request_client import RequestClient

router = APIRouter()


def _request_client(request: Request) -> Optional[RequestClient]:
    return getattr(request.app.state, "request_client", None)


@router.get("/v1/cache/stats")
async def get_cache_stats(request: Request) -> JSONResponse:
    """Get outbound HTTP cache statistics."""
    client = _request_client(request)
    return JSONResponse(
        content={"http_cache": client.cache.stats() if client else None}
    )


@router.post("/v1/cache/clear")
async def clear_cache(request: Request) -> JSONResponse:
    """Drop every cached outbound response."""
    client = _request_client(request)
    if client:
        client.clear_cache()
    return JSONResponse(content={"status": "cleared", "enabled": client is not None})
