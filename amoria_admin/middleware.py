"""
Request correlation for the admin API.
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger(__name__)


def incoming_request_id(request: Request) -> str:
    """Reuse a caller-supplied UUID request id, otherwise mint a new one."""
    supplied = request.headers.get(REQUEST_ID_HEADER, "")
    try:
        return str(uuid.UUID(supplied))
    except ValueError:
        return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an id.

    The id lands in ``request.state.request_id``, in structlog's contextvars
    for every log line emitted while the request runs, and in the
    X-Request-ID response header. The admin UI forwards the header when it
    retries, so a retried call keeps its id.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = incoming_request_id(request)
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.debug(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
