"""
ops_console.observability.middleware

Per-request context: request/navigation ids plus structlog contextvars.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "x-request-id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Every request is one navigation. Its id is always generated here and stored on
    `request.state.navigation_id` (the once-only audit token), so a client cannot replay it.
    A caller-supplied `x-request-id` is only used to correlate log lines.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        navigation_id = uuid.uuid4().hex
        request_id = request.headers.get(REQUEST_ID_HEADER) or navigation_id
        request.state.navigation_id = navigation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            navigation_id=navigation_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
