"""
Request ID middleware for correlation and tracing.

Propagates or generates the correlation header so compile log lines for one
HTTP call can be grouped together.
"""

import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from compile_runner.config import settings
from compile_runner.models import generate_request_id

MAX_REQUEST_ID_LENGTH = 100


def resolve_request_id(header_value: str | None) -> str:
    """
    Return the incoming request ID if it is a well-formed UUID, else a new one.

    Args:
        header_value: Raw header value, if any

    Returns:
        A UUID string safe to log and echo back
    """
    if header_value is None or len(header_value) > MAX_REQUEST_ID_LENGTH:
        return generate_request_id()
    try:
        uuid.UUID(header_value)
    except (ValueError, AttributeError):
        return generate_request_id()
    return header_value


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to propagate or generate request IDs.

    - Reads the correlation header (default: X-Request-Id)
    - Replaces missing or malformed values with a fresh UUID
    - Binds the ID to the structlog context and request.state
    - Echoes the ID in the response headers

    The HTTP request ID is unrelated to the caller-supplied compile id in
    the request body, which is never interpreted.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(settings.request_id_header.lower()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[settings.request_id_header] = request_id
        return response
