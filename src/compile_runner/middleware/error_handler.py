"""
Last-resort error handling for the HTTP layer.

Compile failures never reach this middleware: CompileService turns them into
`{id, error}` results. What does reach it (bugs in routing, serialization,
or the service itself) is logged with its stack trace and answered with a
fixed body that names only the request id.
"""

import time

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from compile_runner.models import generate_request_id

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_CODE = "internal_error"


def internal_error_body(request_id: str) -> dict[str, str]:
    """
    Build the 500 response body.

    Exception text is never included: it may carry workspace paths or
    compiler output.
    """
    return {
        "error": INTERNAL_ERROR_CODE,
        "request_id": request_id,
        "message": (
            "An internal error occurred. "
            f"Please contact support with request_id: {request_id}"
        ),
    }


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with its duration and convert unhandled exceptions to 500.

    Runs inside RequestIdMiddleware, so `request.state.request_id` is normally
    set; a fresh id is generated if it is not.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.monotonic()
        logger.debug("request_started", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as exc:
            request_id = getattr(request.state, "request_id", None) or generate_request_id()
            logger.error(
                "request_failed",
                exc_info=exc,
                exception_type=type(exc).__name__,
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )
            return JSONResponse(status_code=500, content=internal_error_body(request_id))

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return response
