"""Request context middleware — request id, access log, last-resort 500.

Learn: Every request gets an id, either from the incoming X-Request-ID
header (for distributed tracing) or a fresh UUID. The id is bound to
structlog's contextvars so it appears in every log entry for that
request, returned in the response header, and the request is logged
once on completion with its status and duration.

Unhandled exceptions are converted to `{"error": "Internal server error"}`
here rather than in an app-level Exception handler: Starlette serves
those from its outermost ServerErrorMiddleware, which would skip this
middleware and the security headers.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from erm.errors import error_response

logger = structlog.get_logger()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id and log each request once it completes."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "http.unhandled_exception",
                method=request.method,
                path=request.url.path,
            )
            response = error_response(500, "Internal server error")
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response
