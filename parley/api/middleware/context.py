"""Request context middleware.

Binds request_id, session_id and trace_id to structlog contextvars for the
duration of each request, and records request metrics.
"""

import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bind_contextvars, clear_contextvars

from parley.observability.logging import get_logger
from parley.observability.metrics import REQUEST_COUNT, REQUEST_LATENCY

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds per-request identifiers to the logging context.

    Headers:
        X-Request-ID: Request identifier (generated when absent, echoed back)
        X-Session-ID: Chat session identifier
        traceparent: W3C trace context, source of trace_id
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and bind logging context."""
        clear_contextvars()

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        bind_contextvars(
            request_id=request_id,
            session_id=request.headers.get("X-Session-ID"),
            trace_id=self._extract_trace_id(request.headers.get("traceparent")),
        )

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        REQUEST_COUNT.labels(endpoint=endpoint, status=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(elapsed)

        logger.info(
            "request_completed",
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
            latency_ms=round(elapsed * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _extract_trace_id(traceparent: str | None) -> str | None:
        """Extract trace_id from a W3C traceparent header.

        Format: version-trace_id-parent_id-trace_flags
        """
        if not traceparent:
            return None
        parts = traceparent.split("-")
        return parts[1] if len(parts) >= 2 else None
