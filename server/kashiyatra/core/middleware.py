"""Custom middleware for request correlation, trace context, and access logging."""

import logging
import re
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .observability import metrics_collector

logger = logging.getLogger(__name__)

TRACEPARENT_PATTERN = re.compile(r"^([0-9a-f]{2})-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.

    The ID is taken from the incoming header when the client supplies one,
    otherwise generated, and is echoed back on the response.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response


def parse_traceparent(traceparent: str) -> Optional[dict]:
    """Parse a W3C traceparent header, returning None when it is malformed."""
    match = TRACEPARENT_PATTERN.match(traceparent)
    if not match:
        return None

    version, trace_id, parent_id, flags = match.groups()

    # Only version 00 is defined; all-zero ids are invalid
    if version != "00" or trace_id == "0" * 32 or parent_id == "0" * 16:
        return None

    return {"trace_id": trace_id, "parent_id": parent_id, "flags": flags}


class TraceContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that continues or starts a W3C Trace Context.

    https://www.w3.org/TR/trace-context/
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        tracestate = request.headers.get("tracestate")
        incoming = parse_traceparent(request.headers.get("traceparent", ""))

        if incoming:
            trace_id = incoming["trace_id"]
            parent_span_id = incoming["parent_id"]
            flags = incoming["flags"]
        else:
            trace_id = uuid.uuid4().hex
            parent_span_id = None
            flags = "01"

        span_id = uuid.uuid4().hex[:16]
        request.state.trace_context = {
            "trace_id": trace_id,
            "span_id": span_id,
            "parent_span_id": parent_span_id,
            "flags": flags,
            "tracestate": tracestate,
        }

        response = await call_next(request)

        response.headers["traceparent"] = f"00-{trace_id}-{span_id}-{flags}"
        if tracestate:
            response.headers["tracestate"] = tracestate
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs HTTP requests and records request metrics.

    Each completed request is logged with its correlation IDs, status code
    and duration, at a level chosen from the status code.
    """

    def __init__(self, app: ASGIApp, skip_paths: Optional[list] = None):
        super().__init__(app)
        self.skip_paths = skip_paths or ["/health", "/metrics", "/favicon.ico"]

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        trace_context = getattr(request.state, "trace_context", {})

        log_data = {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "trace_id": trace_context.get("trace_id", "unknown"),
            "span_id": trace_context.get("span_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "client_ip": self._get_client_ip(request),
            "user_agent": request.headers.get("User-Agent", "unknown"),
        }

        logger.debug("HTTP request started", extra=log_data)

        response = await call_next(request)
        duration = time.perf_counter() - start_time

        metrics_collector.record_request(
            method=request.method,
            endpoint=request.url.path,
            status_code=response.status_code,
            duration_seconds=duration,
        )

        log_data.update({
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        })

        if response.status_code >= 500:
            logger.error("HTTP request completed with server error", extra=log_data)
        elif response.status_code >= 400:
            logger.warning("HTTP request completed with client error", extra=log_data)
        else:
            logger.info("HTTP request completed successfully", extra=log_data)

        return response


def setup_middleware(app, enable_logging: bool = True) -> None:
    """
    Setup all middleware on the FastAPI app.

    Args:
        app: FastAPI application instance
        enable_logging: Whether to enable request logging middleware
    """
    # Last added runs first, so request IDs exist before trace and logging
    if enable_logging:
        app.add_middleware(LoggingMiddleware)

    app.add_middleware(TraceContextMiddleware)
    app.add_middleware(RequestIDMiddleware)
