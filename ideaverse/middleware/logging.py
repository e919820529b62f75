"""
IdeaVerse Backend — Request Logging Middleware
================================================

What:  One access log line per HTTP request with status and duration.
Why:   Gives operators latency and error rates per route without a
       metrics stack.
How:   Measures from middleware entry to response; picks the log level from
       the status class (5xx ERROR, 4xx WARNING, else INFO).
When:  Runs inside RequestIDMiddleware and RateLimitMiddleware, so the
       request ID is already set and throttled requests are not logged here.

Logged: method, path, status, duration, client IP, request ID.
Not logged: bodies, Authorization headers, bearer tokens.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ideaverse.middleware.request_id import request_id_var

logger = logging.getLogger("ideaverse.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Typical durations:
        - GET /health: 1-5ms (secret mode), longer when the JWKS cache is cold
        - GET /api/ideas: 5-30ms
        - POST /api/ideas/{id}/like: 5-20ms (single UPDATE)
    """

    # Health checks poll every few seconds and would drown the access log
    SKIPPED_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.SKIPPED_PATHS:
            return await call_next(request)

        # perf_counter: monotonic, unaffected by wall-clock adjustments
        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        # Level follows the status class so alerts can filter on WARNING/ERROR
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
