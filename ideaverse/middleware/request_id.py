"""
IdeaVerse Backend — Request ID Middleware
===========================================

What:  Assigns a correlation ID to each request and echoes it in the response.
Why:   Ties an error the client shows verbatim to the server log lines
       written while handling it.
How:   Honors a client-sent X-Request-ID, otherwise generates a short UUID;
       stores it in a ContextVar (for loggers and exception handlers) and in
       request.state (for route handlers).
When:  Outermost middleware: the ID is set before rate limiting, logging
       and every handler run.

Every error body carries the same `request_id`, the 429 from
RateLimitMiddleware included.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a unique ID to each request for tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Honor an upstream ID (proxy, client) so traces join up across hops
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        # Visible to inner middleware and handlers: they run in this context
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
