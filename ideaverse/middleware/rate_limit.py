"""
IdeaVerse Backend — Rate Limiting Middleware
==============================================

What:  Per-IP sliding window rate limiter.
Why:   Keeps one client from flooding the like toggle and the write routes.
How:   Keeps request timestamps per client IP in memory; drops the ones older
       than the window; rejects with 429 once the window is full.
Who:   Applied to every request except health and docs.
When:  Second in the chain, just inside RequestIDMiddleware, so a rejected
       request still gets an X-Request-ID and a matching `request_id`.

Algorithm: Sliding Window Log
    1. Each IP gets a list of request timestamps
    2. On each request, remove timestamps older than the window
    3. If remaining count >= limit, reject with 429 (Retry-After set)
    4. Otherwise, record the current timestamp and pass the request on

    Time:  O(k) per request, k = requests inside the window for that IP
    Space: O(n × k), n = IPs seen inside the window

Scope:
    State lives in the worker process. With several workers each one
    enforces the limit independently.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ideaverse.config import settings
from ideaverse.exceptions import RateLimitExceededError
from ideaverse.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Configuration (from settings):
        rate_limit_requests: Max requests per window
        rate_limit_window: Window duration in seconds

    Excluded paths: /health and the API docs.

    Response on rate limit:
        HTTP 429 Too Many Requests
        Retry-After header: seconds until the oldest request leaves the window
        Body: the usual error shape, `request_id` included
    """

    # Health checks and docs stay reachable while a client is throttled
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
    # Sweep idle IPs once per this many admitted requests
    CLEANUP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        # What: IP → timestamps of admitted requests, oldest first
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a proxy this is the proxy's IP unless uvicorn runs with --proxy-headers
        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )

        now = time.time()
        window_start = now - settings.rate_limit_window

        # Slide: keep only what is still inside the window
        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= settings.rate_limit_requests:
            # The oldest entry is the first to free a slot
            retry_after = int(timestamps[0] + settings.rate_limit_window - now) + 1
            exc = RateLimitExceededError(retry_after=retry_after)
            rid = request_id_var.get("")

            logger.warning(
                "[%s] Rate limit exceeded for IP %s: %d requests in %ds window",
                rid,
                client_ip,
                len(timestamps),
                settings.rate_limit_window,
            )

            # Exceptions raised inside BaseHTTPMiddleware bypass the app's
            # exception handlers, so the error body is built here.
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": rid,
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        # Rejected requests are not recorded, so hammering does not extend the wait
        timestamps.append(now)

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Forget IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
