"""
IdeaVerse Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every error kind the API reports.
How:   Each exception carries a user-safe message and an optional context dict.
       Global exception handlers (registered in main.py) translate them into
       structured JSON responses with the matching HTTP status code.
Who:   Raised by services, the auth dependency and middleware.

Exception Hierarchy:
    IdeaVerseError (base)
    ├── AuthenticationError       → 401 Unauthorized
    ├── ForbiddenError            → 403 Forbidden
    ├── NotFoundError             → 404 Not Found
    ├── RateLimitExceededError    → 429 Too Many Requests (body built by RateLimitMiddleware)
    ├── DatabaseError             → 500 Internal Server Error
    └── UpstreamUnavailableError  → 503 Service Unavailable
        └── CircuitBreakerOpenError → 503 Service Unavailable (circuit open)

Request validation failures (FastAPI's RequestValidationError, mapped to 400
in main.py) and ownership errors are caller errors: they are never retried.
Store connectivity problems surface as DatabaseError; identity provider
outages surface as UpstreamUnavailableError, and the request is rejected.
"""

from typing import Any, Dict, Optional


class IdeaVerseError(Exception):
    """
    Base exception for all IdeaVerse application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(IdeaVerseError):
    """
    Raised when a request that needs an identity does not carry a valid one.

    When:    Missing bearer token, bad signature, expired token, no `sub` claim,
             or no verification method configured.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)

    There is no fallback identity: a request that cannot be
    attributed to a verified caller is rejected.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(IdeaVerseError):
    """
    Raised when a verified caller is not the owner of the idea they mutate.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        action: str = "modify",
        resource: str = "idea",
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Not authorized to {action} this {resource}"
        ctx = context or {}
        ctx["action"] = action
        super().__init__(message=message, context=ctx)
        self.action = action


class NotFoundError(IdeaVerseError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown idea id, or an id that is not even a well-formed UUID.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(IdeaVerseError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Driver errors,
        SQL and constraint names are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamUnavailableError(IdeaVerseError):
    """
    Raised when an external collaborator (the identity provider) is unreachable.

    When:    Key-set download failed after all tenacity retries.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "The identity provider is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(UpstreamUnavailableError):
    """
    Raised when the identity provider circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject calls for recovery_time seconds)
        → After recovery_time → HALF-OPEN (allow one test call)
        → Test succeeds → CLOSED; test fails → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Identity provider is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, retry_after=recovery_time, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(IdeaVerseError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
