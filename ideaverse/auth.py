"""
IdeaVerse Backend — Caller Identity Dependency
================================================

What:  FastAPI dependency resolving the `Authorization: Bearer <token>` header
       into a verified Identity.
Who:   Injected into every mutating route and the like endpoints.

Failure modes:
    no/invalid header            → AuthenticationError (401)
    provider unreachable          → UpstreamUnavailableError (503)
    provider circuit open         → CircuitBreakerOpenError (503)
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ideaverse.exceptions import AuthenticationError
from ideaverse.services.identity_base import Identity
from ideaverse.services.identity_service import identity_provider

# auto_error=False: a missing header becomes our AuthenticationError rather
# than FastAPI's bare 403
bearer_scheme = HTTPBearer(auto_error=False, description="Identity provider session token")


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return await identity_provider.verify_token(credentials.credentials)
