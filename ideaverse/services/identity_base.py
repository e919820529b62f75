"""
IdeaVerse Backend — Abstract Identity Provider Interface
==========================================================

What:  Contract for turning a bearer credential into a verified caller identity.
How:   Concrete providers inherit from IdentityProvider and implement
       verify_token() and health_check().
Who:   Called by the `get_current_identity` FastAPI dependency (ideaverse/auth.py).

Contract:
    - verify_token() either returns an Identity or raises; it never returns a
      placeholder identity
    - AuthenticationError: the credential itself is missing, malformed,
      expired or signed by the wrong key
    - UpstreamUnavailableError / CircuitBreakerOpenError: the provider could
      not be consulted; the request is rejected, not waved through
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """
    A verified caller.

    Attributes:
        user_id:      Stable subject identifier issued by the provider (`sub`)
        display_name: Human-readable name, used as the default owner name
    """

    user_id: str
    display_name: str


class IdentityProvider(ABC):
    """Abstract interface for bearer token verification."""

    @abstractmethod
    async def verify_token(self, token: str) -> Identity:
        """
        Verify a bearer token and extract the caller.

        Raises:
            AuthenticationError: Token invalid or verification not configured.
            UpstreamUnavailableError: Provider unreachable after retries.
            CircuitBreakerOpenError: Provider failing repeatedly; not contacted.
        """
        ...

    @abstractmethod
    async def health_check(self) -> str:
        """
        Lightweight provider status check.

        Returns: one of "available", "unavailable", "circuit_open", "not_configured".
        """
        ...
