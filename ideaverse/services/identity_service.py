"""
IdeaVerse Backend — JWT Identity Provider
===========================================

What:  Verifies bearer tokens issued by the hosted identity provider and
       returns the caller's Identity.
How:   python-jose validates signature, expiry, issuer and audience. In JWKS
       mode the provider's public key set is downloaded with httpx, retried
       with tenacity and guarded by a circuit breaker.
Who:   Singleton used by the `get_current_identity` dependency and /health.

Verification modes (first match wins):
    1. AUTH_JWKS_URL set   → RS256 (or AUTH_ALGORITHMS) against the provider's JWKS
    2. AUTH_JWT_SECRET set → HS256 with a shared secret (local development, tests)
    3. neither             → every token is rejected (AuthenticationError)

Resilience Strategy (JWKS mode only):
    1. Key set cached for AUTH_JWKS_CACHE_TTL seconds; refreshed once on an unknown `kid`
    2. Tenacity retry with exponential backoff + jitter on transport/HTTP errors
    3. Circuit breaker: after CB_FAILURE_THRESHOLD consecutive failed downloads,
       requests fail fast with CircuitBreakerOpenError
    4. An unreachable provider is a 503 for the caller, never an anonymous pass
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ideaverse.config import settings
from ideaverse.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    UpstreamUnavailableError,
)
from ideaverse.services.identity_base import Identity, IdentityProvider

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker around identity provider key-set downloads.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Scope: per worker process. uvicorn async workers share one event loop,
    so plain counters are sufficient.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if a call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Identity provider circuit transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = max(int(self.recovery_timeout - elapsed), 1)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Identity provider circuit transitioning to CLOSED (provider recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Identity provider circuit returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Identity provider circuit OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# JWT Identity Provider
# ══════════════════════════════════════════════════════════════════════════

class JWTIdentityProvider(IdentityProvider):
    """
    Bearer token verifier for the hosted identity provider.

    Error Handling Chain (JWKS mode):
        key set download fails → tenacity retries (RETRY_MAX_ATTEMPTS, backoff)
        → all retries fail → circuit breaker failure recorded
        → UpstreamUnavailableError (503) for this request
        → threshold reached → CircuitBreakerOpenError (503) without network calls
    """

    HS_ALGORITHMS = ["HS256"]

    def __init__(
        self,
        jwks_url: Optional[str] = None,
        jwt_secret: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        cache_ttl: Optional[int] = None,
        http_timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        retry_min_wait: Optional[float] = None,
        retry_max_wait: Optional[float] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.jwks_url = settings.auth_jwks_url if jwks_url is None else jwks_url
        self.jwt_secret = settings.auth_jwt_secret if jwt_secret is None else jwt_secret
        self.algorithms = algorithms or settings.auth_algorithms_list
        self.issuer = settings.auth_issuer if issuer is None else issuer
        self.audience = settings.auth_audience if audience is None else audience
        self.cache_ttl = settings.auth_jwks_cache_ttl if cache_ttl is None else cache_ttl
        self.http_timeout = settings.auth_http_timeout if http_timeout is None else http_timeout

        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        max_wait = settings.retry_max_wait if retry_max_wait is None else retry_max_wait
        # Template; copied per download so concurrent calls don't share attempt state
        self._retrying = AsyncRetrying(
            retry=retry_if_exception_type(httpx.HTTPError),
            stop=stop_after_attempt(
                settings.retry_max_attempts if retry_attempts is None else retry_attempts
            ),
            wait=wait_exponential_jitter(
                initial=settings.retry_min_wait if retry_min_wait is None else retry_min_wait,
                max=max_wait,
                jitter=1 if max_wait > 0 else 0,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        self._transport = transport

        self._jwks: Optional[List[Dict[str, Any]]] = None
        self._jwks_fetched_at: float = 0.0

        logger.info("JWTIdentityProvider initialized in %s mode", self.mode)

    @property
    def mode(self) -> str:
        if self.jwks_url:
            return "jwks"
        if self.jwt_secret:
            return "secret"
        return "disabled"

    async def verify_token(self, token: str) -> Identity:
        """
        Verify a bearer token and return the caller.

        Flow:
            1. Pick the verification key (shared secret or JWKS entry by `kid`)
            2. Decode and validate signature, exp, iss, aud
            3. Map claims to Identity (`sub` is mandatory)
        """
        if not token:
            raise AuthenticationError("Missing bearer token")

        mode = self.mode
        if mode == "disabled":
            raise AuthenticationError(
                "Authentication is not configured on this server",
                context={"reason": "no AUTH_JWKS_URL or AUTH_JWT_SECRET"},
            )

        if mode == "jwks":
            key: Any = await self._signing_key(token)
            algorithms = self.algorithms
        else:
            key = self.jwt_secret
            algorithms = self.HS_ALGORITHMS

        claims = self._decode(token, key, algorithms)
        return self._identity_from_claims(claims)

    async def health_check(self) -> str:
        """
        Report provider status without raising.

        JWKS mode performs (or reuses) a key-set download; secret mode has no
        remote dependency and is always available.
        """
        mode = self.mode
        if mode == "disabled":
            return "not_configured"
        if mode == "secret":
            return "available"
        if self.circuit_breaker.state == CircuitBreaker.OPEN:
            return "circuit_open"
        try:
            await self._get_jwks()
            return "available"
        except CircuitBreakerOpenError:
            return "circuit_open"
        except UpstreamUnavailableError:
            return "unavailable"

    # ── Token decoding ────────────────────────────────────────────────────

    def _decode(self, token: str, key: Any, algorithms: List[str]) -> Dict[str, Any]:
        # python-jose rejects any `aud` claim when no audience is expected,
        # so audience verification follows configuration.
        options = {"verify_aud": bool(self.audience)}
        try:
            return jwt.decode(
                token,
                key,
                algorithms=algorithms,
                audience=self.audience or None,
                issuer=self.issuer or None,
                options=options,
            )
        except ExpiredSignatureError:
            raise AuthenticationError("Bearer token has expired")
        except JWTError as e:
            logger.info("Rejected bearer token: %s", str(e))
            raise AuthenticationError(
                "Invalid bearer token",
                context={"reason": str(e)},
            )

    @staticmethod
    def _identity_from_claims(claims: Dict[str, Any]) -> Identity:
        user_id = claims.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise AuthenticationError("Bearer token has no subject")
        # Subjects are stored verbatim as owner_id / liked_by members
        if "\x00" in user_id:
            raise AuthenticationError("Bearer token has an invalid subject")

        display_name = (
            claims.get("name")
            or " ".join(
                part for part in (claims.get("first_name"), claims.get("last_name")) if part
            )
            or claims.get("username")
            or claims.get("email")
            or user_id
        )
        display_name = str(display_name).replace("\x00", "") or user_id
        return Identity(user_id=user_id, display_name=display_name)

    # ── Key set handling ──────────────────────────────────────────────────

    async def _signing_key(self, token: str) -> Dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise AuthenticationError("Malformed bearer token")

        kid = header.get("kid")
        key = self._find_key(await self._get_jwks(), kid)
        if key is None:
            # Provider may have rotated keys since the last download
            key = self._find_key(await self._get_jwks(force_refresh=True), kid)
        if key is None:
            raise AuthenticationError(
                "Bearer token was signed with an unknown key",
                context={"kid": kid},
            )
        return key

    @staticmethod
    def _find_key(keys: List[Dict[str, Any]], kid: Optional[str]) -> Optional[Dict[str, Any]]:
        if kid is None:
            return keys[0] if len(keys) == 1 else None
        for key in keys:
            if key.get("kid") == kid:
                return key
        return None

    async def _get_jwks(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        """
        Cached key set, downloading it when stale.

        Raises:
            CircuitBreakerOpenError: too many recent download failures
            UpstreamUnavailableError: download failed after all retries
        """
        fresh = (time.monotonic() - self._jwks_fetched_at) < self.cache_ttl
        if self._jwks is not None and fresh and not force_refresh:
            return self._jwks

        self.circuit_breaker.can_execute()

        start_time = time.perf_counter()
        try:
            keys = await self._download_jwks_with_retry()
        except (httpx.HTTPError, ValueError) as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "Identity provider key set download failed after %.0fms: %s",
                (time.perf_counter() - start_time) * 1000,
                str(e),
            )
            raise UpstreamUnavailableError(
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"error_type": type(e).__name__},
            )

        self.circuit_breaker.record_success()
        self._jwks = keys
        self._jwks_fetched_at = time.monotonic()
        logger.info(
            "Identity provider key set refreshed: %d keys in %.0fms",
            len(keys),
            (time.perf_counter() - start_time) * 1000,
        )
        return keys

    async def _download_jwks_with_retry(self) -> List[Dict[str, Any]]:
        async for attempt in self._retrying.copy():
            with attempt:
                return await self._download_jwks()
        raise UpstreamUnavailableError()  # unreachable with reraise=True

    async def _download_jwks(self) -> List[Dict[str, Any]]:
        async with httpx.AsyncClient(
            timeout=self.http_timeout,
            transport=self._transport,
        ) as client:
            response = await client.get(self.jwks_url, headers={"Accept": "application/json"})
            response.raise_for_status()
            document = response.json()

        keys = document.get("keys") if isinstance(document, dict) else None
        if not isinstance(keys, list) or not keys:
            raise ValueError("JWKS document contains no keys")
        return keys


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the key-set cache and circuit breaker state shared by all requests
identity_provider = JWTIdentityProvider()
