"""
Token lifecycle: caching, renewal before expiry and error routing
"""

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable
import structlog
from prometheus_client import Counter, Gauge

from .auth import AuthResult
from .exceptions import ErrorHandler, VaultAuthenticationError, default_error_handler


# Prometheus metrics
vault_token_renewals_total = Counter(
    "vault_token_renewals_total",
    "Total Vault token renewals",
    ["status"]
)
vault_token_ttl_seconds = Gauge(
    "vault_token_ttl_seconds",
    "Lease duration of the current Vault token in seconds"
)
token_cache_hits_total = Counter(
    "vault_token_cache_hits_total",
    "Total token requests served from the cached token"
)
token_cache_misses_total = Counter(
    "vault_token_cache_misses_total",
    "Total token requests that required a renewal"
)


logger = structlog.get_logger(__name__)


DEFAULT_RENEWAL_CLIFF_SECONDS = 30
DEFAULT_STATIC_TOKEN_TTL_SECONDS = 31 * 24 * 60 * 60


@dataclass
class TokenState:
    """Current token and its absolute expiry (epoch seconds, 0 = must renew)"""
    token: str = ""
    expires_at: float = 0.0


class TokenManager:
    """
    Hands out a token that stays valid for at least the renewal cliff.

    A cached token is returned without suspending. When fewer than
    ``renewal_cliff`` seconds remain, the renew callable performs one
    login and both token and expiry are replaced together.

    Failed logins (VaultAuthenticationError) leave the state untouched and
    are passed to the error handler; a string returned by the handler is used
    as the token, anything else falls back to the cached one. Any other
    exception from the renew callable propagates.
    """

    def __init__(
        self,
        renew: Callable[[], Awaitable[AuthResult]],
        error_handler: ErrorHandler = default_error_handler,
        token: str = "",
        renewal_cliff: float = DEFAULT_RENEWAL_CLIFF_SECONDS,
        static_token_ttl: float = DEFAULT_STATIC_TOKEN_TTL_SECONDS,
        serialize_renewal: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.logger = logger.bind(component="token_manager")
        self.renewal_cliff = renewal_cliff
        self.serialize_renewal = serialize_renewal
        self._renew = renew
        self._error_handler = error_handler
        self._clock = clock
        self._lock = asyncio.Lock()
        self._generation = 0
        self.state = TokenState(
            token=token or "",
            expires_at=clock() + static_token_ttl if token else 0.0,
        )

    @property
    def token(self) -> str:
        return self.state.token

    @property
    def expires_at(self) -> float:
        return self.state.expires_at

    def is_fresh(self) -> bool:
        return self.state.expires_at - self._clock() > self.renewal_cliff

    def invalidate(self):
        """Force the next get_token() call to renew"""
        self.state = TokenState(token=self.state.token, expires_at=0.0)
        self.logger.debug("token_invalidated")

    async def get_token(self) -> str:
        """
        Return a usable token, renewing it first if it is close to expiry

        Returns:
            The cached or renewed token, or the error handler's fallback
        """
        if self.is_fresh():
            token_cache_hits_total.inc()
            return self.state.token

        token_cache_misses_total.inc()

        if not self.serialize_renewal:
            return await self._renew_token()

        generation = self._generation
        async with self._lock:
            if self._generation != generation:
                # Another caller renewed while this one waited
                return self.state.token
            return await self._renew_token()

    async def _renew_token(self) -> str:
        self.logger.debug("renewing_vault_token", expires_at=self.state.expires_at)

        try:
            result = AuthResult(*await self._renew())
        except VaultAuthenticationError as e:
            vault_token_renewals_total.labels(status="error").inc()
            self.logger.error("token_renewal_failed", error=str(e))
            return await self._fallback(e)

        self.state = TokenState(
            token=result.token,
            expires_at=self._clock() + result.lease_duration,
        )
        self._generation += 1
        vault_token_ttl_seconds.set(result.lease_duration)
        vault_token_renewals_total.labels(status="success").inc()
        self.logger.info("token_renewed", ttl=result.lease_duration)

        return self.state.token

    async def _fallback(self, error: VaultAuthenticationError) -> str:
        handled: Any = self._error_handler(error)
        if inspect.isawaitable(handled):
            handled = await handled
        return handled if isinstance(handled, str) else self.state.token
