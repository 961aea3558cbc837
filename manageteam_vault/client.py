"""
Async Vault client: authenticated requests with transparent token renewal
"""

import inspect
import json
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union
import structlog
import httpx
from prometheus_client import Counter, Histogram

from .auth import AuthResult, AuthStrategy, resolve_auth_method
from .config import AuthMethod, VaultConfig
from .exceptions import (
    ErrorHandler,
    VaultAuthenticationError,
    VaultConfigurationError,
    VaultRequestError,
    default_error_handler,
)
from .result import Failure, Result, Success
from .token_manager import TokenManager
from .transport import Transport


# Prometheus metrics
vault_requests_total = Counter(
    "vault_requests_total",
    "Total Vault API requests",
    ["method", "status"]
)
vault_request_duration_seconds = Histogram(
    "vault_request_duration_seconds",
    "Vault request duration in seconds",
    ["method"]
)


logger = structlog.get_logger(__name__)


TOKEN_HEADER = "X-Vault-Token"


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class VaultClient:
    """
    Async Vault client

    Features:
    - Pluggable authentication (Kubernetes by default, JWT, or any callable)
    - Cached client token, renewed shortly before it expires
    - Shared TLS-configured transport, built on first use
    - Request failures routed through a replaceable error handler
    - Structured logging and metrics
    """

    def __init__(
        self,
        config: Optional[VaultConfig] = None,
        *,
        auth_method: Optional[Union[str, AuthMethod, AuthStrategy]] = None,
        auth_options: Optional[Mapping[str, Any]] = None,
        error_handler: Optional[ErrorHandler] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Set up a client. Nothing is sent to Vault until the first call.

        Args:
            config: Resolved configuration (read from the environment when omitted)
            auth_method: Registered method name or strategy callable;
                overrides config.auth_method
            auth_options: Strategy options (e.g. role, service_account_token_path)
            error_handler: Called with login/request errors; its return value
                becomes the failed call's result. Defaults to re-raising.
            http_transport: httpx transport override, mainly for tests

        Raises:
            VaultConfigurationError: Unknown auth method, or missing CA file
                while TLS verification is on
        """
        self.config = config if config is not None else VaultConfig()
        self.logger = logger.bind(component="vault_client")

        self._auth_strategy = resolve_auth_method(
            auth_method if auth_method is not None else self.config.auth_method
        )

        if not self.config.skip_tls_verify and not Path(self.config.ca_cert_path).exists():
            raise VaultConfigurationError(f"Vault CA certificate not found: {self.config.ca_cert_path}")

        self.auth_options: Dict[str, Any] = dict(auth_options or {})
        self.error_handler: ErrorHandler = error_handler or default_error_handler
        self.transport = Transport(self.config, http_transport=http_transport)
        self.token_manager = TokenManager(
            renew=self._authenticate,
            error_handler=self.error_handler,
            token=self.config.token,
            renewal_cliff=self.config.renewal_cliff_seconds,
            static_token_ttl=self.config.static_token_ttl_seconds,
            serialize_renewal=self.config.serialize_renewal,
            clock=clock,
        )

        self.logger.info(
            "vault_client_created",
            base_url=self.base_url,
            auth_method=getattr(self._auth_strategy, "__name__", repr(self._auth_strategy)),
            static_token=bool(self.config.token),
            tls_verify=not self.config.skip_tls_verify,
        )

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def token(self) -> str:
        return self.token_manager.token

    @property
    def token_expires_at(self) -> float:
        return self.token_manager.expires_at

    async def _authenticate(self) -> AuthResult:
        return await self._auth_strategy(self.auth_options, self)

    async def get_token(self) -> str:
        """Return a valid token, logging in again when it is about to expire"""
        return await self.token_manager.get_token()

    async def _send(
        self,
        url: str,
        method: str,
        data: Any,
        headers: Optional[Mapping[str, str]],
        **kwargs,
    ) -> Any:
        method = method.upper()
        http = await self.transport.get()
        token = await self.get_token()
        merged_headers = httpx.Headers({TOKEN_HEADER: token})
        merged_headers.update(headers or {})

        self.logger.debug("vault_request", method=method, url=url)

        with vault_request_duration_seconds.labels(method=method).time():
            try:
                response = await http.request(method, url, json=data, headers=merged_headers, **kwargs)
                response.raise_for_status()
            except httpx.HTTPError as e:
                vault_requests_total.labels(method=method, status="error").inc()
                raise self._request_error(e, method, url, data, token) from e

        vault_requests_total.labels(method=method, status="success").inc()
        return _response_body(response)

    def _request_error(
        self,
        error: httpx.HTTPError,
        method: str,
        url: str,
        data: Any,
        token: str,
    ) -> VaultRequestError:
        response = error.response if isinstance(error, httpx.HTTPStatusError) else None
        body = _response_body(response) if response is not None else None

        message = f"Vault: {method} request to {self.base_url}{url} failed, {error}"
        if body is not None:
            message += f"; Server response: {json.dumps(body, indent=4)}"
        message += f"; Request data: {json.dumps(data) if data is not None else '((empty))'}"
        message += f"; Token: {'<redacted>' if self.config.redact_token_in_errors else token}"

        self.logger.error(
            "vault_request_failed",
            method=method,
            url=url,
            status_code=response.status_code if response is not None else None,
            error=str(error),
        )
        return VaultRequestError(
            message,
            method=method,
            url=f"{self.base_url}{url}",
            status_code=response.status_code if response is not None else None,
            response_body=body,
        )

    async def _handle_error(self, error: VaultRequestError) -> Any:
        handled = self.error_handler(error)
        if inspect.isawaitable(handled):
            handled = await handled
        return handled

    async def request(
        self,
        url: str,
        method: str = "post",
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs,
    ) -> Any:
        """
        Make an authenticated request to Vault

        Args:
            url: Path relative to base_url (e.g. "/secret/data/app")
            method: HTTP method
            data: JSON body
            headers: Extra headers; these win over the token header
            **kwargs: Passed to httpx.AsyncClient.request unchanged

        Returns:
            Response body, or the error handler's return value on failure
        """
        try:
            return await self._send(url, method, data, headers, **kwargs)
        except VaultRequestError as e:
            return await self._handle_error(e)

    async def try_request(
        self,
        url: str,
        method: str = "post",
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs,
    ) -> Result:
        """
        Like request(), but failures come back as Failure instead of going
        through the error handler. Login failures still reach the handler
        first; if it raises, that error is returned as Failure.
        """
        try:
            return Success(await self._send(url, method, data, headers, **kwargs))
        except (VaultRequestError, VaultAuthenticationError) as e:
            return Failure(e)

    async def read_secret(self, path: str, mount: str = "secret") -> Any:
        """
        Read a KV v2 secret

        Args:
            path: Secret path (e.g. "blockchain/wallet")
            mount: KV engine mount path

        Returns:
            Secret data dictionary, or the error handler's return value
        """
        body = await self.request(f"/{mount}/data/{path}", method="get")
        if isinstance(body, dict) and isinstance(body.get("data"), dict) and "data" in body["data"]:
            return body["data"]["data"]
        return body

    async def write_secret(self, path: str, data: Dict[str, Any], mount: str = "secret") -> Any:
        """Write a KV v2 secret; returns Vault's response body"""
        return await self.request(f"/{mount}/data/{path}", method="post", data={"data": data})

    async def close(self):
        """Release the transport"""
        await self.transport.close()
        self.logger.info("vault_client_closed")

    async def __aenter__(self) -> "VaultClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
