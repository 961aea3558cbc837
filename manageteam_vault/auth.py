"""
Vault authentication strategies

A strategy performs one login exchange and returns the new token together
with its lease duration in seconds:

    async def strategy(options: Mapping[str, Any], client: VaultClient) -> AuthResult

Login failures must be raised as VaultAuthenticationError so the token
manager can route them through the client's error handler. Setup mistakes
(missing credential file) are raised as VaultCredentialError and are fatal.
"""

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Mapping, NamedTuple, Union
import structlog
import httpx

from .config import AuthMethod
from .exceptions import (
    VaultAuthenticationError,
    VaultConfigurationError,
    VaultCredentialError,
)

if TYPE_CHECKING:
    from .client import VaultClient


logger = structlog.get_logger(__name__)


class AuthResult(NamedTuple):
    token: str
    lease_duration: float


AuthStrategy = Callable[[Mapping[str, Any], "VaultClient"], Awaitable[AuthResult]]


def _format_body(response: httpx.Response) -> str:
    try:
        return json.dumps(response.json(), indent=4)
    except ValueError:
        return response.text


def _credential_file(path: str) -> Path:
    credential = Path(path)
    if not credential.exists():
        raise VaultCredentialError(f"Vault credential file not found: {path}")
    return credential


def parse_login_response(data: Any) -> AuthResult:
    """
    Extract the client token and lease from a login response

    Raises:
        VaultAuthenticationError: If the payload has no usable auth block
    """
    auth = data.get("auth") if isinstance(data, dict) else None
    token = auth.get("client_token") if isinstance(auth, dict) else None
    lease = auth.get("lease_duration") if isinstance(auth, dict) else None

    if not isinstance(token, str) or not token or isinstance(lease, bool) or not isinstance(lease, (int, float)):
        raise VaultAuthenticationError(f"Vault auth: unrecognized response: {json.dumps(data)}")

    return AuthResult(token=token, lease_duration=lease)


async def login_with_jwt(client: "VaultClient", mount: str, jwt_path: str, role: str) -> AuthResult:
    """
    POST a JWT and role to auth/<mount>/login

    Args:
        client: Client whose base URL and transport are used
        mount: Auth method mount path (e.g. "kubernetes")
        jwt_path: File holding the JWT
        role: Vault role to log in as

    Returns:
        AuthResult with the new client token and its lease in seconds
    """
    credential = _credential_file(jwt_path)
    url = f"{client.base_url}/auth/{mount}/login"
    log = logger.bind(component="vault_auth", mount=mount, role=role)

    jwt = await asyncio.to_thread(credential.read_text)
    http = await client.transport.get()

    try:
        response = await http.post(url, json={"jwt": jwt, "role": role})
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        log.error("vault_login_failed", status_code=e.response.status_code)
        server_response = f"; Server response: {_format_body(e.response)}" if e.response.content else ""
        raise VaultAuthenticationError(
            f"Vault token refresh error: unsuccessful POST {url}, {e}{server_response}"
        ) from e
    except httpx.HTTPError as e:
        log.error("vault_login_failed", error=str(e))
        raise VaultAuthenticationError(
            f"Vault token refresh error: unsuccessful POST {url}, {e}"
        ) from e

    try:
        data = response.json()
    except ValueError:
        data = response.text

    result = parse_login_response(data)
    log.info("vault_login_successful", ttl=result.lease_duration)
    return result


async def kubernetes_login(options: Mapping[str, Any], client: "VaultClient") -> AuthResult:
    """
    Kubernetes auth using the pod's service account token.

    Options:
        service_account_token_path: Defaults to config.kubernetes.token_path
        role: Defaults to config.kubernetes.name
        mount: Defaults to "kubernetes"
    """
    return await login_with_jwt(
        client,
        mount=options.get("mount", AuthMethod.KUBERNETES.value),
        jwt_path=options.get("service_account_token_path", client.config.kubernetes.token_path),
        role=options.get("role", client.config.kubernetes.name),
    )


async def jwt_login(options: Mapping[str, Any], client: "VaultClient") -> AuthResult:
    """JWT auth (e.g. a projected token or SPIFFE JWT-SVID written to disk)"""
    return await login_with_jwt(
        client,
        mount=options.get("mount", AuthMethod.JWT.value),
        jwt_path=options.get("jwt_path", client.config.jwt_path),
        role=options.get("role", client.config.kubernetes.name),
    )


AUTH_METHODS: Dict[str, AuthStrategy] = {
    AuthMethod.KUBERNETES.value: kubernetes_login,
    AuthMethod.JWT.value: jwt_login,
}


def register_auth_method(name: str, strategy: AuthStrategy) -> None:
    """Make a strategy selectable by name"""
    if not callable(strategy):
        raise VaultConfigurationError(f"Vault: auth method {name} is not callable")
    AUTH_METHODS[name] = strategy


def resolve_auth_method(method: Union[str, AuthMethod, AuthStrategy]) -> AuthStrategy:
    """
    Turn a registered name or a strategy callable into a strategy

    Raises:
        VaultConfigurationError: If the name is not registered
    """
    if isinstance(method, AuthMethod):
        method = method.value
    if isinstance(method, str):
        if method not in AUTH_METHODS:
            raise VaultConfigurationError(f"Vault: Unsupported auth method {method}")
        return AUTH_METHODS[method]
    if callable(method):
        return method
    raise VaultConfigurationError(f"Vault: Unsupported auth method {method!r}")
