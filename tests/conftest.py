"""
Shared fixtures: a fake Vault server on httpx.MockTransport, a controllable
clock and ready-made configurations.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from manageteam_vault import KubernetesAuthConfig, VaultConfig


BASE_URL = "https://vault.test:8200/v1"

_ENV_VARS = (
    "VAULT_BASE_URL",
    "VAULT_CA_CERT_PATH",
    "VAULT_TOKEN",
    "VAULT_AUTH_METHOD",
    "VAULT_IGNORE_SSL_CERT_CHECK",
    "VAULT_NAMESPACE",
    "VAULT_ENV_NAME",
    "APP__ENV_NAME",
    "K8S_SERVICE_ACCOUNT_NAME",
    "K8S_SERVICE_ACCOUNT_TOKEN_PATH",
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "ALL_PROXY",
    "http_proxy",
    "https_proxy",
    "all_proxy",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment out of config resolution and httpx proxying."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeVaultServer:
    """Records requests and answers them from registered routes."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def add_response(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_data: Any = None,
        text: str = "",
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if json_data is not None:
                return httpx.Response(status_code, json=json_data)
            return httpx.Response(status_code, text=text)

        self.routes[f"{method.upper()}:{path}"] = handler

    def add_login(
        self,
        token: str = "tok-1",
        lease_duration: int = 3600,
        mount: str = "kubernetes",
    ) -> None:
        self.add_response(
            "POST",
            f"/v1/auth/{mount}/login",
            json_data={"auth": {"client_token": token, "lease_duration": lease_duration}},
        )

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(f"{request.method}:{request.url.path}")
        if handler is None:
            return httpx.Response(404, json={"errors": []})
        return handler(request)

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def logins(self, mount: str = "kubernetes") -> List[httpx.Request]:
        return self.requests_to(f"/v1/auth/{mount}/login")

    @staticmethod
    def body(request: httpx.Request) -> Optional[Any]:
        return json.loads(request.content) if request.content else None

    def get_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle_request)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def vault_server():
    return FakeVaultServer()


@pytest.fixture
def sa_token_file(tmp_path):
    """Mounted service account token containing 'jwt-abc'."""
    path = tmp_path / "serviceaccount" / "token"
    path.parent.mkdir()
    path.write_text("jwt-abc")
    return path


@pytest.fixture
def make_config(sa_token_file):
    """Build a VaultConfig that never touches the real filesystem layout."""

    def _make(**overrides) -> VaultConfig:
        values = {
            "base_url": "vault.test:8200/v1",
            "token": "",
            "ignore_ssl_cert_check": True,
            "kubernetes": KubernetesAuthConfig(name="blockchain", token_path=str(sa_token_file)),
        }
        values.update(overrides)
        return VaultConfig(**values)

    return _make
