"""
Lazily built, shared HTTPS transport for Vault calls
"""

import asyncio
import ssl
from pathlib import Path
from typing import Optional, Union
import structlog
import httpx

from .config import VaultConfig


logger = structlog.get_logger(__name__)


class Transport:
    """
    Owns the single httpx.AsyncClient used for logins and data requests.

    The client is created on first use, with TLS trust resolved from the
    config: verification disabled, or exactly the configured CA trusted.
    """

    def __init__(
        self,
        config: VaultConfig,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.logger = logger.bind(component="vault_transport")
        self._http_transport = http_transport
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._client is not None

    async def get(self) -> httpx.AsyncClient:
        """Return the shared client, building it once"""
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is None:
                self._client = await self._build()
        return self._client

    async def _build(self) -> httpx.AsyncClient:
        verify = await self._resolve_verify()
        headers = {"X-Vault-Namespace": self.config.namespace} if self.config.namespace else {}

        self.logger.info(
            "vault_transport_created",
            base_url=self.config.base_url,
            tls_verify=verify is not False,
        )
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            verify=verify,
            headers=headers,
            transport=self._http_transport,
        )

    async def _resolve_verify(self) -> Union[bool, ssl.SSLContext]:
        if self.config.skip_tls_verify:
            self.logger.warning("vault_tls_verification_disabled", env_name=self.config.env_name)
            return False

        # OSError from a vanished CA file propagates as is
        ca_pem = await asyncio.to_thread(Path(self.config.ca_cert_path).read_text)
        return ssl.create_default_context(cadata=ca_pem)

    async def close(self):
        """Close the underlying client if it was ever built"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self.logger.info("vault_transport_closed")
