"""
Unit tests for TLS trust resolution and the shared transport.

Coverage:
- Client built once and reused, including under concurrent first use
- Verification disabled when TLS checks are skipped
- CA file trusted when verification is on
- Unreadable CA file surfaces as a plain OSError at first use
- Namespace header, close()
"""
import asyncio
from unittest.mock import MagicMock, patch

import httpx
import pytest

from manageteam_vault import Transport


class TestMemoization:
    @pytest.mark.asyncio
    async def test_built_once(self, make_config, vault_server):
        transport = Transport(make_config(), http_transport=vault_server.get_transport())

        assert transport.initialized is False
        first = await transport.get()
        second = await transport.get()

        assert first is second
        assert transport.initialized is True
        await transport.close()

    @pytest.mark.asyncio
    async def test_concurrent_first_use_builds_once(self, make_config):
        transport = Transport(make_config())

        with patch("manageteam_vault.transport.httpx.AsyncClient") as mock_client_cls:
            clients = await asyncio.gather(*(transport.get() for _ in range(5)))

        mock_client_cls.assert_called_once()
        assert all(c is clients[0] for c in clients)


class TestTrust:
    @pytest.mark.asyncio
    async def test_verification_disabled(self, make_config):
        transport = Transport(make_config(ignore_ssl_cert_check=True, timeout_seconds=7))

        with patch("manageteam_vault.transport.httpx.AsyncClient") as mock_client_cls:
            await transport.get()

        kwargs = mock_client_cls.call_args.kwargs
        assert kwargs["verify"] is False
        assert kwargs["base_url"] == "https://vault.test:8200/v1"
        assert kwargs["timeout"] == 7
        assert kwargs["headers"] == {}

    @pytest.mark.asyncio
    async def test_trusts_configured_ca(self, make_config, tmp_path):
        ca_file = tmp_path / "ca.crt"
        ca_file.write_text("-----BEGIN CERTIFICATE-----\nfake\n-----END CERTIFICATE-----\n")
        transport = Transport(make_config(ignore_ssl_cert_check=False, ca_cert_path=str(ca_file)))
        ssl_context = MagicMock()

        with patch(
            "manageteam_vault.transport.ssl.create_default_context", return_value=ssl_context
        ) as mock_create, patch("manageteam_vault.transport.httpx.AsyncClient") as mock_client_cls:
            await transport.get()

        mock_create.assert_called_once_with(cadata=ca_file.read_text())
        assert mock_client_cls.call_args.kwargs["verify"] is ssl_context

    @pytest.mark.asyncio
    async def test_unreadable_ca_file_raises_os_error(self, make_config, tmp_path):
        transport = Transport(
            make_config(ignore_ssl_cert_check=False, ca_cert_path=str(tmp_path / "gone.crt"))
        )

        with pytest.raises(FileNotFoundError):
            await transport.get()

        assert transport.initialized is False

    @pytest.mark.asyncio
    async def test_namespace_header(self, make_config):
        transport = Transport(make_config(namespace="manageteam"))

        with patch("manageteam_vault.transport.httpx.AsyncClient") as mock_client_cls:
            await transport.get()

        assert mock_client_cls.call_args.kwargs["headers"] == {"X-Vault-Namespace": "manageteam"}


class TestClose:
    @pytest.mark.asyncio
    async def test_close_releases_client(self, make_config, vault_server):
        transport = Transport(make_config(), http_transport=vault_server.get_transport())
        client = await transport.get()

        await transport.close()

        assert client.is_closed
        assert transport.initialized is False

    @pytest.mark.asyncio
    async def test_close_without_use_is_noop(self, make_config):
        transport = Transport(make_config())

        await transport.close()

        assert transport.initialized is False
