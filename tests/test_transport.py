"""
Tests for the transport boundary: client defaults and the closed failure set.
"""

from __future__ import annotations

import httpx
import pytest

from adapters.transport import (
    USER_AGENT,
    Cancelled,
    ConnectionFailed,
    HttpStatusError,
    TransportError,
    build_async_client,
    send,
)
from core.cancellation import CancelToken
from core.config import AppSettings


class TestBuildAsyncClient:

    @pytest.mark.asyncio
    async def test_defaults(self):
        settings = AppSettings(_env_file=None)

        async with build_async_client(settings, extra_headers={"X-Extra": "1"}) as client:
            assert client.headers["User-Agent"] == USER_AGENT
            assert client.headers["X-Extra"] == "1"
            assert client.timeout.read is None

    @pytest.mark.asyncio
    async def test_timeout_from_settings(self):
        settings = AppSettings(_env_file=None, http_timeout_seconds=7.5)

        async with build_async_client(settings) as client:
            assert client.timeout.connect == 7.5


class TestSend:

    @staticmethod
    def _client(handler) -> httpx.AsyncClient:
        return build_async_client(AppSettings(_env_file=None), transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_success_returns_response(self):
        async with self._client(lambda r: httpx.Response(200, json={"ok": True})) as client:
            response = await send(client, client.build_request("GET", "https://t/x"))

        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_status_error_variant(self):
        async with self._client(lambda r: httpx.Response(404, content=b"missing")) as client:
            with pytest.raises(TransportError) as exc_info:
                await send(client, client.build_request("GET", "https://t/x"))

        assert exc_info.value.failure == HttpStatusError(status=404, body=b"missing", reason_phrase="Not Found")

    @pytest.mark.asyncio
    async def test_connection_failed_variant(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async with self._client(refuse) as client:
            with pytest.raises(TransportError) as exc_info:
                await send(client, client.build_request("GET", "https://t/x"))

        assert exc_info.value.failure == ConnectionFailed("Connection refused")

    @pytest.mark.asyncio
    async def test_local_protocol_errors_are_not_connection_failures(self):
        def unsupported(request):
            raise httpx.UnsupportedProtocol("Request URL is missing an 'http://' or 'https://' protocol.")

        async with self._client(unsupported) as client:
            with pytest.raises(httpx.UnsupportedProtocol):
                await send(client, client.build_request("GET", "https://t/x"))

    @pytest.mark.asyncio
    async def test_cancelled_variant(self):
        token = CancelToken()
        token.cancel()

        async with self._client(lambda r: httpx.Response(200)) as client:
            with pytest.raises(TransportError) as exc_info:
                await send(client, client.build_request("GET", "https://t/x"), token)

        assert exc_info.value.failure == Cancelled()
