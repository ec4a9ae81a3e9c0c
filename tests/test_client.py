"""Tests for cipherstore.client — HTTP transport against a mocked remote store."""

from __future__ import annotations

import json

import httpx
import pytest

from cipherstore.client import CipherClient
from cipherstore.errors import ApiError, MalformedResponseError, ServerError
from cipherstore.models import EncryptedCipher


def _client(handler) -> CipherClient:
    return CipherClient("https://vault.test/", "tok-123", transport=httpx.MockTransport(handler))


class TestSync:
    @pytest.mark.asyncio
    async def test_sync_round_trip(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"ids": ["a", "b"], "ciphers": [{"id": "a", "owner": "u1", "protectedData": "p"}]},
            )

        updated = [EncryptedCipher(id="n", owner="u1", type=1, protected_data="q", favorite=False, re_prompt=False)]
        async with _client(handler) as client:
            response = await client.sync(1700000000, updated, ["gone"])

        assert seen["method"] == "POST"
        assert seen["url"] == "https://vault.test/api/cipher/sync"
        assert seen["auth"] == "Bearer tok-123"
        assert seen["body"]["lastSyncTimestamp"] == 1700000000
        assert seen["body"]["deleted"] == ["gone"]
        assert seen["body"]["updated"][0]["protectedData"] == "q"

        assert response.ids == ["a", "b"]
        (a,) = response.ciphers
        assert (a.type, a.favorite, a.re_prompt) == (0, False, False)

    @pytest.mark.asyncio
    async def test_sync_server_error(self):
        def handler(request):
            return httpx.Response(401, json={"error": "LP-Invalid-Token"})

        async with _client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.sync(0, [], [])
        assert exc_info.value.status_code == 401
        assert exc_info.value.code is ServerError.INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_unknown_error_code(self):
        def handler(request):
            return httpx.Response(500, text="boom")

        async with _client(handler) as client:
            with pytest.raises(ApiError, match="500") as exc_info:
                await client.sync(0, [], [])
        assert exc_info.value.code is None
        assert exc_info.value.message == "boom"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            httpx.Response(200),
            httpx.Response(204),
            httpx.Response(200, json={"ciphers": []}),
            httpx.Response(200, json=["a"]),
        ],
    )
    async def test_empty_or_partial_body_rejected(self, reply):
        async with _client(lambda request: reply) as client:
            with pytest.raises(MalformedResponseError):
                await client.sync(0, [], [])

    @pytest.mark.asyncio
    async def test_non_json_body_rejected(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        async with _client(handler) as client:
            with pytest.raises(MalformedResponseError, match="non-JSON"):
                await client.sync(0, [], [])

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        async with _client(handler) as client:
            with pytest.raises(httpx.ConnectError):
                await client.sync(0, [], [])


class TestCrud:
    @pytest.mark.asyncio
    async def test_insert(self):
        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/api/cipher"
            assert json.loads(request.content)["id"] == "c1"
            return httpx.Response(201, json={"id": "c1"})

        cipher = EncryptedCipher(id="c1", owner="u1", type=0, protected_data="p", favorite=False, re_prompt=False)
        async with _client(handler) as client:
            assert await client.insert(cipher) == "c1"

    @pytest.mark.asyncio
    async def test_get_fills_defaults(self):
        def handler(request):
            assert request.url.path == "/api/cipher/c1"
            return httpx.Response(200, json={"id": "c1", "owner": "u1", "protectedData": "p"})

        async with _client(handler) as client:
            cipher = await client.get("c1")
        assert cipher.type == 0
        assert cipher.favorite is False

    @pytest.mark.asyncio
    async def test_get_not_found(self):
        def handler(request):
            return httpx.Response(404, json={"error": "LP-Cipher-404"})

        async with _client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("missing")
        assert exc_info.value.code is ServerError.CIPHER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_get_malformed_cipher(self):
        def handler(request):
            return httpx.Response(200, json={"id": "c1"})

        async with _client(handler) as client:
            with pytest.raises(MalformedResponseError):
                await client.get("c1")

    @pytest.mark.asyncio
    async def test_update_and_delete(self):
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path))
            return httpx.Response(200)

        cipher = EncryptedCipher(id="c1", owner="u1", type=0, protected_data="p")
        async with _client(handler) as client:
            await client.update(cipher)
            await client.delete("c1")
        assert calls == [("PATCH", "/api/cipher/c1"), ("DELETE", "/api/cipher/c1")]
