"""
HTTP client for the remote cipher store.

Wraps httpx.AsyncClient with bearer-token auth. Every call is a single
request; transport errors (httpx.HTTPError) propagate unchanged and non-2xx
answers raise ApiError. No retries.

Usage:
    async with CipherClient("https://vault.example.com", token) as client:
        response = await client.sync(last_sync, updated, deleted)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx
from pydantic import ValidationError

from cipherstore.errors import ApiError, MalformedResponseError, ServerError
from cipherstore.models import EncryptedCipher, fill_defaults
from cipherstore.sync import SyncResponse, build_sync_request, parse_sync_response

logger = logging.getLogger(__name__)

API_ENDPOINT = "/api/cipher"


def _error_from_response(resp: httpx.Response) -> ApiError:
    """Build an ApiError from a failed response, reading an ``{"error": code}`` body if any."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        message = str(body["error"])
    else:
        message = resp.text[:200]

    try:
        code: ServerError | None = ServerError(message)
    except ValueError:
        code = None
    return ApiError(resp.status_code, code, message)


class CipherClient:
    """Async client for the cipher endpoints of the remote store."""

    def __init__(
        self,
        api_url: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> CipherClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        resp = await self._client.request(method, path, json=json)
        if resp.is_error:
            error = _error_from_response(resp)
            logger.warning("%s %s failed: %s", method, path, error)
            raise error
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{method} {path} returned HTTP {resp.status_code} with a non-JSON body") from exc

    async def sync(
        self,
        last_sync: int,
        updated: Iterable[EncryptedCipher],
        deleted: Iterable[str],
    ) -> SyncResponse:
        """POST /api/cipher/sync — push local changes, pull remote ones.

        Returns the response with every cipher default-filled. An empty or
        malformed body raises MalformedResponseError.
        """
        request = build_sync_request(last_sync, updated, deleted)
        body = await self._request("POST", f"{API_ENDPOINT}/sync", json=request.to_wire())
        if body is None:
            raise MalformedResponseError("Sync response has an empty body")
        response = parse_sync_response(body)
        logger.info(
            "Synced with %s: %d ids, %d changed ciphers",
            self.api_url,
            len(response.ids),
            len(response.ciphers),
        )
        return response

    async def insert(self, cipher: EncryptedCipher) -> str:
        """POST /api/cipher — store a new cipher, returns its ID."""
        body = await self._request("POST", API_ENDPOINT, json=cipher.to_wire())
        return str(body["id"])

    async def get(self, cipher_id: str) -> EncryptedCipher:
        """GET /api/cipher/{id} — fetch one cipher, default-filled."""
        body = await self._request("GET", f"{API_ENDPOINT}/{cipher_id}")
        try:
            return fill_defaults(EncryptedCipher.model_validate(body))
        except ValidationError as exc:
            raise MalformedResponseError(f"Invalid cipher {cipher_id} in response") from exc

    async def update(self, cipher: EncryptedCipher) -> None:
        """PATCH /api/cipher/{id} — replace a stored cipher."""
        await self._request("PATCH", f"{API_ENDPOINT}/{cipher.id}", json=cipher.to_wire())

    async def delete(self, cipher_id: str) -> None:
        """DELETE /api/cipher/{id}."""
        await self._request("DELETE", f"{API_ENDPOINT}/{cipher_id}")
