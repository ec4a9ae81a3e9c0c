"""
Sync reconciliation between the local cipher set and the remote store.

One round trip:
  1. build_sync_request() packs locally updated ciphers and deleted IDs
     together with the timestamp of the last successful sync.
  2. The remote store answers with every cipher ID the user owns plus the
     ciphers changed since that timestamp.
  3. parse_sync_response() validates the body and default-fills each cipher;
     apply_sync_response() turns it into the new local state.

The remote store is authoritative (last-write-wins by lastModified). Nothing
here retries or partially applies a response.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cipherstore.errors import MalformedResponseError
from cipherstore.models import EncryptedCipher, fill_defaults

logger = logging.getLogger(__name__)


class SyncRequest(BaseModel):
    """Body of POST /api/cipher/sync."""

    model_config = ConfigDict(populate_by_name=True)

    last_sync_timestamp: int = Field(alias="lastSyncTimestamp", ge=0)
    updated: list[EncryptedCipher] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return {
            "lastSyncTimestamp": self.last_sync_timestamp,
            "updated": [c.to_wire() for c in self.updated],
            "deleted": list(self.deleted),
        }


class SyncResponse(BaseModel):
    """Answer to a sync request.

    ``ids`` lists every cipher the user owns; ``ciphers`` holds only those
    created or modified since the request's lastSyncTimestamp.
    """

    ids: list[str]
    ciphers: list[EncryptedCipher]


def build_sync_request(
    last_sync: int,
    updated: Iterable[EncryptedCipher],
    deleted: Iterable[str],
) -> SyncRequest:
    """Build the request for one sync round trip.

    ``last_sync`` is the unix time (seconds) of the previous successful sync,
    or 0 for the first one.
    """
    if isinstance(last_sync, bool) or not isinstance(last_sync, int):
        raise TypeError(f"last_sync must be an int of unix seconds, got {type(last_sync).__name__}")
    if last_sync < 0:
        raise ValueError(f"last_sync must not be negative, got {last_sync}")

    request = SyncRequest(last_sync_timestamp=last_sync, updated=list(updated), deleted=list(deleted))
    logger.debug(
        "Sync request since %d: %d updated, %d deleted",
        last_sync,
        len(request.updated),
        len(request.deleted),
    )
    return request


def normalize_response(response: SyncResponse) -> SyncResponse:
    """Default-fill every returned cipher. Returns a new response."""
    return SyncResponse(ids=list(response.ids), ciphers=[fill_defaults(c) for c in response.ciphers])


def parse_sync_response(body: Any) -> SyncResponse:
    """Validate a decoded JSON body and normalize it.

    Both ``ids`` and ``ciphers`` are required: a missing ID list must never
    be read as "the user owns nothing". Raises MalformedResponseError if the
    body does not have the response shape.
    """
    if not isinstance(body, Mapping):
        raise MalformedResponseError(f"Sync response must be a JSON object, got {type(body).__name__}")
    try:
        response = SyncResponse.model_validate(body)
    except ValidationError as exc:
        raise MalformedResponseError(f"Invalid sync response: {exc.error_count()} error(s)") from exc
    return normalize_response(response)


def deleted_ids(known_ids: Iterable[str], response: SyncResponse) -> set[str]:
    """IDs known locally that the remote store no longer has."""
    remote = set(response.ids)
    return {cipher_id for cipher_id in known_ids if cipher_id not in remote}


def apply_sync_response(
    local: Mapping[str, EncryptedCipher],
    response: SyncResponse,
) -> dict[str, EncryptedCipher]:
    """Compute the local cipher set after a sync.

    Ciphers absent from ``response.ids`` are dropped, returned ciphers replace
    or extend the local copies, and everything else is kept as-is. ``local``
    is not modified.
    """
    purged = deleted_ids(local, response)
    merged = {cipher_id: cipher for cipher_id, cipher in local.items() if cipher_id not in purged}
    for cipher in response.ciphers:
        merged[cipher.id] = fill_defaults(cipher)

    logger.info(
        "Applied sync: %d changed, %d deleted, %d total",
        len(response.ciphers),
        len(purged),
        len(merged),
    )
    return merged
