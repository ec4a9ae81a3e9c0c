"""
cipherstore — encrypted cipher records and sync with a remote store.

Public API:
    Cipher.to_encrypted(key)               → EncryptedCipher
    Cipher.from_encrypted(encrypted, key)  → Cipher
    build_sync_request(last_sync, updated, deleted) → SyncRequest
    parse_sync_response(body)              → SyncResponse (default-filled)
"""

from __future__ import annotations

from cipherstore.errors import (
    ApiError,
    CipherStoreError,
    DecryptionError,
    InvalidCipherStateError,
    MalformedPayloadError,
    MalformedResponseError,
    ServerError,
)
from cipherstore.models import (
    CardData,
    Cipher,
    CipherFieldType,
    CipherType,
    CustomField,
    EncryptedCipher,
    LoginData,
    PasswordHistory,
    SecureNoteData,
    fill_defaults,
)
from cipherstore.sync import (
    SyncRequest,
    SyncResponse,
    apply_sync_response,
    build_sync_request,
    deleted_ids,
    normalize_response,
    parse_sync_response,
)

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "CardData",
    "Cipher",
    "CipherFieldType",
    "CipherStoreError",
    "CipherType",
    "CustomField",
    "DecryptionError",
    "EncryptedCipher",
    "InvalidCipherStateError",
    "LoginData",
    "MalformedPayloadError",
    "MalformedResponseError",
    "PasswordHistory",
    "SecureNoteData",
    "ServerError",
    "SyncRequest",
    "SyncResponse",
    "apply_sync_response",
    "build_sync_request",
    "deleted_ids",
    "fill_defaults",
    "normalize_response",
    "parse_sync_response",
]
