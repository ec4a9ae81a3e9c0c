"""
Error taxonomy for cipherstore.

Every error raised by the library derives from CipherStoreError. All of them
are terminal for the operation that raised them: nothing is retried and no
partial result is committed.
"""

from __future__ import annotations

from enum import Enum


class CipherStoreError(Exception):
    """Base class for all cipherstore errors."""


class DecryptionError(CipherStoreError):
    """Ciphertext could not be authenticated (wrong key or tampered data)."""


class MalformedPayloadError(CipherStoreError):
    """Decrypted content does not match the payload shape of its discriminant."""


class InvalidCipherStateError(CipherStoreError):
    """A Cipher's payload variant does not match its type discriminant."""


class MalformedResponseError(CipherStoreError):
    """The remote store answered 2xx with a body that is not the expected shape."""


class ServerError(str, Enum):
    """Error codes returned by the remote store in ``{"error": ...}`` bodies."""

    CIPHER_NOT_FOUND = "LP-Cipher-404"
    COLLECTION_NOT_FOUND = "LP-Collection-404"
    DUPLICATED = "LP-Duplicated"
    EMAIL_INVALID_CODE = "LP-Email-Invalid-Code"
    EMAIL_NOT_VERIFIED = "LP-Email-Not-Verified"
    INVALID_BODY = "LP-Invalid-Body"
    INVALID_CIPHER = "LP-Invalid-Cipher"
    INVALID_COLLECTION = "LP-Invalid-Collection"
    INVALID_SHARED_SECRET = "LP-Invalid-Shared-Secret"
    INVALID_TOKEN = "LP-Invalid-Token"
    INVALID_TWO_FACTOR = "LP-Invalid-Two-Factor"
    MISSING_CIPHER = "LP-Missing-Cipher"
    NOT_FOUND = "LP-404"
    RATE_LIMIT = "LP-RateLimit"
    USER_NOT_FOUND = "LP-User-404"
    DATABASE = "LP-Database-Error"
    MAIL = "LP-Mail-Error"


class ApiError(CipherStoreError):
    """The remote store rejected a request with a non-2xx status."""

    def __init__(self, status_code: int, code: ServerError | None = None, message: str = "") -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        label = code.value if code is not None else message or "no error code"
        super().__init__(f"HTTP {status_code}: {label}")
