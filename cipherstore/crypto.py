"""
AES-256-GCM envelope codec for cipher payloads.

Each call to encrypt() uses a fresh 12-byte nonce, prepended to the
ciphertext. The envelope is hex encoded: nonce (12) + ciphertext + tag (16).
"""

from __future__ import annotations

import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from cipherstore.errors import DecryptionError

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


def generate_key() -> bytes:
    """Return a new random 32-byte key."""
    return secrets.token_bytes(KEY_SIZE)


def _coerce_key(key: bytes | str) -> bytes:
    """Accept raw key bytes or their hex encoding."""
    if isinstance(key, str):
        try:
            key = bytes.fromhex(key)
        except ValueError as exc:
            raise ValueError("Secret key must be hex encoded") from exc
    if len(key) != KEY_SIZE:
        raise ValueError(f"Secret key must be 32 bytes, got {len(key)}")
    return key


def encrypt(key: bytes | str, plaintext: str) -> str:
    """Encrypt plaintext. Returns hex of nonce + ciphertext + tag."""
    nonce = secrets.token_bytes(NONCE_SIZE)
    aesgcm = AESGCM(_coerce_key(key))
    ciphertext = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    return (nonce + ciphertext).hex()


def decrypt(key: bytes | str, data: str) -> bytes:
    """Decrypt an envelope produced by encrypt().

    Raises DecryptionError if the data is not a valid envelope or fails
    authentication under ``key``.
    """
    aesgcm = AESGCM(_coerce_key(key))
    try:
        raw = bytes.fromhex(data)
    except (TypeError, ValueError) as exc:
        raise DecryptionError("Encrypted data is not valid hex") from exc
    if len(raw) < NONCE_SIZE + TAG_SIZE:
        raise DecryptionError("Encrypted data too short")
    try:
        return aesgcm.decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)
    except InvalidTag as exc:
        raise DecryptionError("Decryption failed: wrong key or tampered data") from exc
