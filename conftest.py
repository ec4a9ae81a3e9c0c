"""
Root-level shared test fixtures.
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime

import pytest

from cipherstore.config import reset_config
from cipherstore.models import (
    CardData,
    Cipher,
    CipherFieldType,
    CipherType,
    CustomField,
    LoginData,
    PasswordHistory,
    SecureNoteData,
)


@pytest.fixture
def key():
    """A fresh 32-byte secret key."""
    return secrets.token_bytes(32)


@pytest.fixture
def login_cipher():
    return Cipher(
        id="c-login",
        owner="u1",
        type=CipherType.LOGIN,
        data=LoginData(
            name="Mail",
            email="alice@example.com",
            username="alice",
            password="hunter2",
            password_history=[
                PasswordHistory(password="old-pass", last_used=datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)),
            ],
            uris=["https://mail.example.com"],
            two_factor="JBSWY3DPEHPK3PXP",
            fields=[CustomField(name="pin", type=CipherFieldType.HIDDEN, value="1234")],
        ),
        collection="col-1",
        favorite=True,
        created=datetime(2024, 1, 1, tzinfo=UTC),
        last_modified=datetime(2024, 2, 1, tzinfo=UTC),
    )


@pytest.fixture
def note_cipher():
    return Cipher(
        id="c-note",
        owner="u1",
        type=CipherType.SECURE_NOTE,
        data=SecureNoteData(title="Wifi", note="correct horse battery staple", fields=[]),
        re_prompt=True,
    )


@pytest.fixture
def card_cipher():
    return Cipher(
        id="c-card",
        owner="u1",
        type=CipherType.CARD,
        data=CardData(
            name="Visa",
            cardholder_name="Alice Example",
            number="4111111111111111",
            exp_month=12,
            exp_year=2030,
            code="123",
        ),
    )


@pytest.fixture
def clean_env(monkeypatch):
    """Remove cipherstore env vars and reset the config singleton."""
    for name in [
        "CIPHERSTORE_API_URL",
        "CIPHERSTORE_API_TOKEN",
        "CIPHERSTORE_SECRET_KEY",
        "CIPHERSTORE_WORKSPACE",
        "CIPHERSTORE_TIMEOUT",
    ]:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
