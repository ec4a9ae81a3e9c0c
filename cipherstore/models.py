"""
Cipher data models.

A Cipher is a single decrypted secret record. Its sensitive payload is one of
LoginData, SecureNoteData or CardData, selected by the ``type`` discriminant.
EncryptedCipher is the wire / at-rest form: the payload is sealed into
``protectedData`` while the remaining metadata travels in clear text.

Usage:
    from cipherstore.models import Cipher, CipherType, LoginData

    cipher = Cipher(id="c1", owner="u1", type=CipherType.LOGIN, data=LoginData(name="mail"))
    encrypted = cipher.to_encrypted(key)
    assert Cipher.from_encrypted(encrypted, key) == cipher
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator, model_validator

from cipherstore import crypto
from cipherstore.errors import InvalidCipherStateError, MalformedPayloadError

logger = logging.getLogger(__name__)


class CipherType(IntEnum):
    LOGIN = 0
    SECURE_NOTE = 1
    CARD = 2


class CipherFieldType(IntEnum):
    TEXT = 0
    HIDDEN = 1  # masked in UIs, no encryption-level difference


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CustomField(_WireModel):
    name: str
    type: CipherFieldType = CipherFieldType.TEXT
    value: str


class PasswordHistory(_WireModel):
    """A previous password and the time it stopped being current."""

    password: str
    last_used: datetime = Field(alias="lastUsed")


class LoginData(_WireModel):
    name: str
    email: str | None = None
    username: str | None = None
    password: str | None = None
    password_history: list[PasswordHistory] | None = Field(default=None, alias="passwordHistory")
    uris: list[str] | None = None
    two_factor: str | None = Field(default=None, alias="twoFactor")
    notes: str | None = None
    fields: list[CustomField] | None = None


class SecureNoteData(_WireModel):
    title: str
    note: str
    fields: list[CustomField]


class CardData(_WireModel):
    name: str
    cardholder_name: str = Field(alias="cardholderName")
    number: str
    exp_month: int | None = Field(default=None, alias="expMonth")
    exp_year: int | None = Field(default=None, alias="expYear")
    code: str | None = None
    notes: str | None = None
    fields: list[CustomField] | None = None


CipherData = LoginData | SecureNoteData | CardData

PAYLOAD_TYPES: dict[CipherType, type[BaseModel]] = {
    CipherType.LOGIN: LoginData,
    CipherType.SECURE_NOTE: SecureNoteData,
    CipherType.CARD: CardData,
}


def check_payload(cipher_type: Any, data: Any) -> type[BaseModel]:
    """Return the payload class for ``cipher_type`` or raise if ``data`` is not one."""
    try:
        expected = PAYLOAD_TYPES[CipherType(cipher_type)]
    except (KeyError, ValueError) as exc:
        raise InvalidCipherStateError(f"Unknown cipher type: {cipher_type!r}") from exc
    if type(data) is not expected:
        raise InvalidCipherStateError(
            f"Cipher type {CipherType(cipher_type).name} requires {expected.__name__}, "
            f"got {type(data).__name__}"
        )
    return expected


class EncryptedCipher(_WireModel):
    """A cipher as stored by the remote store.

    ``type``, ``favorite`` and ``re_prompt`` are optional on the wire; run
    fill_defaults() before relying on them.
    """

    id: str
    owner: str
    type: int | None = None
    protected_data: str = Field(alias="protectedData")
    collection: str | None = None
    favorite: bool | None = None
    re_prompt: bool | None = Field(default=None, alias="rePrompt")
    created: datetime | None = None
    last_modified: datetime | None = Field(default=None, alias="lastModified")

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys; absent fields are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def fill_defaults(encrypted: EncryptedCipher) -> EncryptedCipher:
    """Fill absent optional wire fields with their defaults.

    Returns a copy; fields that are already present are left alone, so
    applying this twice gives the same result as applying it once.
    """
    updates: dict[str, Any] = {}
    if encrypted.type is None:
        updates["type"] = int(CipherType.LOGIN)
    if encrypted.favorite is None:
        updates["favorite"] = False
    if encrypted.re_prompt is None:
        updates["re_prompt"] = False
    return encrypted.model_copy(update=updates)


class Cipher(BaseModel):
    """A decrypted cipher. Exists in memory only."""

    id: str
    owner: str
    type: CipherType
    data: CipherData
    collection: str | None = None
    favorite: bool = False
    re_prompt: bool = False
    created: datetime | None = None
    last_modified: datetime | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _select_payload(cls, value: Any, info: ValidationInfo) -> Any:
        # Parse dict payloads into the class the discriminant selects,
        # rather than letting the union guess.
        cipher_type = info.data.get("type")
        if isinstance(value, dict) and cipher_type is not None:
            return PAYLOAD_TYPES[cipher_type].model_validate(value)
        return value

    @model_validator(mode="after")
    def _check_payload(self) -> Cipher:
        check_payload(self.type, self.data)
        return self

    @property
    def login_data(self) -> LoginData | None:
        return self.data if self.type == CipherType.LOGIN and isinstance(self.data, LoginData) else None

    @property
    def secure_note_data(self) -> SecureNoteData | None:
        if self.type == CipherType.SECURE_NOTE and isinstance(self.data, SecureNoteData):
            return self.data
        return None

    @property
    def card_data(self) -> CardData | None:
        return self.data if self.type == CipherType.CARD and isinstance(self.data, CardData) else None

    @property
    def label(self) -> str:
        """Human-readable name of the record."""
        if isinstance(self.data, SecureNoteData):
            return self.data.title
        return self.data.name

    @classmethod
    def from_encrypted(cls, encrypted: EncryptedCipher, key: bytes | str) -> Cipher:
        """Decrypt an EncryptedCipher.

        Raises DecryptionError if ``protectedData`` fails authentication and
        MalformedPayloadError if the plaintext is not a valid payload for
        the cipher's type.
        """
        encrypted = fill_defaults(encrypted)
        plaintext = crypto.decrypt(key, encrypted.protected_data)

        try:
            cipher_type = CipherType(encrypted.type)
        except ValueError as exc:
            raise MalformedPayloadError(f"Unknown cipher type {encrypted.type} for cipher {encrypted.id}") from exc

        try:
            data = PAYLOAD_TYPES[cipher_type].model_validate_json(plaintext)
        except ValidationError as exc:
            # Validation errors echo their input; keep decrypted values out of logs and tracebacks.
            problems = ", ".join(
                f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['type']}" for err in exc.errors()
            )
            logger.debug("Payload of cipher %s failed validation: %s", encrypted.id, problems)
            raise MalformedPayloadError(
                f"Cipher {encrypted.id} payload is not valid {cipher_type.name} data ({problems})"
            ) from None

        return cls(
            id=encrypted.id,
            owner=encrypted.owner,
            type=cipher_type,
            data=data,
            collection=encrypted.collection,
            favorite=encrypted.favorite,
            re_prompt=encrypted.re_prompt,
            created=encrypted.created,
            last_modified=encrypted.last_modified,
        )

    def to_encrypted(self, key: bytes | str) -> EncryptedCipher:
        """Seal the active payload into an EncryptedCipher.

        Raises InvalidCipherStateError if the payload does not match ``type``.
        """
        check_payload(self.type, self.data)
        payload = self.data.model_dump_json(by_alias=True, exclude_none=True)
        return EncryptedCipher(
            id=self.id,
            owner=self.owner,
            type=int(self.type),
            protected_data=crypto.encrypt(key, payload),
            collection=self.collection,
            favorite=self.favorite,
            re_prompt=self.re_prompt,
            created=self.created,
            last_modified=self.last_modified,
        )
