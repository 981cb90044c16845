"""
Pydantic models for secrets, their plaintext payloads, and sync results.

A ``Secret`` is what the stores hold: opaque ciphertext plus the wrapped
key that opens it. The payload models are what goes *inside* the
ciphertext, serialized to JSON right before encryption.
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def _b64decode(value: Any) -> Any:
    """Decode standard base64 text; pass real bytes through untouched."""
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"invalid base64: {exc}") from exc
    return value


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


class SecretType(str, Enum):
    """Kinds of records the vault stores."""

    BANKCARD = "bankcard"
    USER = "user"
    TEXT = "text"
    BINARY = "binary"


class SyncMode(str, Enum):
    """Conflict resolution strategy used by ``skvault sync``."""

    PUSH = "push"
    PASSIVE = "passive"
    INTERACTIVE = "interactive"


class RemoteState(str, Enum):
    """How a local secret relates to its remote counterpart."""

    ABSENT = "absent"
    STALE = "stale"
    FRESH = "fresh"


class Resolution(str, Enum):
    """What a strategy decided for one secret."""

    PUSH = "push"
    SKIP = "skip"
    KEEP_REMOTE = "keep_remote"


class EncryptedPayload(BaseModel):
    """Ciphertext and wrapped key from a single ``encrypt`` call.

    The two halves are only meaningful together and are never stored
    apart.
    """

    model_config = ConfigDict(frozen=True)

    ciphertext: bytes
    wrapped_key: bytes


class Secret(BaseModel):
    """One encrypted record, identified by ``(name, secret_type, owner)``.

    On the wire the fields use the transport names (``secret_name``,
    ``secret_owner``, ``aes_key_enc``) and bytes travel as base64.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="secret_name")
    secret_type: SecretType
    owner: str = Field(alias="secret_owner")
    ciphertext: bytes
    wrapped_key: bytes = Field(alias="aes_key_enc")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("ciphertext", "wrapped_key", mode="before")
    @classmethod
    def _decode_bytes(cls, value: Any) -> Any:
        return _b64decode(value)

    @field_serializer("ciphertext", "wrapped_key", when_used="json")
    def _encode_bytes(self, value: bytes) -> str:
        return _b64encode(value)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def identity(self) -> tuple[str, str, str]:
        """The unique key of this secret across every store."""
        return (self.name, self.secret_type.value, self.owner)

    @property
    def label(self) -> str:
        return f"{self.secret_type.value}:{self.name}"

    @property
    def payload(self) -> EncryptedPayload:
        return EncryptedPayload(
            ciphertext=self.ciphertext, wrapped_key=self.wrapped_key
        )

    def with_payload(
        self, payload: EncryptedPayload, updated_at: Optional[datetime] = None
    ) -> "Secret":
        """Return a copy whose encrypted pair is replaced as a whole."""
        return self.model_copy(
            update={
                "ciphertext": payload.ciphertext,
                "wrapped_key": payload.wrapped_key,
                "updated_at": updated_at or utcnow(),
            }
        )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the transport field names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Secret":
        return cls.model_validate(data)


# ---------------------------------------------------------------------------
# Plaintext payloads
# ---------------------------------------------------------------------------


class SecretPayload(BaseModel):
    """Base for the JSON documents sealed inside a ciphertext."""

    model_config = ConfigDict(extra="forbid")

    meta: Optional[str] = None

    def to_plaintext(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode("utf-8")

    @classmethod
    def from_plaintext(cls, plaintext: bytes) -> "SecretPayload":
        return cls.model_validate_json(plaintext)


class BankCardPayload(SecretPayload):
    """A payment card."""

    number: str
    holder: str
    expiry: str
    cvv: str


class UserPayload(SecretPayload):
    """A username/password pair."""

    username: str
    password: str


class TextPayload(SecretPayload):
    """Free-form text."""

    content: str


class BinaryPayload(SecretPayload):
    """Arbitrary bytes; base64 inside the JSON plaintext."""

    data: bytes

    @field_validator("data", mode="before")
    @classmethod
    def _decode_data(cls, value: Any) -> Any:
        return _b64decode(value)

    @field_serializer("data", when_used="json")
    def _encode_data(self, value: bytes) -> str:
        return _b64encode(value)


PAYLOAD_MODELS: dict[SecretType, type[SecretPayload]] = {
    SecretType.BANKCARD: BankCardPayload,
    SecretType.USER: UserPayload,
    SecretType.TEXT: TextPayload,
    SecretType.BINARY: BinaryPayload,
}


def payload_model_for(secret_type: SecretType) -> type[SecretPayload]:
    """Map a secret type to the model its plaintext decodes into."""
    return PAYLOAD_MODELS[SecretType(secret_type)]


class SyncReport(BaseModel):
    """Outcome of one sync run, by secret label."""

    mode: SyncMode
    pushed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    kept_remote: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.pushed) + len(self.skipped) + len(self.kept_remote)

    def record(self, secret: Secret, resolution: Resolution) -> None:
        if resolution is Resolution.PUSH:
            self.pushed.append(secret.label)
        elif resolution is Resolution.KEEP_REMOTE:
            self.kept_remote.append(secret.label)
        else:
            self.skipped.append(secret.label)
