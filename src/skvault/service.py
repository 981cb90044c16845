"""
Secret service -- the add path and the read path over one local store.

    add:    validate -> payload JSON -> Cryptor.encrypt -> LocalStore.save
    reveal: Cryptor.decrypt -> payload model

Re-adding an existing (name, type, owner) replaces the encrypted pair as a
whole, keeps ``created_at`` and bumps ``updated_at``.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError as ModelValidationError

from . import validators
from .contracts import LocalStore
from .cryptor import Cryptor
from .errors import ConfigError, CryptoError
from .models import (
    BankCardPayload,
    BinaryPayload,
    Secret,
    SecretPayload,
    SecretType,
    TextPayload,
    UserPayload,
    payload_model_for,
)

logger = logging.getLogger("skvault.service")


class SecretService:
    """Validated, encrypted access to one owner's local secrets."""

    def __init__(self, store: LocalStore, cryptor: Cryptor, owner: str) -> None:
        if not owner:
            raise ConfigError("no owner configured (run 'skvault init')")
        self.store = store
        self.cryptor = cryptor
        self.owner = owner

    def _seal(
        self, name: str, secret_type: SecretType, payload: SecretPayload
    ) -> Secret:
        name = validators.validate_secret_name(name)
        encrypted = self.cryptor.encrypt(payload.to_plaintext())

        existing = self.store.get(name, secret_type, self.owner)
        if existing is not None:
            secret = existing.with_payload(encrypted)
        else:
            secret = Secret(
                name=name,
                secret_type=secret_type,
                owner=self.owner,
                ciphertext=encrypted.ciphertext,
                wrapped_key=encrypted.wrapped_key,
            )
        self.store.save(secret)
        logger.info(
            "%s %s", "Updated" if existing is not None else "Added", secret.label
        )
        return secret

    def add_bank_card(
        self,
        name: str,
        number: str,
        holder: str,
        expiry: str,
        cvv: str,
        meta: Optional[str] = None,
    ) -> Secret:
        payload = BankCardPayload(
            number=validators.validate_card_number(number),
            holder=validators.validate_card_holder(holder),
            expiry=validators.validate_card_expiry(expiry),
            cvv=validators.validate_cvv(cvv),
            meta=validators.validate_meta(meta),
        )
        return self._seal(name, SecretType.BANKCARD, payload)

    def add_user(
        self,
        name: str,
        username: str,
        password: str,
        meta: Optional[str] = None,
    ) -> Secret:
        payload = UserPayload(
            username=validators.validate_username(username),
            password=validators.validate_password(password),
            meta=validators.validate_meta(meta),
        )
        return self._seal(name, SecretType.USER, payload)

    def add_text(self, name: str, content: str, meta: Optional[str] = None) -> Secret:
        payload = TextPayload(content=content, meta=validators.validate_meta(meta))
        return self._seal(name, SecretType.TEXT, payload)

    def add_binary(self, name: str, data: bytes, meta: Optional[str] = None) -> Secret:
        payload = BinaryPayload(data=data, meta=validators.validate_meta(meta))
        return self._seal(name, SecretType.BINARY, payload)

    def list(self) -> list[Secret]:
        return self.store.list(self.owner)

    def get(self, name: str, secret_type: SecretType) -> Optional[Secret]:
        return self.store.get(name, SecretType(secret_type), self.owner)

    def reveal(self, secret: Secret) -> SecretPayload:
        """Decrypt ``secret`` and parse it into its payload model.

        Raises:
            CryptoError: No private key, or the ciphertext does not open.
        """
        plaintext = self.cryptor.decrypt(secret.ciphertext, secret.wrapped_key)
        try:
            return payload_model_for(secret.secret_type).from_plaintext(plaintext)
        except ModelValidationError as exc:
            raise CryptoError(
                f"{secret.label} decrypted to an unreadable payload"
            ) from exc
