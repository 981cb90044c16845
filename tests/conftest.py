"""Shared test fixtures for skvault."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from skvault.contracts import LocalStore, RemoteStore
from skvault.cryptor import Cryptor, CryptorConfig, generate_private_key
from skvault.models import Secret, SecretType, utcnow
from skvault.remote import owner_key

OWNER = "alice"
TOKEN = "tok-alice"
T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class MemoryLocalStore(LocalStore):
    """Dict-backed LocalStore keyed by identity."""

    def __init__(self, secrets: Optional[list[Secret]] = None):
        self.rows: dict[tuple[str, str, str], Secret] = {}
        for secret in secrets or []:
            self.save(secret)

    def list(self, owner: str) -> list[Secret]:
        return [s for s in self.rows.values() if s.owner == owner]

    def save(self, secret: Secret) -> None:
        existing = self.rows.get(secret.identity)
        if existing is not None:
            secret = secret.model_copy(update={"created_at": existing.created_at})
        self.rows[secret.identity] = secret

    def get(self, name, secret_type, owner):
        return self.rows.get((name, SecretType(secret_type).value, owner))


class MemoryRemoteStore(RemoteStore):
    """Dict-backed RemoteStore that records every save call."""

    def __init__(self, secrets: Optional[list[Secret]] = None):
        self.rows: dict[tuple[str, str], Secret] = {}
        self.saves: list[dict] = []
        self.gets: list[tuple[str, SecretType]] = []
        for secret in secrets or []:
            self.rows[(secret.name, secret.secret_type.value)] = secret

    @property
    def name(self) -> str:
        return "memory"

    def get(self, name, secret_type, token):
        self.gets.append((name, SecretType(secret_type)))
        return self.rows.get((name, SecretType(secret_type).value))

    def list(self, token):
        return list(self.rows.values())

    def save(self, name, secret_type, ciphertext, wrapped_key, token):
        secret_type = SecretType(secret_type)
        self.saves.append(
            {
                "name": name,
                "secret_type": secret_type,
                "ciphertext": ciphertext,
                "wrapped_key": wrapped_key,
                "token": token,
            }
        )
        self.rows[(name, secret_type.value)] = Secret(
            name=name,
            secret_type=secret_type,
            owner=owner_key(token),
            ciphertext=ciphertext,
            wrapped_key=wrapped_key,
            updated_at=utcnow(),
        )


@pytest.fixture(scope="session")
def rsa_key():
    """One 2048-bit RSA key for the whole run; generation is slow."""
    return generate_private_key(2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return generate_private_key(2048)


@pytest.fixture
def cryptor(rsa_key) -> Cryptor:
    return Cryptor(CryptorConfig(public_key=rsa_key.public_key(), private_key=rsa_key))


@pytest.fixture
def vault_home(tmp_path: Path) -> Path:
    """Provide a temporary (not yet initialized) vault home."""
    return tmp_path / ".skvault"


@pytest.fixture
def make_secret(cryptor):
    """Factory for encrypted secrets with controlled timestamps."""

    def _make(
        name: str = "visa",
        secret_type: SecretType = SecretType.TEXT,
        plaintext: bytes = b'{"content": "hello"}',
        updated_at: datetime = T0,
        owner: str = OWNER,
    ) -> Secret:
        payload = cryptor.encrypt(plaintext)
        return Secret(
            name=name,
            secret_type=secret_type,
            owner=owner,
            ciphertext=payload.ciphertext,
            wrapped_key=payload.wrapped_key,
            created_at=updated_at - timedelta(days=1),
            updated_at=updated_at,
        )

    return _make
