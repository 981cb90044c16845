"""
Narrow store contracts the vault core depends on.

The core never talks to SQLite, HTTP or the filesystem directly. It only
sees these two interfaces, so any storage or transport can be plugged in
as long as it upholds the identity rule: ``(name, type, owner)`` names one
logical secret everywhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .models import Secret, SecretType


class LocalStore(ABC):
    """Embedded store on the user's machine, keyed by identity triple."""

    @abstractmethod
    def list(self, owner: str) -> list[Secret]:
        """Return every secret belonging to ``owner``."""

    @abstractmethod
    def save(self, secret: Secret) -> None:
        """Insert or replace the row for ``secret.identity``."""

    @abstractmethod
    def get(
        self, name: str, secret_type: SecretType, owner: str
    ) -> Optional[Secret]:
        """Return one secret, or None if no row matches."""


class RemoteStore(ABC):
    """Remote counterpart reached through a transport.

    Implementations apply their own retry policy. Failures surface as
    ``TransportError``; a missing secret is ``None``, not an error.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable transport name."""

    @abstractmethod
    def get(
        self, name: str, secret_type: SecretType, token: str
    ) -> Optional[Secret]:
        """Fetch one secret for the token's owner."""

    @abstractmethod
    def list(self, token: str) -> list[Secret]:
        """Fetch every secret for the token's owner."""

    @abstractmethod
    def save(
        self,
        name: str,
        secret_type: SecretType,
        ciphertext: bytes,
        wrapped_key: bytes,
        token: str,
    ) -> None:
        """Upsert the encrypted pair verbatim."""
