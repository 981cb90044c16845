"""
Error hierarchy for SKVault.

Every failure the core can raise derives from ``VaultError`` so the
command layer has one thing to catch. Nothing here is retried: a bad card
number stays bad, and a corrupted ciphertext cannot heal itself.
"""

from __future__ import annotations

from typing import Optional


class VaultError(Exception):
    """Base class for all SKVault errors."""


class ValidationError(VaultError, ValueError):
    """Raised when user input fails a validator, before any encryption."""


class CryptoError(VaultError):
    """Raised on missing key material, unwrap failure or tag mismatch."""


class ConfigError(VaultError):
    """Raised when configuration or key files cannot be loaded."""


class ConflictAbortError(VaultError):
    """Raised when an interactive conflict gets neither valid choice."""


class _OperationError(VaultError):
    """Collaborator failure annotated with the attempted operation."""

    def __init__(
        self,
        operation: str,
        message: str,
        secret_name: Optional[str] = None,
        secret_type: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.secret_name = secret_name
        self.secret_type = secret_type
        target = ""
        if secret_name is not None:
            target = f" [{secret_type}:{secret_name}]"
        super().__init__(f"{operation}{target} failed: {message}")


class TransportError(_OperationError):
    """Raised by remote stores; aborts the current sync run."""


class StoreError(_OperationError):
    """Raised by the local store."""
