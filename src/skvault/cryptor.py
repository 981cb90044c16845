"""
Cryptor -- hybrid (envelope) encryption for vault secrets.

Each secret gets its own random AES-256 key. The bulk data is sealed with
AES-256-GCM; only the 32-byte key is wrapped with RSA-OAEP under the
owner's public key. Either half of the key pair may be absent: a pure
uploader needs only the public key, a pure reader only the private one.

Ciphertext layout:
    nonce (12 bytes) || AES-256-GCM(ciphertext || tag)

Wrapped key:
    RSA-OAEP(MGF1-SHA256, SHA-256, label=b"AESKey")(aes_key)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Union

from cryptography import x509
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CryptoError
from .models import EncryptedPayload

logger = logging.getLogger("skvault.cryptor")

KEY_SIZE = 32  # AES-256
NONCE_SIZE = 12  # AES-GCM standard
DEFAULT_LABEL = b"AESKey"
MIN_RSA_BITS = 2048


def _oaep(label: bytes) -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=label,
    )


def load_public_key_pem(pem: bytes) -> rsa.RSAPublicKey:
    """Parse a PEM public key or X.509 certificate into an RSA public key.

    Raises:
        CryptoError: If the PEM is malformed or not RSA.
    """
    try:
        if b"BEGIN CERTIFICATE" in pem:
            key = x509.load_pem_x509_certificate(pem).public_key()
        else:
            key = serialization.load_pem_public_key(pem)
    except ValueError as exc:
        raise CryptoError(f"invalid public key PEM: {exc}") from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise CryptoError("public key is not an RSA key")
    return key


def load_private_key_pem(
    pem: bytes, password: Optional[bytes] = None
) -> rsa.RSAPrivateKey:
    """Parse a PKCS#1 or PKCS#8 PEM private key.

    Raises:
        CryptoError: If the PEM is malformed, encrypted with another
            password, or not RSA.
    """
    try:
        key = serialization.load_pem_private_key(pem, password=password)
    except (ValueError, TypeError) as exc:
        raise CryptoError(f"invalid private key PEM: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoError("private key is not an RSA key")
    return key


@dataclass(frozen=True)
class CryptorConfig:
    """Immutable key configuration, validated once at construction.

    Args:
        public_key: RSA public key used to wrap per-secret keys.
        private_key: RSA private key used to unwrap them.
        label: OAEP domain-separation label shared by both directions.
    """

    public_key: Optional[rsa.RSAPublicKey] = None
    private_key: Optional[rsa.RSAPrivateKey] = None
    label: bytes = DEFAULT_LABEL

    def __post_init__(self) -> None:
        if self.public_key is not None:
            if not isinstance(self.public_key, rsa.RSAPublicKey):
                raise CryptoError("public key is not an RSA key")
            if self.public_key.key_size < MIN_RSA_BITS:
                raise CryptoError(
                    f"public key too small: {self.public_key.key_size} bits "
                    f"(minimum {MIN_RSA_BITS})"
                )
        if self.private_key is not None:
            if not isinstance(self.private_key, rsa.RSAPrivateKey):
                raise CryptoError("private key is not an RSA key")
            if self.private_key.key_size < MIN_RSA_BITS:
                raise CryptoError(
                    f"private key too small: {self.private_key.key_size} bits "
                    f"(minimum {MIN_RSA_BITS})"
                )
        if self.public_key is not None and self.private_key is not None:
            if (
                self.public_key.public_numbers()
                != self.private_key.public_key().public_numbers()
            ):
                raise CryptoError("public and private keys do not form a pair")
        if not isinstance(self.label, bytes):
            raise CryptoError("OAEP label must be bytes")

    @classmethod
    def from_pem(
        cls,
        public_pem: Optional[bytes] = None,
        private_pem: Optional[bytes] = None,
        password: Optional[bytes] = None,
        label: bytes = DEFAULT_LABEL,
    ) -> "CryptorConfig":
        """Build a config from PEM bytes; either half may be omitted."""
        public_key = load_public_key_pem(public_pem) if public_pem else None
        private_key = (
            load_private_key_pem(private_pem, password) if private_pem else None
        )
        return cls(public_key=public_key, private_key=private_key, label=label)

    @property
    def can_encrypt(self) -> bool:
        return self.public_key is not None

    @property
    def can_decrypt(self) -> bool:
        return self.private_key is not None


class Cryptor:
    """Envelope encryption over a fixed ``CryptorConfig``.

    A pure value transform: the only state is the configured key pair.
    """

    def __init__(self, config: CryptorConfig) -> None:
        self.config = config

    @classmethod
    def from_pem(
        cls,
        public_pem: Optional[bytes] = None,
        private_pem: Optional[bytes] = None,
        password: Optional[bytes] = None,
    ) -> "Cryptor":
        return cls(CryptorConfig.from_pem(public_pem, private_pem, password))

    def encrypt(self, plaintext: bytes) -> EncryptedPayload:
        """Seal ``plaintext`` under a fresh AES key wrapped for the owner.

        Returns:
            EncryptedPayload with nonce-prefixed ciphertext and wrapped key.

        Raises:
            CryptoError: No public key, random source failure, or wrap failure.
        """
        public_key = self.config.public_key
        if public_key is None:
            raise CryptoError("cannot encrypt: no public key configured")

        try:
            aes_key = os.urandom(KEY_SIZE)
            nonce = os.urandom(NONCE_SIZE)
        except (OSError, NotImplementedError) as exc:
            raise CryptoError(f"random source failed: {exc}") from exc

        sealed = AESGCM(aes_key).encrypt(nonce, plaintext, None)

        try:
            wrapped_key = public_key.encrypt(aes_key, _oaep(self.config.label))
        except ValueError as exc:
            raise CryptoError(f"key wrap failed: {exc}") from exc

        logger.debug(
            "Encrypted %d bytes (ciphertext %d bytes)",
            len(plaintext),
            NONCE_SIZE + len(sealed),
        )
        return EncryptedPayload(ciphertext=nonce + sealed, wrapped_key=wrapped_key)

    def decrypt(
        self,
        ciphertext: Union[bytes, EncryptedPayload],
        wrapped_key: Optional[bytes] = None,
    ) -> bytes:
        """Unwrap the per-secret key and open the ciphertext.

        Accepts either ``(ciphertext, wrapped_key)`` or a single
        ``EncryptedPayload``.

        Raises:
            CryptoError: No private key, unwrap failure, truncated
                ciphertext, or authentication tag mismatch.
        """
        if isinstance(ciphertext, EncryptedPayload):
            ciphertext, wrapped_key = ciphertext.ciphertext, ciphertext.wrapped_key
        if wrapped_key is None:
            raise CryptoError("cannot decrypt: wrapped key is missing")

        private_key = self.config.private_key
        if private_key is None:
            raise CryptoError("cannot decrypt: no private key configured")

        try:
            aes_key = private_key.decrypt(wrapped_key, _oaep(self.config.label))
        except ValueError as exc:
            raise CryptoError("key unwrap failed: wrong key or corrupted data") from exc

        if len(aes_key) != KEY_SIZE:
            raise CryptoError("key unwrap produced a key of the wrong size")
        if len(ciphertext) < NONCE_SIZE:
            raise CryptoError("ciphertext too short")

        nonce, sealed = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
        try:
            return AESGCM(aes_key).decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise CryptoError(
                "integrity check failed: ciphertext was tampered with or corrupted"
            ) from exc


def generate_private_key(key_size: int = 3072) -> rsa.RSAPrivateKey:
    """Generate a fresh RSA private key suitable for a ``CryptorConfig``."""
    if key_size < MIN_RSA_BITS:
        raise CryptoError(f"key size must be at least {MIN_RSA_BITS} bits")
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)
