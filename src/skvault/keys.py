"""
Key files -- generate, locate and load the vault's RSA key pair.

    <home>/keys/vault.pub.pem   SubjectPublicKeyInfo (or an X.509 cert)
    <home>/keys/vault.key.pem   PKCS#8, unencrypted, mode 0600

Either path can be overridden in config.yaml, e.g. to point the public
key at a certificate issued elsewhere.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives import serialization

from .config import VaultConfig
from .cryptor import Cryptor, CryptorConfig, generate_private_key
from .errors import ConfigError

logger = logging.getLogger("skvault.keys")

PUBLIC_KEY_NAME = "keys/vault.pub.pem"
PRIVATE_KEY_NAME = "keys/vault.key.pem"
PRIVATE_KEY_PASSWORD_ENV = "SKVAULT_KEY_PASSWORD"


def public_key_path(home: Path, config: VaultConfig) -> Path:
    return config.resolve(home, config.public_key_path, PUBLIC_KEY_NAME)


def private_key_path(home: Path, config: VaultConfig) -> Path:
    return config.resolve(home, config.private_key_path, PRIVATE_KEY_NAME)


def generate_keypair(
    home: Path, config: VaultConfig, force: bool = False
) -> tuple[Path, Path]:
    """Create a new RSA key pair at the configured paths.

    Args:
        home: Vault home directory.
        config: Supplies key paths and ``key_size``.
        force: Overwrite existing key files.

    Returns:
        (public_key_path, private_key_path)

    Raises:
        ConfigError: If a key file exists and ``force`` is not set.
    """
    pub_path = public_key_path(home, config)
    priv_path = private_key_path(home, config)
    if not force:
        for path in (pub_path, priv_path):
            if path.exists():
                raise ConfigError(f"key file already exists: {path} (use --force)")

    private_key = generate_private_key(config.key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    priv_path.parent.mkdir(parents=True, exist_ok=True)
    pub_path.parent.mkdir(parents=True, exist_ok=True)
    priv_path.write_bytes(private_pem)
    os.chmod(priv_path, 0o600)
    pub_path.write_bytes(public_pem)

    logger.info("Generated %d-bit RSA key pair in %s", config.key_size, pub_path.parent)
    return pub_path, priv_path


def _read(path: Path) -> Optional[bytes]:
    if not path.exists():
        return None
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"cannot read key file {path}: {exc}") from exc


def load_cryptor(
    home: Path, config: VaultConfig, require_private: bool = False
) -> Cryptor:
    """Build a Cryptor from whatever key files are present.

    The private key may be password protected; the password is taken from
    ``$SKVAULT_KEY_PASSWORD``.

    Raises:
        ConfigError: No key files at all, or a required private key is
            missing.
        CryptoError: Key files exist but do not parse or do not match.
    """
    public_pem = _read(public_key_path(home, config))
    private_pem = _read(private_key_path(home, config))

    if public_pem is None and private_pem is None:
        raise ConfigError(
            f"no key files found under {home} (run 'skvault keys generate')"
        )
    if require_private and private_pem is None:
        raise ConfigError(
            f"private key not found: {private_key_path(home, config)}"
        )

    password = os.environ.get(PRIVATE_KEY_PASSWORD_ENV)
    key_config = CryptorConfig.from_pem(
        public_pem=public_pem,
        private_pem=private_pem,
        password=password.encode("utf-8") if password else None,
    )
    if key_config.public_key is None:
        # Public half is derivable from the private key.
        key_config = CryptorConfig(
            public_key=key_config.private_key.public_key(),
            private_key=key_config.private_key,
            label=key_config.label,
        )
    return Cryptor(key_config)
