"""
Vault configuration -- a single YAML file in the vault home.

    ~/.skvault/
      config.yaml     <- VaultConfig
      vault.db        <- local SQLite store
      keys/           <- PEM key pair
      audit.log       <- JSONL audit trail
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as ModelValidationError

from .errors import ConfigError
from .models import SyncMode

logger = logging.getLogger("skvault.config")

CONFIG_FILE_NAME = "config.yaml"
DEFAULT_DB_NAME = "vault.db"
DEFAULT_KEY_SIZE = 3072


class VaultConfig(BaseModel):
    """Persistent settings for one vault home.

    Relative paths are resolved against the home directory; ``None``
    paths fall back to the default layout.
    """

    owner: str = ""
    token: str = ""
    server_url: str = ""
    sync_mode: SyncMode = SyncMode.PUSH
    db_path: Optional[str] = None
    public_key_path: Optional[str] = None
    private_key_path: Optional[str] = None
    key_size: int = Field(default=DEFAULT_KEY_SIZE, ge=2048)
    request_timeout: Optional[float] = Field(default=None, gt=0)

    def resolve(self, home: Path, value: Optional[str], default: str) -> Path:
        path = Path(value).expanduser() if value else Path(default)
        return path if path.is_absolute() else home / path

    def database(self, home: Path) -> Path:
        return self.resolve(home, self.db_path, DEFAULT_DB_NAME)


def config_path(home: Path) -> Path:
    return home / CONFIG_FILE_NAME


def load_config(home: Path) -> VaultConfig:
    """Load ``<home>/config.yaml``; a missing file yields defaults.

    Raises:
        ConfigError: If the file exists but is not valid YAML or does not
            describe a valid VaultConfig.
    """
    path = config_path(home)
    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        return VaultConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    try:
        return VaultConfig(**data)
    except ModelValidationError as exc:
        raise ConfigError(f"invalid configuration in {path}: {exc}") from exc


def save_config(home: Path, config: VaultConfig) -> Path:
    """Write ``config`` to ``<home>/config.yaml`` and return the path."""
    home.mkdir(parents=True, exist_ok=True)
    path = config_path(home)
    data = config.model_dump(mode="json")
    path.write_text(yaml.dump(data, default_flow_style=False), encoding="utf-8")
    logger.debug("Config written to %s", path)
    return path
