"""
Vault runtime -- one home directory, wired into live collaborators.

Everything the command layer needs is built lazily from config.yaml so a
command only touches the key files, database or network it actually uses.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import VAULT_HOME
from .config import VaultConfig, config_path, load_config
from .contracts import RemoteStore
from .cryptor import Cryptor
from .keys import load_cryptor
from .models import SyncMode, SyncReport
from .remote import create_remote
from .service import SecretService
from .store import SQLiteStore
from .sync import ConflictPrompt, SyncEngine, create_strategy

logger = logging.getLogger("skvault.runtime")


class VaultRuntime:
    """The vault as seen from one home directory.

    Args:
        home: Override vault home. Defaults to $SKVAULT_HOME or ~/.skvault.
    """

    def __init__(self, home: Optional[Path] = None):
        self.home = (home or Path(VAULT_HOME)).expanduser()
        self.config: VaultConfig = load_config(self.home)
        self._store: Optional[SQLiteStore] = None

    @property
    def is_initialized(self) -> bool:
        return config_path(self.home).exists()

    @property
    def store(self) -> SQLiteStore:
        if self._store is None:
            self._store = SQLiteStore(self.config.database(self.home))
        return self._store

    def cryptor(self, require_private: bool = False) -> Cryptor:
        return load_cryptor(self.home, self.config, require_private=require_private)

    def service(self, require_private: bool = False) -> SecretService:
        return SecretService(
            self.store, self.cryptor(require_private), self.config.owner
        )

    def remote(self, server_url: Optional[str] = None) -> RemoteStore:
        return create_remote(
            server_url or self.config.server_url,
            timeout=self.config.request_timeout,
        )

    def sync(
        self,
        mode: Optional[SyncMode] = None,
        server_url: Optional[str] = None,
        token: Optional[str] = None,
        prompt: Optional[ConflictPrompt] = None,
    ) -> SyncReport:
        """Run one sync with config defaults for anything not given.

        Passive mode never opens a key file or a remote store.
        """
        mode = SyncMode(mode or self.config.sync_mode)
        cryptor = None
        if mode is SyncMode.INTERACTIVE:
            cryptor = self.cryptor(require_private=True)
        strategy = create_strategy(mode, cryptor=cryptor, prompt=prompt)
        remote = self.remote(server_url) if strategy.reconciles else None
        engine = SyncEngine(self.store, remote, strategy)
        return engine.run(self.config.owner, token or self.config.token)
