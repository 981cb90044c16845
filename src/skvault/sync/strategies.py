"""
Sync strategies -- who wins when local and remote disagree.

Push:        local wins only when strictly newer (or the remote is missing).
Passive:     does nothing; reserved for remote-initiated reconciliation.
Interactive: like push for missing/stale remotes, asks the user otherwise.

Note the tie rule differs: push leaves an equal-timestamp remote alone,
interactive treats the same tie as a conflict.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..cryptor import Cryptor
from ..errors import ConfigError
from ..models import RemoteState, Resolution, Secret, SyncMode
from .prompt import ConflictPrompt

logger = logging.getLogger("skvault.sync.strategies")


class SyncStrategy(ABC):
    """Decides the fate of one local secret given its remote state."""

    mode: SyncMode
    reconciles: bool = True

    @abstractmethod
    def resolve(
        self, local: Secret, remote: Optional[Secret], state: RemoteState
    ) -> Resolution:
        """Return PUSH, SKIP or KEEP_REMOTE for ``local``."""


class PushStrategy(SyncStrategy):
    """Last-writer-wins, local-authoritative only when strictly newer."""

    mode = SyncMode.PUSH

    def resolve(
        self, local: Secret, remote: Optional[Secret], state: RemoteState
    ) -> Resolution:
        if state in (RemoteState.ABSENT, RemoteState.STALE):
            return Resolution.PUSH
        return Resolution.SKIP


class PassiveStrategy(SyncStrategy):
    """No-op placeholder; the engine short-circuits before any call."""

    mode = SyncMode.PASSIVE
    reconciles = False

    def resolve(
        self, local: Secret, remote: Optional[Secret], state: RemoteState
    ) -> Resolution:
        return Resolution.SKIP


class InteractiveStrategy(SyncStrategy):
    """Auto-push missing or stale remotes; ask on everything else.

    Args:
        cryptor: Must hold the private key; used only to show plaintexts.
        prompt: Blocking conflict prompt.
    """

    mode = SyncMode.INTERACTIVE

    def __init__(self, cryptor: Cryptor, prompt: ConflictPrompt) -> None:
        self.cryptor = cryptor
        self.prompt = prompt

    def resolve(
        self, local: Secret, remote: Optional[Secret], state: RemoteState
    ) -> Resolution:
        if state is RemoteState.ABSENT:
            self.prompt.notify(
                f"Remote has no copy of [{local.label}], uploading local version."
            )
            return Resolution.PUSH
        if state is RemoteState.STALE:
            self.prompt.notify(
                f"Remote copy of [{local.label}] is older, uploading local version."
            )
            return Resolution.PUSH

        local_plain = self.cryptor.decrypt(local.ciphertext, local.wrapped_key)
        remote_plain = self.cryptor.decrypt(remote.ciphertext, remote.wrapped_key)
        resolution = self.prompt.choose(local, remote, local_plain, remote_plain)
        logger.info("Conflict on %s resolved: %s", local.label, resolution.value)
        return resolution


def create_strategy(
    mode: SyncMode,
    cryptor: Optional[Cryptor] = None,
    prompt: Optional[ConflictPrompt] = None,
) -> SyncStrategy:
    """Factory function to build the strategy for ``mode``.

    Raises:
        ConfigError: Interactive mode without a decrypting cryptor.
    """
    mode = SyncMode(mode)
    if mode is SyncMode.PUSH:
        return PushStrategy()
    if mode is SyncMode.PASSIVE:
        return PassiveStrategy()
    if cryptor is None or not cryptor.config.can_decrypt:
        raise ConfigError("interactive sync needs the private key to show conflicts")
    return InteractiveStrategy(cryptor, prompt or ConflictPrompt())
