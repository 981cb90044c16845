"""
Sync Engine -- reconciles local secrets against the remote store.

    skvault sync  ->  list local -> get remote counterpart -> classify
                  ->  strategy decides -> push ciphertext verbatim

One secret at a time, one remote call at a time. Nothing is retried here
and nothing is rolled back: saves already applied earlier in a run stand
when a later secret fails.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..contracts import LocalStore, RemoteStore
from ..errors import ConfigError
from ..models import RemoteState, Resolution, Secret, SyncReport
from .strategies import SyncStrategy

logger = logging.getLogger("skvault.sync.engine")


def classify(local: Secret, remote: Optional[Secret]) -> RemoteState:
    """Place ``remote`` relative to ``local`` by ``updated_at``.

    Returns:
        ABSENT if there is no remote row, STALE if the remote is strictly
        older, FRESH otherwise (equal timestamps count as fresh).
    """
    if remote is None:
        return RemoteState.ABSENT
    if remote.updated_at < local.updated_at:
        return RemoteState.STALE
    return RemoteState.FRESH


class SyncEngine:
    """Orchestrates a single reconciliation run.

    The local store is only read; writes go to the remote side, and only
    through ``RemoteStore.save`` with the local ciphertext untouched.
    ``remote`` may be None only for a strategy that does not reconcile;
    otherwise construction raises ConfigError.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: Optional[RemoteStore],
        strategy: SyncStrategy,
    ) -> None:
        if strategy.reconciles and remote is None:
            raise ConfigError(f"{strategy.mode.value} sync needs a remote store")
        self.local = local
        self.remote = remote
        self.strategy = strategy

    def run(self, owner: str, token: str) -> SyncReport:
        """Reconcile every local secret of ``owner``.

        Args:
            owner: Local owner filter.
            token: Credential presented to the remote store.

        Returns:
            SyncReport listing pushed, skipped and kept-remote secrets.

        Raises:
            TransportError, StoreError, CryptoError, ConflictAbortError:
                The first failure ends the run.
        """
        report = SyncReport(mode=self.strategy.mode)
        if not self.strategy.reconciles:
            logger.info("Sync mode %s: nothing to do", self.strategy.mode.value)
            return report

        secrets = self.local.list(owner)
        logger.info(
            "Syncing %d secret(s) to %s (%s)",
            len(secrets),
            self.remote.name,
            self.strategy.mode.value,
        )

        for secret in secrets:
            counterpart = self.remote.get(secret.name, secret.secret_type, token)
            state = classify(secret, counterpart)
            resolution = self.strategy.resolve(secret, counterpart, state)
            logger.debug(
                "%s: remote %s -> %s", secret.label, state.value, resolution.value
            )

            if resolution is Resolution.PUSH:
                self.remote.save(
                    secret.name,
                    secret.secret_type,
                    secret.ciphertext,
                    secret.wrapped_key,
                    token,
                )
            report.record(secret, resolution)

        logger.info(
            "Sync complete: %d pushed, %d skipped, %d kept remote",
            len(report.pushed),
            len(report.skipped),
            len(report.kept_remote),
        )
        return report
