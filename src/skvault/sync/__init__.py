"""
Secret sync -- mirror encrypted records to a remote store.

The ciphertext never changes on the way out: sync moves the exact bytes
``encrypt`` produced, and decrypts only to show a human a conflict.
"""

from .engine import SyncEngine, classify
from .prompt import ConflictPrompt
from .strategies import (
    InteractiveStrategy,
    PassiveStrategy,
    PushStrategy,
    SyncStrategy,
    create_strategy,
)

__all__ = [
    "ConflictPrompt",
    "InteractiveStrategy",
    "PassiveStrategy",
    "PushStrategy",
    "SyncEngine",
    "SyncStrategy",
    "classify",
    "create_strategy",
]
