"""
Audit trail -- what the vault did, never what it holds.

JSONL, one ``AuditEntry`` per line, append-only. Entries carry secret
labels and counts; plaintext and key material never reach this file.
"""

from __future__ import annotations

import json
import socket
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as ModelValidationError

AUDIT_FILE = "audit.log"

INIT = "INIT"
KEYGEN = "KEYGEN"
ADD = "ADD"
SYNC = "SYNC"
SYNC_ABORT = "SYNC_ABORT"
UNPARSED = "UNPARSED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEntry(BaseModel):
    """One line of the vault's audit trail."""

    recorded_at: datetime = Field(default_factory=_utcnow)
    event_type: str
    detail: str
    host: str = Field(default_factory=socket.gethostname)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def when(self) -> str:
        return self.recorded_at.strftime("%Y-%m-%d %H:%M:%S")


def audit_path(home: Path) -> Path:
    return home / AUDIT_FILE


def audit_event(
    home: Path,
    event_type: str,
    detail: str,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """Append an event to the vault's audit trail.

    Args:
        home: Vault home directory (created if missing).
        event_type: One of INIT, KEYGEN, ADD, SYNC, SYNC_ABORT.
        detail: Short description; secret labels only, never payloads.
        metadata: Counts and label lists for the event.

    Returns:
        The entry as written.
    """
    home.mkdir(parents=True, exist_ok=True)
    entry = AuditEntry(event_type=event_type, detail=detail, metadata=metadata or {})
    with audit_path(home).open("a", encoding="utf-8") as fh:
        fh.write(entry.model_dump_json() + "\n")
    return entry


def _parse_line(raw: str) -> AuditEntry:
    try:
        return AuditEntry.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ModelValidationError):
        return AuditEntry(event_type=UNPARSED, detail=raw)


def read_audit_log(home: Path, limit: int = 0) -> list[AuditEntry]:
    """Return audit entries oldest first; ``limit`` keeps only the newest N.

    Corrupt lines are surfaced as ``UNPARSED`` entries instead of being
    dropped.
    """
    path = audit_path(home)
    if not path.is_file():
        return []

    kept: deque[AuditEntry] = deque(maxlen=limit if limit > 0 else None)
    with path.open(encoding="utf-8") as fh:
        for raw in fh:
            raw = raw.strip()
            if raw:
                kept.append(_parse_line(raw))
    return list(kept)
