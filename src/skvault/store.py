"""SQLite-backed local secret store."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Optional

from .contracts import LocalStore
from .errors import StoreError
from .models import Secret, SecretType

logger = logging.getLogger("skvault.store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS secrets (
    secret_name TEXT NOT NULL,
    secret_type TEXT NOT NULL,
    secret_owner TEXT NOT NULL,
    ciphertext BLOB NOT NULL,
    aes_key_enc BLOB NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (secret_name, secret_type, secret_owner)
);
"""

_COLUMNS = (
    "secret_name, secret_type, secret_owner, ciphertext, aes_key_enc, "
    "created_at, updated_at"
)


def _row_to_secret(row: sqlite3.Row, operation: str) -> Secret:
    # pydantic's ValidationError is a ValueError too
    try:
        return Secret(
            name=row["secret_name"],
            secret_type=SecretType(row["secret_type"]),
            owner=row["secret_owner"],
            ciphertext=bytes(row["ciphertext"]),
            wrapped_key=bytes(row["aes_key_enc"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
    except (TypeError, ValueError) as exc:
        raise StoreError(
            operation,
            f"malformed row: {exc}",
            row["secret_name"],
            row["secret_type"],
        ) from exc


class SQLiteStore(LocalStore):
    """Local store in a single SQLite file.

    Rows are upserted on ``(secret_name, secret_type, secret_owner)``.
    Timestamps are the secret's own, so a re-encrypted secret keeps its
    ``created_at`` and carries a fresh ``updated_at`` from the caller.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path.expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_schema()

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_schema(self) -> None:
        try:
            with closing(self.connect()) as conn:
                conn.execute(SCHEMA)
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError("init", str(exc)) from exc

    def save(self, secret: Secret) -> None:
        try:
            with closing(self.connect()) as conn:
                conn.execute(
                    f"""
                    INSERT INTO secrets ({_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(secret_name, secret_type, secret_owner) DO UPDATE SET
                        ciphertext = excluded.ciphertext,
                        aes_key_enc = excluded.aes_key_enc,
                        updated_at = excluded.updated_at;
                    """,
                    (
                        secret.name,
                        secret.secret_type.value,
                        secret.owner,
                        secret.ciphertext,
                        secret.wrapped_key,
                        secret.created_at.isoformat(),
                        secret.updated_at.isoformat(),
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(
                "save", str(exc), secret.name, secret.secret_type.value
            ) from exc
        logger.debug("Saved %s for %s", secret.label, secret.owner)

    def get(
        self, name: str, secret_type: SecretType, owner: str
    ) -> Optional[Secret]:
        secret_type = SecretType(secret_type)
        try:
            with closing(self.connect()) as conn:
                row = conn.execute(
                    f"""
                    SELECT {_COLUMNS} FROM secrets
                    WHERE secret_name = ? AND secret_type = ? AND secret_owner = ?
                    """,
                    (name, secret_type.value, owner),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError("get", str(exc), name, secret_type.value) from exc
        return _row_to_secret(row, "get") if row is not None else None

    def list(self, owner: str) -> list[Secret]:
        try:
            with closing(self.connect()) as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_COLUMNS} FROM secrets
                    WHERE secret_owner = ?
                    ORDER BY secret_type, secret_name
                    """,
                    (owner,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError("list", str(exc)) from exc
        return [_row_to_secret(row, "list") for row in rows]
