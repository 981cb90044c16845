"""Tests for the SQLite local store."""

from __future__ import annotations

import sqlite3
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from skvault.errors import StoreError
from skvault.models import EncryptedPayload, SecretType
from skvault.store import SQLiteStore

from conftest import OWNER, T0


@pytest.fixture
def store(tmp_path: Path) -> SQLiteStore:
    return SQLiteStore(tmp_path / "nested" / "vault.db")


class TestSQLiteStore:
    """Upsert by identity, owner filtering, error wrapping."""

    def test_creates_parent_directory(self, store):
        assert store.db_path.parent.is_dir()
        assert store.list(OWNER) == []

    def test_save_then_get(self, store, make_secret):
        secret = make_secret()
        store.save(secret)
        loaded = store.get(secret.name, secret.secret_type, OWNER)
        assert loaded == secret

    def test_get_missing(self, store):
        assert store.get("nope", SecretType.TEXT, OWNER) is None

    def test_upsert_keeps_created_at(self, store, make_secret):
        secret = make_secret()
        store.save(secret)

        later = T0 + timedelta(hours=2)
        store.save(
            secret.with_payload(
                EncryptedPayload(ciphertext=b"c2", wrapped_key=b"k2"), later
            ).model_copy(update={"created_at": later})
        )

        loaded = store.get(secret.name, secret.secret_type, OWNER)
        assert loaded.ciphertext == b"c2"
        assert loaded.wrapped_key == b"k2"
        assert loaded.updated_at == later
        assert loaded.created_at == secret.created_at
        assert len(store.list(OWNER)) == 1

    def test_identity_includes_type_and_owner(self, store, make_secret):
        store.save(make_secret(name="x", secret_type=SecretType.TEXT))
        store.save(make_secret(name="x", secret_type=SecretType.USER))
        store.save(make_secret(name="x", secret_type=SecretType.TEXT, owner="bob"))

        assert len(store.list(OWNER)) == 2
        assert [s.owner for s in store.list("bob")] == ["bob"]

    def test_list_ordered_by_type_then_name(self, store, make_secret):
        store.save(make_secret(name="zeta", secret_type=SecretType.TEXT))
        store.save(make_secret(name="alpha", secret_type=SecretType.TEXT))
        store.save(make_secret(name="visa", secret_type=SecretType.BANKCARD))

        assert [s.label for s in store.list(OWNER)] == [
            "bankcard:visa",
            "text:alpha",
            "text:zeta",
        ]

    def test_timestamps_survive_as_aware_datetimes(self, store, make_secret):
        store.save(make_secret())
        loaded = store.list(OWNER)[0]
        assert loaded.updated_at == T0
        assert loaded.updated_at.tzinfo is not None

    def test_sqlite_errors_become_store_errors(self, store, make_secret):
        secret = make_secret()
        with patch.object(
            SQLiteStore, "connect", side_effect=sqlite3.OperationalError("disk I/O error")
        ):
            with pytest.raises(StoreError) as exc_info:
                store.save(secret)

        assert exc_info.value.operation == "save"
        assert exc_info.value.secret_name == secret.name
        assert exc_info.value.secret_type == "text"
        assert "disk I/O error" in str(exc_info.value)

    def test_malformed_timestamp_becomes_store_error(self, store, make_secret):
        secret = make_secret(name="note")
        store.save(secret)
        with sqlite3.connect(store.db_path) as conn:
            conn.execute("UPDATE secrets SET updated_at = 'yesterday-ish'")

        with pytest.raises(StoreError, match="malformed row") as exc_info:
            store.get("note", SecretType.TEXT, secret.owner)
        assert exc_info.value.operation == "get"
        assert exc_info.value.secret_name == "note"
        assert exc_info.value.secret_type == "text"

        with pytest.raises(StoreError) as exc_info:
            store.list(secret.owner)
        assert exc_info.value.operation == "list"
