"""Tests for configuration, key files, the audit log, and the runtime."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from skvault.audit import ADD, SYNC, audit_event, read_audit_log
from skvault.config import VaultConfig, load_config, save_config
from skvault.errors import ConfigError, CryptoError
from skvault.keys import generate_keypair, load_cryptor, private_key_path, public_key_path
from skvault.models import SyncMode
from skvault.remote import FileRemoteStore
from skvault.runtime import VaultRuntime

from conftest import OWNER, TOKEN


@pytest.fixture
def fast_keys(rsa_key):
    """Reuse the session key instead of generating a new one."""
    with patch("skvault.keys.generate_private_key", return_value=rsa_key):
        yield


class TestVaultConfig:
    def test_missing_file_yields_defaults(self, vault_home):
        config = load_config(vault_home)
        assert config == VaultConfig()
        assert config.sync_mode is SyncMode.PUSH
        assert config.request_timeout is None

    def test_save_and_load(self, vault_home):
        config = VaultConfig(
            owner=OWNER,
            token=TOKEN,
            server_url="https://vault.example",
            sync_mode=SyncMode.INTERACTIVE,
            request_timeout=3.0,
        )
        path = save_config(vault_home, config)

        assert path == vault_home / "config.yaml"
        assert yaml.safe_load(path.read_text())["sync_mode"] == "interactive"
        assert load_config(vault_home) == config

    def test_invalid_yaml(self, vault_home):
        vault_home.mkdir()
        (vault_home / "config.yaml").write_text("owner: [unclosed\n")
        with pytest.raises(ConfigError, match="cannot read"):
            load_config(vault_home)

    def test_invalid_values(self, vault_home):
        vault_home.mkdir()
        (vault_home / "config.yaml").write_text("sync_mode: pull\n")
        with pytest.raises(ConfigError, match="invalid configuration"):
            load_config(vault_home)

    def test_not_a_mapping(self, vault_home):
        vault_home.mkdir()
        (vault_home / "config.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(vault_home)

    def test_paths_resolve_against_home(self, tmp_path: Path):
        config = VaultConfig(db_path="data/secrets.db")
        assert config.database(tmp_path) == tmp_path / "data" / "secrets.db"
        assert VaultConfig().database(tmp_path) == tmp_path / "vault.db"
        absolute = tmp_path / "elsewhere.db"
        assert VaultConfig(db_path=str(absolute)).database(Path("/ignored")) == absolute


class TestKeys:
    def test_generate_writes_pem_pair(self, vault_home, fast_keys):
        config = VaultConfig()
        pub_path, priv_path = generate_keypair(vault_home, config)

        assert pub_path == vault_home / "keys" / "vault.pub.pem"
        assert b"BEGIN PUBLIC KEY" in pub_path.read_bytes()
        assert b"BEGIN PRIVATE KEY" in priv_path.read_bytes()
        assert stat.S_IMODE(os.stat(priv_path).st_mode) == 0o600

    def test_generate_refuses_to_overwrite(self, vault_home, fast_keys):
        generate_keypair(vault_home, VaultConfig())
        with pytest.raises(ConfigError, match="already exists"):
            generate_keypair(vault_home, VaultConfig())
        generate_keypair(vault_home, VaultConfig(), force=True)

    def test_load_cryptor_round_trip(self, vault_home, fast_keys):
        generate_keypair(vault_home, VaultConfig())
        cryptor = load_cryptor(vault_home, VaultConfig())
        assert cryptor.decrypt(cryptor.encrypt(b"hi")) == b"hi"

    def test_public_key_only(self, vault_home, fast_keys):
        config = VaultConfig()
        generate_keypair(vault_home, config)
        private_key_path(vault_home, config).unlink()

        cryptor = load_cryptor(vault_home, config)
        assert cryptor.config.can_encrypt and not cryptor.config.can_decrypt
        with pytest.raises(ConfigError, match="private key"):
            load_cryptor(vault_home, config, require_private=True)

    def test_private_key_only_derives_public(self, vault_home, fast_keys):
        config = VaultConfig()
        generate_keypair(vault_home, config)
        public_key_path(vault_home, config).unlink()

        cryptor = load_cryptor(vault_home, config)
        assert cryptor.config.can_encrypt and cryptor.config.can_decrypt

    def test_no_keys(self, vault_home):
        with pytest.raises(ConfigError, match="no key files"):
            load_cryptor(vault_home, VaultConfig())

    def test_mismatched_key_files(self, vault_home, rsa_key, other_rsa_key):
        config = VaultConfig()
        with patch("skvault.keys.generate_private_key", return_value=rsa_key):
            generate_keypair(vault_home, config)
        public = public_key_path(vault_home, config).read_bytes()
        with patch("skvault.keys.generate_private_key", return_value=other_rsa_key):
            generate_keypair(vault_home, config, force=True)
        public_key_path(vault_home, config).write_bytes(public)

        with pytest.raises(CryptoError, match="pair"):
            load_cryptor(vault_home, config)


class TestAuditLog:
    def test_append_and_read(self, vault_home):
        audit_event(vault_home, ADD, "Secret text:a saved")
        audit_event(vault_home, SYNC, "Sync (push): 1 pushed", metadata={"pushed": ["text:a"]})

        entries = read_audit_log(vault_home)
        assert [e.event_type for e in entries] == [ADD, SYNC]
        assert entries[1].metadata == {"pushed": ["text:a"]}
        assert entries[0].host

    def test_limit_keeps_newest(self, vault_home):
        for i in range(5):
            audit_event(vault_home, ADD, f"event {i}")
        assert [e.detail for e in read_audit_log(vault_home, limit=2)] == [
            "event 3",
            "event 4",
        ]

    def test_unparsed_lines_are_kept(self, vault_home):
        vault_home.mkdir()
        (vault_home / "audit.log").write_text("garbage line\n\n")
        [entry] = read_audit_log(vault_home)
        assert entry.event_type == "UNPARSED"
        assert entry.detail == "garbage line"

    def test_empty(self, vault_home):
        assert read_audit_log(vault_home) == []

    def test_recorded_at_is_aware(self, vault_home):
        entry = audit_event(vault_home, ADD, "x")
        [stored] = read_audit_log(vault_home)
        assert stored.recorded_at == entry.recorded_at
        assert stored.recorded_at.tzinfo is not None
        assert stored.metadata == {}
        assert len(stored.when) == 19


class TestVaultRuntime:
    def test_wires_collaborators(self, vault_home, tmp_path, fast_keys):
        config = VaultConfig(owner=OWNER, token=TOKEN, server_url=str(tmp_path / "remote"))
        save_config(vault_home, config)
        generate_keypair(vault_home, config)

        runtime = VaultRuntime(vault_home)
        assert runtime.is_initialized
        assert runtime.store.db_path == vault_home / "vault.db"
        assert isinstance(runtime.remote(), FileRemoteStore)

        runtime.service().add_text("note", "hello")
        report = runtime.sync()
        assert report.pushed == ["text:note"]
        assert runtime.remote().get("note", "text", TOKEN) is not None

    def test_passive_sync_needs_no_remote(self, vault_home):
        save_config(vault_home, VaultConfig(owner=OWNER, sync_mode=SyncMode.PASSIVE))
        report = VaultRuntime(vault_home).sync()
        assert report.total == 0

    def test_missing_server_url(self, vault_home, fast_keys):
        save_config(vault_home, VaultConfig(owner=OWNER, token=TOKEN))
        with pytest.raises(ConfigError, match="server URL"):
            VaultRuntime(vault_home).sync(mode=SyncMode.PUSH)
