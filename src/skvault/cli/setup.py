"""Setup commands: init, keys generate, keys show."""

from __future__ import annotations

import hashlib
from pathlib import Path

import click
from cryptography.hazmat.primitives import serialization
from rich.panel import Panel

from ..audit import INIT, KEYGEN, audit_event
from ..config import DEFAULT_KEY_SIZE, VaultConfig, config_path, save_config
from ..errors import ConfigError
from ..keys import generate_keypair, private_key_path, public_key_path
from ..models import SyncMode
from ..runtime import VaultRuntime
from ._common import console, vault_errors


def key_fingerprint(runtime: VaultRuntime) -> str:
    """SHA-256 over the DER SubjectPublicKeyInfo, colon separated."""
    public_key = runtime.cryptor().config.public_key
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    digest = hashlib.sha256(der).hexdigest().upper()
    return ":".join(digest[i:i + 4] for i in range(0, len(digest), 4))


def register_setup_commands(main: click.Group) -> None:
    """Register init and the keys group."""

    @main.command()
    @click.option("--owner", required=True, help="Owner name stamped on every secret.")
    @click.option("--token", required=True, help="Credential for the remote store.")
    @click.option(
        "--server-url",
        default="",
        help="Remote store: http(s)://host:port, file:///path or a plain path.",
    )
    @click.option(
        "--sync-mode",
        type=click.Choice([m.value for m in SyncMode]),
        default=SyncMode.PUSH.value,
        show_default=True,
    )
    @click.option(
        "--key-size",
        default=DEFAULT_KEY_SIZE,
        show_default=True,
        type=click.IntRange(min=2048),
    )
    @click.option("--force", is_flag=True, help="Overwrite existing config and keys.")
    @click.pass_obj
    def init(home: Path, owner, token, server_url, sync_mode, key_size, force):
        """Create a vault: config, RSA key pair and local database."""
        with vault_errors():
            if config_path(home).exists() and not force:
                raise ConfigError(
                    f"vault already initialized at {home} (use --force)"
                )
            config = VaultConfig(
                owner=owner,
                token=token,
                server_url=server_url,
                sync_mode=SyncMode(sync_mode),
                key_size=key_size,
            )
            console.print(f"\n  Generating {key_size}-bit RSA key pair...", end=" ")
            pub_path, _ = generate_keypair(home, config, force=force)
            console.print("[green]done[/]")
            save_config(home, config)

            runtime = VaultRuntime(home)
            runtime.store.init_schema()
            fingerprint = key_fingerprint(runtime)

            audit_event(
                home,
                INIT,
                f"Vault initialized for {owner}",
                metadata={"fingerprint": fingerprint},
            )

        console.print(
            Panel(
                f"Owner: [cyan]{owner}[/]\n"
                f"Remote: {server_url or '[dim]not configured[/]'}\n"
                f"Sync mode: [cyan]{sync_mode}[/]\n"
                f"Public key: {pub_path}\n"
                f"Fingerprint: [dim]{fingerprint}[/]",
                title="SKVault initialized",
                border_style="green",
            )
        )

    @main.group()
    def keys():
        """Manage the vault's RSA key pair."""

    @keys.command("generate")
    @click.option("--force", is_flag=True, help="Replace an existing key pair.")
    @click.pass_obj
    def keys_generate(home: Path, force):
        """Generate a new key pair at the configured paths.

        Secrets sealed under a replaced key can no longer be opened.
        """
        with vault_errors():
            runtime = VaultRuntime(home)
            pub_path, priv_path = generate_keypair(home, runtime.config, force=force)
            fingerprint = key_fingerprint(runtime)
            audit_event(
                home,
                KEYGEN,
                f"Key pair generated ({runtime.config.key_size} bits)",
                metadata={"fingerprint": fingerprint, "replaced": force},
            )

        console.print("\n  [green]Key pair written[/]")
        console.print(f"  Public:  {pub_path}")
        console.print(f"  Private: {priv_path} [dim](mode 0600)[/]")
        console.print(f"  Fingerprint: [dim]{fingerprint}[/]\n")

    @keys.command("show")
    @click.pass_obj
    def keys_show(home: Path):
        """Show key file locations and the public key fingerprint."""
        with vault_errors():
            runtime = VaultRuntime(home)
            cryptor = runtime.cryptor()
            fingerprint = key_fingerprint(runtime)
            priv_path = private_key_path(home, runtime.config)

        console.print(
            Panel(
                f"Public key: {public_key_path(home, runtime.config)}\n"
                f"Private key: {priv_path} "
                f"{'[green]present[/]' if cryptor.config.can_decrypt else '[yellow]missing[/]'}\n"
                f"Key size: {cryptor.config.public_key.key_size} bits\n"
                f"Fingerprint: [cyan]{fingerprint}[/]",
                title="Vault keys",
                border_style="cyan",
            )
        )
