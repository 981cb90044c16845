"""Secret commands: add card|text|binary|user, list, show."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape
from rich.table import Table

from ..audit import ADD, audit_event
from ..models import BinaryPayload, Secret, SecretType
from ..runtime import VaultRuntime
from ._common import console, fail, fmt_time, vault_errors

META_OPTION = click.option(
    "--meta", default=None, help="Free-text note stored with the secret."
)


def _saved(home: Path, secret: Secret) -> None:
    audit_event(
        home, ADD, f"Secret {secret.label} saved", metadata={"owner": secret.owner}
    )
    console.print(f"  [green]Saved[/] [cyan]{escape(secret.label)}[/]")


def _secrets_table(secrets: list[Secret], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Created", style="dim")
    table.add_column("Updated")
    for secret in secrets:
        table.add_row(
            escape(secret.name),
            secret.secret_type.value,
            fmt_time(secret.created_at),
            fmt_time(secret.updated_at),
        )
    return table


def register_secrets_commands(main: click.Group) -> None:
    """Register the add group plus list and show."""

    @main.group()
    def add():
        """Encrypt a new secret into the local vault.

        Adding a name that already exists replaces its contents.
        """

    @add.command("card")
    @click.argument("name")
    @click.option("--number", required=True, help="Card number, digits only.")
    @click.option("--holder", required=True, help="Name on the card.")
    @click.option("--expiry", required=True, help="MM/YY or MM/YYYY.")
    @click.option("--cvv", required=True, help="3 or 4 digit security code.")
    @META_OPTION
    @click.pass_obj
    def add_card(home: Path, name, number, holder, expiry, cvv, meta):
        """Store a bank card."""
        with vault_errors():
            service = VaultRuntime(home).service()
            secret = service.add_bank_card(name, number, holder, expiry, cvv, meta)
            _saved(home, secret)

    @add.command("text")
    @click.argument("name")
    @click.option("--content", required=True, help="Text to store.")
    @META_OPTION
    @click.pass_obj
    def add_text(home: Path, name, content, meta):
        """Store a piece of text."""
        with vault_errors():
            service = VaultRuntime(home).service()
            _saved(home, service.add_text(name, content, meta))

    @add.command("binary")
    @click.argument("name")
    @click.option(
        "--file",
        "file_path",
        required=True,
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="File whose bytes are stored.",
    )
    @META_OPTION
    @click.pass_obj
    def add_binary(home: Path, name, file_path: Path, meta):
        """Store the contents of a file."""
        with vault_errors():
            service = VaultRuntime(home).service()
            _saved(home, service.add_binary(name, file_path.read_bytes(), meta))

    @add.command("user")
    @click.argument("name")
    @click.option("--username", required=True)
    @click.option(
        "--password",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Prompted for when omitted.",
    )
    @META_OPTION
    @click.pass_obj
    def add_user(home: Path, name, username, password, meta):
        """Store a username and password."""
        with vault_errors():
            service = VaultRuntime(home).service()
            _saved(home, service.add_user(name, username, password, meta))

    @main.command("list")
    @click.option("--remote", is_flag=True, help="List the remote store instead.")
    @click.option(
        "--type",
        "secret_type",
        type=click.Choice([t.value for t in SecretType]),
        default=None,
        help="Only list secrets of this type.",
    )
    @click.option("--json-out", is_flag=True, help="Output as JSON.")
    @click.pass_obj
    def list_secrets(home: Path, remote, secret_type, json_out):
        """List secrets (names and timestamps only)."""
        with vault_errors():
            runtime = VaultRuntime(home)
            if remote:
                secrets = runtime.remote().list(runtime.config.token)
            else:
                secrets = runtime.store.list(runtime.config.owner)
            if secret_type:
                secrets = [s for s in secrets if s.secret_type.value == secret_type]

        if json_out:
            fields = {"name", "secret_type", "owner", "created_at", "updated_at"}
            click.echo(
                json.dumps(
                    [s.model_dump(mode="json", include=fields) for s in secrets],
                    indent=2,
                )
            )
            return

        if not secrets:
            console.print("\n  [dim]No secrets.[/]\n")
            return
        console.print()
        title = "Remote secrets" if remote else "Local secrets"
        console.print(_secrets_table(secrets, title))
        console.print()

    @main.command()
    @click.argument("name")
    @click.option(
        "--type",
        "secret_type",
        required=True,
        type=click.Choice([t.value for t in SecretType]),
    )
    @click.option(
        "--output",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Write binary contents to this file.",
    )
    @click.pass_obj
    def show(home: Path, name, secret_type, output: Optional[Path]):
        """Decrypt and display one secret."""
        with vault_errors():
            service = VaultRuntime(home).service(require_private=True)
            secret = service.get(name, SecretType(secret_type))
            if secret is None:
                fail(f"no {secret_type} secret named {name!r}")
            payload = service.reveal(secret)

        if isinstance(payload, BinaryPayload) and output is not None:
            output.write_bytes(payload.data)
            console.print(f"  [green]Wrote[/] {len(payload.data)} bytes to {output}")
            return

        table = Table(title=escape(secret.label), show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for field, value in payload.model_dump(mode="json", exclude_none=True).items():
            if isinstance(payload, BinaryPayload) and field == "data":
                value = f"<{len(payload.data)} bytes, use --output>"
            table.add_row(field, escape(str(value)))
        table.add_row("created", fmt_time(secret.created_at))
        table.add_row("updated", fmt_time(secret.updated_at))
        console.print()
        console.print(table)
        console.print()
