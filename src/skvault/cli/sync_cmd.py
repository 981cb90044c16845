"""Sync command: mirror local secrets to the remote store."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape
from rich.panel import Panel

from ..audit import SYNC, SYNC_ABORT, audit_event
from ..errors import VaultError
from ..models import SyncMode
from ..runtime import VaultRuntime
from ..sync import ConflictPrompt
from ._common import console, fail


def register_sync_commands(main: click.Group) -> None:
    """Register the sync command."""

    @main.command()
    @click.option(
        "--mode",
        type=click.Choice([m.value for m in SyncMode]),
        default=None,
        help="Override the configured sync mode.",
    )
    @click.option("--server-url", default=None, help="Override the configured remote.")
    @click.option("--token", default=None, help="Override the configured token.")
    @click.pass_obj
    def sync(home: Path, mode, server_url, token):
        """Push local secrets to the remote store.

        \b
        push         upload when the remote copy is missing or older
        passive      do nothing
        interactive  upload missing/older copies, ask on every other one
        """
        try:
            runtime = VaultRuntime(home)
            mode = SyncMode(mode) if mode else runtime.config.sync_mode
            report = runtime.sync(
                mode=mode,
                server_url=server_url,
                token=token,
                prompt=ConflictPrompt(console=console),
            )
        except VaultError as exc:
            audit_event(home, SYNC_ABORT, str(exc))
            fail(str(exc))
        except KeyboardInterrupt:
            audit_event(home, SYNC_ABORT, "interrupted by user")
            raise

        audit_event(
            home,
            SYNC,
            f"Sync ({report.mode.value}): {len(report.pushed)} pushed",
            metadata=report.model_dump(mode="json"),
        )

        if mode is SyncMode.PASSIVE:
            console.print("\n  [dim]Passive mode: nothing to do.[/]\n")
            return

        pushed = "\n".join(f"    {escape(label)}" for label in report.pushed)
        console.print()
        console.print(
            Panel(
                f"Mode: [cyan]{report.mode.value}[/]\n"
                f"Pushed: [green]{len(report.pushed)}[/]\n"
                f"Skipped (remote up to date): {len(report.skipped)}\n"
                f"Kept remote: {len(report.kept_remote)}"
                + (f"\n{pushed}" if pushed else ""),
                title="Sync complete",
                border_style="magenta",
            )
        )
        console.print()
