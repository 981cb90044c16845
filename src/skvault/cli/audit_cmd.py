"""Audit command: show the vault's audit trail."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from ..audit import read_audit_log
from ._common import console


def register_audit_commands(main: click.Group) -> None:
    """Register the audit command."""

    @main.command()
    @click.option(
        "--limit", default=20, show_default=True, help="Newest N entries (0 = all)."
    )
    @click.pass_obj
    def audit(home: Path, limit):
        """Show recent vault events."""
        entries = read_audit_log(home, limit=limit)
        if not entries:
            console.print("\n  [dim]Audit log is empty.[/]\n")
            return

        table = Table(title="Audit log")
        table.add_column("Time", style="dim")
        table.add_column("Event", style="cyan")
        table.add_column("Detail")
        for entry in entries:
            table.add_row(entry.when, entry.event_type, escape(entry.detail))
        console.print()
        console.print(table)
        console.print()
