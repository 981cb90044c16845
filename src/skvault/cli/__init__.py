"""
SKVault CLI -- the personal secret vault command line.

Each command group lives in its own module and is registered on the
main Click group through a ``register_*_commands`` function.

Entry point: skvault.cli:main
"""

from __future__ import annotations

from pathlib import Path

import click

from .. import VAULT_HOME, __version__
from ._common import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="skvault")
@click.option(
    "--home",
    default=VAULT_HOME,
    type=click.Path(file_okay=False),
    help="Vault home directory.",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging to stderr.")
@click.pass_context
def main(ctx: click.Context, home: str, verbose: bool):
    """SKVault -- your secrets, sealed before they move.

    Cards, logins, notes and files, envelope-encrypted at rest and in
    transit.
    """
    configure_logging(verbose)
    ctx.obj = Path(home).expanduser()


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .setup import register_setup_commands
from .secrets_cmd import register_secrets_commands
from .sync_cmd import register_sync_commands
from .audit_cmd import register_audit_commands

register_setup_commands(main)
register_secrets_commands(main)
register_sync_commands(main)
register_audit_commands(main)
