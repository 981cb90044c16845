"""Shared utilities for all CLI command modules.

Provides the Rich console instance, logging setup and the error guard
every command runs its work under.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, NoReturn

from rich.console import Console
from rich.markup import escape

from ..errors import VaultError

console = Console()
logger = logging.getLogger("skvault.cli")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    """Route ``skvault.*`` loggers to stderr: WARNING, or DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/] {escape(message)}")
    sys.exit(1)


@contextmanager
def vault_errors() -> Iterator[None]:
    """Turn any VaultError into a red diagnostic and exit status 1."""
    try:
        yield
    except VaultError as exc:
        logger.debug("Command failed", exc_info=True)
        fail(str(exc))


def fmt_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
