"""
Conflict prompt -- the one place a sync run waits on a human.

Shows both decrypted versions of a conflicting secret side by side and
blocks on a single line of input. Anything but a valid choice ends the
whole run.
"""

from __future__ import annotations

import json
import sys
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ..errors import ConflictAbortError
from ..models import Resolution, Secret

KEEP_LOCAL = "1"
KEEP_REMOTE = "2"


def pretty_plaintext(plaintext: bytes) -> str:
    """Indent JSON payloads; fall back to the raw text."""
    text = plaintext.decode("utf-8", errors="replace")
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


class ConflictPrompt:
    """Blocking text interface for interactive sync.

    Args:
        console: Where notifications and conflicts are printed.
        stream: Where the user's choice is read from. Defaults to stdin.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.console = console or Console()
        self.stream = stream

    def notify(self, message: str) -> None:
        self.console.print(f"  [cyan]{escape(message)}[/]")

    def choose(
        self,
        local: Secret,
        remote: Secret,
        local_plain: bytes,
        remote_plain: bytes,
    ) -> Resolution:
        """Ask which copy of ``local.identity`` survives.

        Returns:
            Resolution.PUSH to keep local, Resolution.KEEP_REMOTE otherwise.

        Raises:
            ConflictAbortError: Input closed or the answer was not a choice.
        """
        self.console.print(
            f"\n  [bold yellow]Conflict for[/] [cyan]{escape(local.label)}[/]"
        )
        self.console.print(
            Panel(
                escape(pretty_plaintext(local_plain)),
                title=f"{KEEP_LOCAL}) Local (updated {local.updated_at.isoformat()})",
                border_style="green",
            )
        )
        self.console.print(
            Panel(
                escape(pretty_plaintext(remote_plain)),
                title=f"{KEEP_REMOTE}) Remote (updated {remote.updated_at.isoformat()})",
                border_style="magenta",
            )
        )
        self.console.print(
            f"  Choose version to keep ({KEEP_LOCAL} - local / {KEEP_REMOTE} - remote): ",
            end="",
        )

        stream = self.stream or sys.stdin
        line = stream.readline()
        if not line:
            raise ConflictAbortError(
                f"input closed while resolving {local.label}"
            )

        choice = line.strip()
        if choice == KEEP_LOCAL:
            return Resolution.PUSH
        if choice == KEEP_REMOTE:
            return Resolution.KEEP_REMOTE
        raise ConflictAbortError(
            f"unsupported choice {choice!r} for {local.label}; "
            f"expected {KEEP_LOCAL} or {KEEP_REMOTE}"
        )
