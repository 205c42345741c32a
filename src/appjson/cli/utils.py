"""
CLI utility helpers: engine construction, attempt tokens and error output.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from appjson.core.errors import AppJsonError
from appjson.core.logging import get_logger
from appjson.core.settings import get_settings
from appjson.deploy.paths import AttemptToken
from appjson.deploy.workflow import DeployEngine

console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)

ATTEMPT_HELP = "Attempt token shared by every trigger of one deploy (default: $APPJSON_ATTEMPT_ID, then $DOKKU_PID, then the parent pid)."


# ── Engine helpers ───────────────────────────────────────────────────────


def make_engine() -> DeployEngine:
    """Build the engine from the process-wide settings."""
    return DeployEngine.from_settings(get_settings())


def resolve_token(attempt: str | None) -> AttemptToken:
    """``--attempt`` value, else the configured attempt id, else ``$DOKKU_PID`` or the parent pid."""
    return AttemptToken.resolve(attempt or get_settings().attempt_id)


# ── Error output ─────────────────────────────────────────────────────────


@contextmanager
def handle_errors() -> Iterator[None]:
    """Render engine errors in red on stderr and exit 1."""
    try:
        yield
    except AppJsonError as exc:
        logger.debug("cli.failed", **exc.to_dict())
        err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {escape(exc.message)}")
        raise typer.Exit(code=1) from exc


# ── Output helpers ───────────────────────────────────────────────────────


def print_properties(values: dict[str, str], *, title: str = "") -> None:
    """Render a flat ``key → value`` mapping as a two-column table."""
    table = Table(title=title or None, show_header=False, pad_edge=False)
    table.add_column("key", style="bold")
    table.add_column("value", overflow="fold")
    for key, value in values.items():
        table.add_row(key, value or "[dim]-[/dim]")
    console.print(table)
