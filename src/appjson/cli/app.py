"""
Root Typer application for the appjson CLI.

Every deploy and app lifecycle trigger is a top-level command; the
command functions live in :mod:`appjson.cli.triggers`,
:mod:`appjson.cli.apps` and :mod:`appjson.cli.properties`.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError
from rich.markup import escape
from typer import Typer

from appjson.cli import apps, properties, triggers
from appjson.cli.utils import err_console
from appjson.core.logging import configure_logging
from appjson.core.settings import get_settings

app = Typer(
    name="appjson",
    help="appjson: staged app.json resolution and lifecycle scripts for deploys.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("appjson-core")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"appjson {v}")
        raise typer.Exit()


_LOG_FORMATS = {"json": True, "console": False, "auto": None}


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """appjson CLI: stage, commit and run app.json lifecycle scripts."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        err_console.print(f"[bold red]Error[/bold red] (CONFIG): invalid settings: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    level = "DEBUG" if verbose or settings.debug else settings.log_level
    configure_logging(level=level, json_format=_LOG_FORMATS[settings.log_format])


# ── Command registration ─────────────────────────────────────────────────

app.command("install")(apps.install)
app.command("post-create")(apps.post_create)
app.command("clone-setup")(apps.clone_setup)
app.command("rename-setup")(apps.rename_setup)
app.command("post-rename")(apps.post_rename)
app.command("post-delete")(apps.post_delete)

app.command("post-extract")(triggers.post_extract)
app.command("core-post-deploy")(triggers.core_post_deploy)
app.command("pre-release-builder")(triggers.pre_release_builder)
app.command("post-release-builder")(triggers.post_release_builder)
app.command("post-deploy")(triggers.post_deploy)

app.command("get-content")(properties.get_content)
app.command("parallelism")(properties.parallelism)
app.command("set")(properties.set_property)
app.command("report")(properties.report)
