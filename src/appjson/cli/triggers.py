"""
CLI: deploy triggers (``appjson post-extract`` ... ``appjson post-deploy``).

Each command is one trigger of a deploy, run as its own process:

    appjson post-extract APP SOURCE_ROOT            stage the document
    appjson core-post-deploy APP                    promote / discard it
    appjson pre-release-builder TYPE APP IMAGE      predeploy script
    appjson post-release-builder TYPE APP IMAGE     release + heroku.postdeploy
    appjson post-deploy APP TAG                     postdeploy script

All of them accept ``--attempt``; every trigger of one deploy must agree
on it.
"""

from __future__ import annotations

from pathlib import Path

import typer

from appjson.cli.utils import ATTEMPT_HELP, console, handle_errors, make_engine, resolve_token
from appjson.core.logging import LogContext
from appjson.deploy.executor import ScriptRun
from appjson.deploy.scripts import TerminalStatus
from appjson.deploy.state import Discarded, Missing, Promoted, Staged


def _report_run(run: ScriptRun) -> None:
    if run.skipped:
        console.print(f"[dim]-----> No {run.phase} task found, skipping[/dim]")
    else:
        console.print(f"[green]-----> {run.phase} task finished[/green] ({run.duration_seconds:.1f}s)")


def post_extract(
    app: str = typer.Argument(..., help="Application name."),
    source_root: Path = typer.Argument(..., help="Directory the artifact was extracted to."),
    source_image: str | None = typer.Option(
        None, "--source-image", help="Read the document from this image instead of the configured one.",
    ),
    attempt: str | None = typer.Option(None, "--attempt", help=ATTEMPT_HELP),
) -> None:
    """Stage the app.json of the extracted artifact for this attempt."""
    with handle_errors():
        token = resolve_token(attempt)
        with LogContext(app=app, attempt=token.value):
            outcome = make_engine().stage(app, source_root, token, source_image)
    match outcome:
        case Staged(path=path):
            console.print(f"[dim]Staged {path.name}[/dim]")
        case Missing():
            console.print("[dim]No app.json found[/dim]")


def core_post_deploy(
    app: str = typer.Argument(..., help="Application name."),
    attempt: str | None = typer.Option(None, "--attempt", help=ATTEMPT_HELP),
) -> None:
    """Promote the document staged by this attempt (or discard the committed one)."""
    with handle_errors():
        token = resolve_token(attempt)
        with LogContext(app=app, attempt=token.value):
            outcome = make_engine().commit(app, token)
    match outcome:
        case Promoted():
            console.print("[dim]app.json committed[/dim]")
        case Discarded(removed_canonical=True):
            console.print("[dim]app.json removed[/dim]")


def pre_release_builder(
    builder_type: str = typer.Argument(..., help="Builder that produced the image."),
    app: str = typer.Argument(..., help="Application name."),
    image: str = typer.Argument(..., help="Image being released."),
    attempt: str | None = typer.Option(None, "--attempt", help=ATTEMPT_HELP),
) -> None:
    """Run the predeploy script inside the new image."""
    with handle_errors():
        token = resolve_token(attempt)
        with LogContext(app=app, attempt=token.value, builder=builder_type):
            run = make_engine().pre_release(app, image, token)
    _report_run(run)


def post_release_builder(
    builder_type: str = typer.Argument(..., help="Builder that produced the image."),
    app: str = typer.Argument(..., help="Application name."),
    image: str = typer.Argument(..., help="Image being released."),
    attempt: str | None = typer.Option(None, "--attempt", help=ATTEMPT_HELP),
) -> None:
    """Run the release script, reconcile scale, then the first-deploy script."""
    with handle_errors():
        token = resolve_token(attempt)
        with LogContext(app=app, attempt=token.value, builder=builder_type):
            result = make_engine().release(app, image, token)
    for run in result.runs:
        _report_run(run)
    if result.terminal is TerminalStatus.SKIPPED_EXECUTED:
        console.print("[dim]-----> heroku.postdeploy already executed, skipping[/dim]")


def post_deploy(
    app: str = typer.Argument(..., help="Application name."),
    tag: str = typer.Argument("latest", help="Image tag that was deployed."),
    attempt: str | None = typer.Option(None, "--attempt", help=ATTEMPT_HELP),
) -> None:
    """Run the postdeploy script for the deployed image."""
    with handle_errors():
        token = resolve_token(attempt)
        with LogContext(app=app, attempt=token.value):
            run = make_engine().post_deploy(app, tag, token)
    _report_run(run)
