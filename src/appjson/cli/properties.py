"""
CLI: document queries and app-json properties.

    appjson get-content APP                     committed document ({} when none)
    appjson parallelism APP PROC_TYPE           deploy parallelism for a process type
    appjson set KEY [VALUE] --app APP|--global  set (or, without VALUE, clear) a property
    appjson report APP [--json] [--key KEY]
"""

from __future__ import annotations

import json

import typer
from rich.markup import escape

from appjson.cli.utils import console, err_console, handle_errors, make_engine, print_properties
from appjson.deploy.paths import NAMESPACE, validate_app_name
from appjson.deploy.properties import SETTABLE_KEYS
from appjson.store.properties import GLOBAL_APP


def get_content(app: str = typer.Argument(..., help="Application name.")) -> None:
    """Print the committed app.json, or {} when there is none."""
    with handle_errors():
        content = make_engine().documents.get_content(app)
    typer.echo(content, nl=False)


def parallelism(
    app: str = typer.Argument(..., help="Application name."),
    process_type: str = typer.Argument(..., help="Process type, e.g. web."),
) -> None:
    """Print how many PROCESS_TYPE processes deploy in parallel."""
    with handle_errors():
        value = make_engine().documents.process_deploy_parallelism(app, process_type)
    typer.echo(str(value))


def set_property(
    key: str = typer.Argument(..., help="Property name."),
    value: str | None = typer.Argument(None, help="New value; omit to clear."),
    app: str | None = typer.Option(None, "--app", "-a", help="Application name."),
    global_: bool = typer.Option(False, "--global", help="Set the value for every app."),
) -> None:
    """Set or clear an app-json property."""
    if key not in SETTABLE_KEYS:
        err_console.print(f"[bold red]Error[/bold red]: invalid key {escape(repr(key))} (expected: {', '.join(sorted(SETTABLE_KEYS))})")
        raise typer.Exit(code=1)
    if global_ == bool(app):
        err_console.print("[bold red]Error[/bold red]: pass exactly one of --app or --global")
        raise typer.Exit(code=1)

    with handle_errors():
        target = GLOBAL_APP if global_ else validate_app_name(app or "")
        store = make_engine().store
        if value:
            store.set(NAMESPACE, target, key, value)
            console.print(f"[green]✓[/green] {key} set for {target}")
        else:
            store.delete(NAMESPACE, target, key)
            console.print(f"[green]✓[/green] {key} cleared for {target}")


def report(
    app: str = typer.Argument(..., help="Application name."),
    key: str | None = typer.Option(None, "--key", "-k", help="Print a single value."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show the app-json properties of APP."""
    with handle_errors():
        values = make_engine().properties.report(validate_app_name(app))

    if key is not None:
        if key not in values:
            err_console.print(f"[bold red]Error[/bold red]: unknown report key {escape(repr(key))}")
            raise typer.Exit(code=1)
        typer.echo(values[key])
        return
    if json_out:
        typer.echo(json.dumps(values, indent=2))
        return
    print_properties(values, title=f"{app} app-json information")
