"""
CLI: app lifecycle triggers.

    appjson install
    appjson post-create APP
    appjson clone-setup OLD NEW
    appjson rename-setup OLD NEW
    appjson post-rename OLD NEW
    appjson post-delete APP
"""

from __future__ import annotations

import typer

from appjson.cli.utils import handle_errors, make_engine


def install() -> None:
    """Set up the app-json property namespace and data root."""
    with handle_errors():
        make_engine().lifecycle.install()


def post_create(app: str = typer.Argument(..., help="Application name.")) -> None:
    """Create the data directory of a new app."""
    with handle_errors():
        make_engine().lifecycle.post_create(app)


def clone_setup(
    old_app: str = typer.Argument(..., help="App being cloned."),
    new_app: str = typer.Argument(..., help="Name of the clone."),
) -> None:
    """Copy properties and data of OLD_APP to NEW_APP."""
    with handle_errors():
        make_engine().lifecycle.clone_setup(old_app, new_app)


def rename_setup(
    old_app: str = typer.Argument(..., help="Current app name."),
    new_app: str = typer.Argument(..., help="New app name."),
) -> None:
    """Move properties to NEW_APP and copy its data."""
    with handle_errors():
        make_engine().lifecycle.rename_setup(old_app, new_app)


def post_rename(
    old_app: str = typer.Argument(..., help="Previous app name."),
    new_app: str = typer.Argument(..., help="New app name."),
) -> None:
    """Migrate the data directory to NEW_APP."""
    with handle_errors():
        make_engine().lifecycle.post_rename(old_app, new_app)


def post_delete(app: str = typer.Argument(..., help="Application name.")) -> None:
    """Remove the data directory and properties of a deleted app."""
    with handle_errors():
        make_engine().lifecycle.post_delete(app)
