"""
CLI layer for appjson.

Provides a Typer application whose commands are the deploy and app
lifecycle triggers. All engine logic lives in :mod:`appjson.deploy`;
this package handles only argument parsing and terminal output.

Entry point::

    appjson --help
"""

from appjson.cli.app import app

__all__ = ["app"]
