"""Tabulous command-line interface module.

Components:
- main: Typer application (``tabulous`` entry point)
"""

from tabulous.cli.main import app

__all__ = ["app"]
