"""CLI application setup using Typer.

Provides the command-line interface for streamchat.
"""

from streamchat.cli.main import app

__all__ = ["app"]
