"""Main Typer application — entry point for the ``callforge`` CLI."""

from __future__ import annotations

import typer

from callforge import __version__
from callforge.cli.raw import raw_cmd

app = typer.Typer(
    name="callforge",
    help="Execute declarative HTTP commands, scenarios and load runs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("raw", help="Send an ad-hoc HTTP request.")(raw_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"callforge {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """CallForge — declarative HTTP command execution and load runs."""
