"""Main Typer application, entry point for the ``stresstester`` CLI."""

from __future__ import annotations

import typer

from stresstester import __version__
from stresstester.cli.run import run_cmd

app = typer.Typer(
    name="stresstester",
    help="Fire concurrent HTTP requests at a URL and report the results.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Run a stress test against a URL.")(run_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"stresstester {__version__}")
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
    """stresstester: concurrent HTTP load generator."""
