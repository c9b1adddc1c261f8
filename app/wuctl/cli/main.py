"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
import sys
from typing import Annotated

import typer

from wuctl import __version__
from wuctl.cli.commands import config, history, remove, scan

app = typer.Typer(
    name="wuctl",
    help="Inspect and uninstall installed Windows updates.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"wuctl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records to stderr, DEBUG when verbose, otherwise WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """wuctl - Inspect and uninstall installed Windows updates.

    Reads the update history, works out which native tool (DISM,
    PnPUtil or WUSA) can remove each update, and removes the
    selected ones one at a time.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


app.add_typer(scan.app, name="scan")
app.command(name="remove")(remove.remove_updates)
app.add_typer(history.app, name="history")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
