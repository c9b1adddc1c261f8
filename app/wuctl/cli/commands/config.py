"""Config command implementation.

Shows and initializes the wuctl configuration file.
"""

import json
from typing import Annotated

import typer

from wuctl.core.config import (
    WuctlConfig,
    WuctlConfigError,
    load_config_or_default,
    save_config,
)
from wuctl.core.paths import get_config_path
from wuctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the configuration file.",
    no_args_is_help=True,
)


@app.command()
def show(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the effective configuration."""
    path = get_config_path()
    try:
        config = load_config_or_default(path)
    except WuctlConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if json_output:
        console.print(
            json.dumps(config.model_dump(), indent=2), markup=False, highlight=False, soft_wrap=True
        )
        return

    source = str(path) if path.exists() else "defaults (no config file)"
    console.print(f"[muted]Source:[/muted] {source}")
    for name, value in config.model_dump().items():
        console.print(f"  [info]{name}[/info] = {value}")


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config file with default values."""
    path = get_config_path()
    if path.exists() and not force:
        print_info(f"Config already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(WuctlConfig(), path)
    except WuctlConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
