"""Config commands.

Provides commands to write a default configuration file and to show the
effective configuration.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from reclaim.core.config import (
    config_to_dict,
    get_default_config,
    load_config_or_default,
    save_config,
)
from reclaim.core.errors import ReclaimError
from reclaim.core.paths import get_config_path
from reclaim.utils.formatting import console, print_error, print_success, print_warning

app = typer.Typer(
    help="Create and inspect the configuration file.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Where to write the config file."),
    ] = None,
) -> None:
    """Write the default configuration to disk."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        print_warning(f"Config already exists: {path}")
        console.print("[muted]Use --force to overwrite.[/]")
        raise typer.Exit(code=1)

    try:
        saved = save_config(get_default_config(), path)
    except ReclaimError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file."),
    ] = None,
) -> None:
    """Print the effective configuration as TOML."""
    try:
        config = load_config_or_default(config_path)
    except ReclaimError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(
        tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False, soft_wrap=True
    )
