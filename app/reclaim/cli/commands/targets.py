"""Targets command for listing sweep targets.

This module provides the `reclaim targets` command.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from reclaim.cli.display import print_targets
from reclaim.core.config import load_config_or_default
from reclaim.core.errors import ReclaimError
from reclaim.utils.formatting import console, print_error

app = typer.Typer(
    name="targets",
    help="List the configured sweep targets.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def targets(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List sweep targets in the order they are processed."""
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config_or_default(config_path)
    except ReclaimError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    sweep_targets = config.sweep_targets()
    if json_output:
        console.print_json(json.dumps([t.to_dict() for t in sweep_targets]))
        return

    print_targets(sweep_targets)
