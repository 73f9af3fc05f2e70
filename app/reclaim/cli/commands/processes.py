"""Processes command for previewing classification.

This module provides the `reclaim processes` command, which captures a
process snapshot and shows the verdict for every row without
terminating anything.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from reclaim.cli.display import print_verdicts
from reclaim.core.config import load_config_or_default
from reclaim.core.errors import ReclaimError
from reclaim.processes.classifier import classify_all
from reclaim.processes.snapshot import ProcessSnapshotter
from reclaim.utils.formatting import console, print_error, print_success

app = typer.Typer(
    name="processes",
    help="Show how running processes would be classified.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def processes(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file.",
        ),
    ] = None,
    candidates_only: Annotated[
        bool,
        typer.Option(
            "--candidates-only",
            help="Only show processes that would be terminated.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Classify running processes without terminating any.

    Examples:
        reclaim processes                    # All processes with verdicts
        reclaim processes --candidates-only  # Only termination candidates
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config_or_default(config_path)
    except ReclaimError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    snapshotter = ProcessSnapshotter(
        observation_seconds=config.run.observation_seconds,
        current_user_only=config.run.current_user_only,
    )
    rows = classify_all(snapshotter.capture(), config.policy)
    if candidates_only:
        rows = [(info, verdict) for info, verdict in rows if verdict.is_candidate]

    if json_output:
        data = [
            {
                "pid": info.pid,
                "name": info.name,
                "working_set_bytes": info.working_set_bytes,
                "cpu_seconds": info.cpu_seconds,
                "age_seconds": info.age_seconds,
                "has_window": info.has_window,
                "verdict": verdict.to_dict(),
            }
            for info, verdict in rows
        ]
        console.print_json(json.dumps(data))
        return

    if not rows:
        print_success("No termination candidates found.")
        return

    print_verdicts(rows)
    candidates = sum(1 for _, verdict in rows if verdict.is_candidate)
    console.print(f"\n[muted]{candidates} of {len(rows)} processes are candidates[/]")
