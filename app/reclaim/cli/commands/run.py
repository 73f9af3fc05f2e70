"""Run command for a reclamation pass.

This module provides the `reclaim run` command, which sweeps the
configured cache targets, classifies running processes, and terminates
the candidates.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from reclaim.cli.display import print_run_result, print_sweep_errors
from reclaim.core.config import load_config_or_default
from reclaim.core.errors import ReclaimError
from reclaim.core.lock import FileRunLock
from reclaim.core.orchestrator import run_reclamation
from reclaim.core.paths import get_lock_path
from reclaim.core.state import StateManager
from reclaim.models.run_result import RunResult, RunStatus
from reclaim.utils.formatting import console, print_error, print_info, print_warning

app = typer.Typer(
    name="run",
    help="Sweep caches and terminate idle processes.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Measure and classify without deleting or terminating anything.",
        ),
    ] = False,
    no_processes: Annotated[
        bool,
        typer.Option(
            "--no-processes",
            help="Skip the process phase and only sweep caches.",
        ),
    ] = False,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            min=0.1,
            help="Run timeout in seconds (overrides config).",
        ),
    ] = None,
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
            help="Output the run result as JSON.",
        ),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Exit with code 1 if the run completed with errors.",
        ),
    ] = False,
) -> None:
    """Run one reclamation pass.

    Sweeps every configured cache target and, unless disabled, snapshots
    the running processes, classifies them, and terminates those the
    policy marks as candidates. Only one run may execute at a time.

    Examples:
        reclaim run --dry-run        # Show what would be reclaimed
        reclaim run --no-processes   # Only sweep caches
        reclaim run --timeout 60
        reclaim run --json           # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config_or_default(config_path)
    except ReclaimError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    settings = config.run
    terminate = settings.terminate_processes and not no_processes

    if not json_output and not (ctx.obj or {}).get("quiet"):
        mode = " (dry-run)" if dry_run else ""
        print_info(f"Starting reclamation run{mode}...")

    try:
        result = run_reclamation(
            config.policy,
            config.sweep_targets(),
            timeout if timeout is not None else settings.timeout_seconds,
            lock=FileRunLock(get_lock_path()),
            dry_run=dry_run,
            terminate_processes=terminate,
            max_workers=settings.max_workers,
            observation_seconds=settings.observation_seconds,
            termination_delay_seconds=settings.termination_delay_seconds,
            termination_timeout_seconds=settings.termination_timeout_seconds,
            current_user_only=settings.current_user_only,
        )
    except ReclaimError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    except OSError as e:
        print_error(f"Could not start run: {e}")
        raise typer.Exit(code=1) from e

    _record(result)

    if json_output:
        console.print_json(json.dumps(result.to_dict()))
    else:
        print_run_result(result)
        if ctx.obj and ctx.obj.get("verbose"):
            print_sweep_errors(result)

    if result.status == RunStatus.ABORTED:
        raise typer.Exit(code=1)
    if strict and result.status == RunStatus.COMPLETED_WITH_ERRORS:
        raise typer.Exit(code=1)


def _record(result: RunResult) -> None:
    """Append the run to history; a failure here does not fail the run."""
    try:
        StateManager().record_run(result)
    except (OSError, RuntimeError) as e:
        print_warning(f"Could not record run to history: {e}")
