"""History command for viewing past runs.

This module provides the `reclaim history` command for viewing
previously recorded reclamation runs.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from reclaim.core.state import StateManager
from reclaim.models.run_result import RunResult
from reclaim.utils.formatting import console, format_size, print_info

app = typer.Typer(
    name="history",
    help="View history of reclamation runs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Maximum number of runs to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of reclamation runs.

    Examples:
        reclaim history              # Show last 20 runs
        reclaim history -n 50        # Show last 50 runs
        reclaim history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    runs = StateManager().get_history(limit=limit)

    if json_output:
        console.print_json(json.dumps([r.to_dict() for r in runs]))
        return

    if not runs:
        print_info("No runs recorded yet.")
        return

    _print_table(runs)


def _print_table(runs: list[RunResult]) -> None:
    """Display runs as a Rich table."""
    table = Table(title="Run History", header_style="header", border_style="border")
    table.add_column("Run", style="muted", no_wrap=True)
    table.add_column("Started")
    table.add_column("Status")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right", style="info")
    table.add_column("Terminated", justify="right")

    for r in runs:
        status = r.status.value
        if r.dry_run:
            status += " (dry-run)"
        table.add_row(
            r.run_id,
            r.start_time.strftime("%Y-%m-%d %H:%M:%S"),
            status,
            str(r.sweep.files_removed),
            format_size(r.sweep.bytes_freed),
            str(r.terminated_count),
        )

    console.print(table)
