"""Rendering of run results and process verdicts.

The engine returns plain data; this module turns it into Rich tables
for the terminal.
"""

from rich.table import Table

from reclaim.models.process import ClassificationVerdict, ProcessInfo
from reclaim.models.run_result import RunResult, RunStatus, TargetStatus, TerminationOutcome
from reclaim.sweep.targets import SweepTarget
from reclaim.utils.formatting import console, format_size

_TARGET_STATUS_STYLE: dict[TargetStatus, str] = {
    TargetStatus.SUCCESS: "[success]success[/]",
    TargetStatus.PARTIAL_FAILURE: "[warning]partial[/]",
    TargetStatus.SKIPPED: "[muted]skipped[/]",
}

_TERMINATION_STYLE: dict[TerminationOutcome, str] = {
    TerminationOutcome.NOT_ATTEMPTED: "[muted]-[/]",
    TerminationOutcome.TERMINATED: "[success]terminated[/]",
    TerminationOutcome.ALREADY_GONE: "[muted]already gone[/]",
    TerminationOutcome.DENIED: "[error]denied[/]",
    TerminationOutcome.FAILED: "[error]failed[/]",
    TerminationOutcome.DRY_RUN: "[info]dry-run[/]",
    TerminationOutcome.INTERRUPTED: "[warning]interrupted[/]",
}

_RUN_STATUS_STYLE: dict[RunStatus, str] = {
    RunStatus.COMPLETED: "[success]completed[/]",
    RunStatus.COMPLETED_WITH_ERRORS: "[warning]completed with errors[/]",
    RunStatus.ABORTED: "[error]aborted[/]",
}


def format_verdict(verdict: ClassificationVerdict) -> str:
    """Format a verdict with color markup."""
    style = "candidate" if verdict.is_candidate else "preserve"
    return f"[{style}]{verdict.kind.value}[/]"


def print_targets(targets: tuple[SweepTarget, ...] | list[SweepTarget]) -> None:
    """Display configured sweep targets."""
    table = Table(title="Sweep Targets", header_style="header", border_style="border")
    table.add_column("Category", style="bold")
    table.add_column("Root")
    table.add_column("Expansion", style="muted")

    for target in targets:
        expansion = "-"
        if target.relative_suffix:
            expansion = f"each profile/{target.relative_suffix}"
        table.add_row(target.category, target.root_path, expansion)

    console.print(table)


def print_verdicts(
    rows: list[tuple[ProcessInfo, ClassificationVerdict]],
    title: str = "Process Classification",
) -> None:
    """Display classified snapshot rows."""
    table = Table(title=title, header_style="header", border_style="border")
    table.add_column("PID", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Memory", justify="right", style="info")
    table.add_column("CPU s", justify="right")
    table.add_column("Verdict", width=10)
    table.add_column("Reason", style="muted")

    for info, verdict in rows:
        table.add_row(
            str(info.pid),
            info.name,
            format_size(info.working_set_bytes),
            f"{info.cpu_seconds:.2f}",
            format_verdict(verdict),
            f"{verdict.reason} ({verdict.rule})",
        )

    console.print(table)


def print_run_result(result: RunResult, *, show_preserved: bool = False) -> None:
    """Display a run summary: targets, process outcomes, and totals.

    Args:
        result: The run to display.
        show_preserved: Also list processes that were preserved.
    """
    targets = Table(title="Sweep", header_style="header", border_style="border")
    targets.add_column("Category", style="bold")
    targets.add_column("Root")
    targets.add_column("Status", width=10)
    targets.add_column("Files", justify="right")
    targets.add_column("Size", justify="right", style="info")
    targets.add_column("Errors", justify="right")

    for outcome in result.target_outcomes:
        acc = outcome.accumulator
        targets.add_row(
            outcome.category,
            outcome.root,
            _TARGET_STATUS_STYLE[outcome.status],
            str(acc.files_removed),
            format_size(acc.bytes_freed),
            str(outcome.failures) if outcome.failures else "-",
        )
    console.print(targets)

    shown = [
        o
        for o in result.process_outcomes
        if show_preserved or o.termination != TerminationOutcome.NOT_ATTEMPTED
        or o.verdict.is_candidate
    ]
    if shown:
        processes = Table(title="Processes", header_style="header", border_style="border")
        processes.add_column("PID", justify="right")
        processes.add_column("Name", style="bold")
        processes.add_column("Verdict", width=10)
        processes.add_column("Outcome", width=13)
        processes.add_column("Details", style="muted")
        for o in shown:
            processes.add_row(
                str(o.pid),
                o.name,
                format_verdict(o.verdict),
                _TERMINATION_STYLE[o.termination],
                o.error or o.verdict.reason,
            )
        console.print(processes)

    sweep = result.sweep
    label = "Files to remove" if result.dry_run else "Files removed"
    console.print(
        f"\nRun {result.run_id}: {_RUN_STATUS_STYLE[result.status]} "
        f"[muted]({result.duration_seconds:.1f}s)[/]"
    )
    console.print(
        f"  {label}: {sweep.files_removed}  "
        f"Potential savings: [info]{format_size(sweep.bytes_freed)}[/]  "
        f"Sweep errors: {sweep.error_count}"
    )
    console.print(
        f"  Processes examined: {len(result.process_outcomes)}  "
        f"Terminated: {result.terminated_count}  "
        f"Termination errors: {len(result.process_errors)}"
    )
    if result.abort_reason:
        console.print(f"  [error]Aborted:[/] {result.abort_reason}")


def print_sweep_errors(result: RunResult, limit: int = 20) -> None:
    """Display the first sweep errors of a run."""
    errors = result.sweep.errors
    if not errors:
        return
    table = Table(title="Sweep Errors", header_style="header", border_style="border")
    table.add_column("Category", style="bold")
    table.add_column("Path")
    table.add_column("Error", style="error")
    for err in errors[:limit]:
        table.add_row(err.category, err.path, err.message)
    console.print(table)
    if len(errors) > limit:
        console.print(f"[muted](showing {limit} of {len(errors)} errors)[/]")
