"""Unit tests for history command.

Tests for the CLI history command implementation.
"""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from reclaim.cli.main import app
from reclaim.core.state import StateManager
from reclaim.models.accumulator import SizeAccumulator
from reclaim.models.run_result import RunResult, RunStatus
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def recorded_runs(isolated_dirs: dict[str, Path]) -> list[RunResult]:
    """Record three runs in the isolated state directory."""
    start = datetime(2026, 2, 1, 10, 0, tzinfo=UTC)
    runs = [
        RunResult(
            run_id=f"run{i:09d}",
            start_time=start + timedelta(hours=i),
            end_time=start + timedelta(hours=i, seconds=5),
            status=RunStatus.COMPLETED,
            sweep=SizeAccumulator(files_removed=i, bytes_freed=i * 1024),
            dry_run=(i == 2),
        )
        for i in range(3)
    ]
    manager = StateManager()
    for run in runs:
        manager.record_run(run)
    return runs


class TestHistoryCommand:
    """Tests for reclaim history command."""

    def test_empty_history(self, isolated_dirs: dict[str, Path]) -> None:
        """No history prints an info message."""
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "No runs recorded yet" in result.stdout

    def test_table(self, recorded_runs: list[RunResult]) -> None:
        """Runs are listed newest first."""
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert result.stdout.index("run000000002") < result.stdout.index("run000000000")
        assert "(dry-run)" in result.stdout

    def test_json_with_limit(self, recorded_runs: list[RunResult]) -> None:
        """--json --limit returns the newest runs as JSON."""
        result = runner.invoke(app, ["history", "--json", "-n", "2"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [r["run_id"] for r in data] == ["run000000002", "run000000001"]
