"""Run history persistence.

This module provides the StateManager class, which records finished
RunResults in a JSONL file so that past runs can be listed and audited.
"""

import json
import logging
from pathlib import Path

from reclaim.core.paths import ensure_state_dir, get_state_dir
from reclaim.models.run_result import RunResult

logger = logging.getLogger(__name__)


class StateManager:
    """Manages run history in a JSONL file.

    Storage location: ~/.local/state/reclaim/history.jsonl

    Each line is a complete JSON object representing one RunResult.
    This format allows efficient append-only writes and easy parsing.

    Attributes:
        state_dir: Directory containing the history file.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/reclaim
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to history.jsonl file."""
        return self._state_dir / self.HISTORY_FILENAME

    def record_run(self, result: RunResult) -> None:
        """Append a run result to the history file.

        Creates the file and parent directories if they don't exist.

        Args:
            result: The finished run to record.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        if self._state_dir == get_state_dir():
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(result.to_json_line() + "\n")
            f.flush()

    def get_history(self, limit: int | None = None) -> list[RunResult]:
        """Read run history, newest first.

        Corrupt lines are skipped with a warning.

        Args:
            limit: Maximum number of runs to return (None for all).

        Returns:
            List of RunResult, newest first.
        """
        if not self.history_path.exists():
            return []

        results: list[RunResult] = []
        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    results.append(RunResult.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
                    logger.warning(
                        "Skipping corrupt history line %d in %s: %s",
                        line_num,
                        self.history_path,
                        e,
                    )

        results.reverse()
        if limit is not None:
            return results[:limit]
        return results

    def get_last_run(self) -> RunResult | None:
        """Return the most recent run, or None if there is no history."""
        history = self.get_history(limit=1)
        return history[0] if history else None
