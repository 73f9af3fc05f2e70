"""Run result models.

This module defines the structured output of one reclamation run:
per-target sweep outcomes, per-process termination outcomes, and the
overall run status. A RunResult is immutable once built and carries no
presentation formatting, so it can be handed to any logging or
notification collaborator as-is.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from reclaim.models.accumulator import SizeAccumulator
from reclaim.models.process import ClassificationVerdict


class TargetStatus(str, Enum):
    """Outcome of sweeping one target.

    Attributes:
        SUCCESS: Every enumerated file was processed without error.
        PARTIAL_FAILURE: Some files or directories could not be processed.
        SKIPPED: Root path did not exist; nothing was swept.
    """

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class TargetOutcome:
    """Per-target sweep outcome.

    Attributes:
        category: Category label of the sweep target.
        root: Root path (or glob) as configured.
        status: Success, partial failure, or skipped.
        failures: Number of errors recorded for this target.
        accumulator: Totals contributed by this target.
    """

    category: str
    root: str
    status: TargetStatus
    failures: int = 0
    accumulator: SizeAccumulator = SizeAccumulator()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "category": self.category,
            "root": self.root,
            "status": self.status.value,
            "failures": self.failures,
            "accumulator": self.accumulator.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetOutcome:
        """Deserialize from dictionary."""
        return cls(
            category=data["category"],
            root=data["root"],
            status=TargetStatus(data["status"]),
            failures=data.get("failures", 0),
            accumulator=SizeAccumulator.from_dict(data["accumulator"]),
        )


class TerminationOutcome(str, Enum):
    """What happened when a process was (or was not) terminated.

    Attributes:
        NOT_ATTEMPTED: Process was preserved, or the run ended first.
        TERMINATED: Process exited after the termination signal.
        ALREADY_GONE: Process had exited (or its pid was reused) before the attempt.
        DENIED: The OS refused the signal (permission or protected process).
        FAILED: Signal was sent but the process did not exit, or another error occurred.
        DRY_RUN: Termination was simulated.
        INTERRUPTED: Signal was sent but the run ended before the result was known.
    """

    NOT_ATTEMPTED = "not_attempted"
    TERMINATED = "terminated"
    ALREADY_GONE = "already_gone"
    DENIED = "denied"
    FAILED = "failed"
    DRY_RUN = "dry_run"
    INTERRUPTED = "interrupted"

    @property
    def is_error(self) -> bool:
        """Check if this outcome counts as a process error."""
        return self in (
            TerminationOutcome.DENIED,
            TerminationOutcome.FAILED,
            TerminationOutcome.INTERRUPTED,
        )


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """Audit record for one process in a run.

    Attributes:
        pid: Process identifier from the snapshot.
        name: Executable name from the snapshot.
        verdict: Classifier decision, including the deciding rule.
        termination: Termination outcome.
        error: Error message for denied or failed terminations.
    """

    pid: int
    name: str
    verdict: ClassificationVerdict
    termination: TerminationOutcome = TerminationOutcome.NOT_ATTEMPTED
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "pid": self.pid,
            "name": self.name,
            "verdict": self.verdict.to_dict(),
            "termination": self.termination.value,
        }
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProcessOutcome:
        """Deserialize from dictionary."""
        return cls(
            pid=data["pid"],
            name=data["name"],
            verdict=ClassificationVerdict.from_dict(data["verdict"]),
            termination=TerminationOutcome(data["termination"]),
            error=data.get("error"),
        )


class RunStatus(str, Enum):
    """Final status of a reclamation run.

    Attributes:
        COMPLETED: Both phases finished without any error.
        COMPLETED_WITH_ERRORS: Both phases finished; some items failed.
        ABORTED: The run timed out or a phase failed; results are partial.
    """

    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class RunResult:
    """Structured summary of one reclamation run.

    Attributes:
        run_id: Unique identifier (12-character hex string from UUID).
        start_time: When the run entered the running state.
        end_time: When the run left the running state.
        status: Completed, completed with errors, or aborted.
        sweep: Merged sweep totals (bytes are potential savings).
        target_outcomes: Per-target outcomes in configuration order.
        process_outcomes: Per-process outcomes in snapshot order.
        abort_reason: Why the run was aborted, None otherwise.
        dry_run: Whether nothing was actually removed or terminated.
    """

    run_id: str
    start_time: datetime
    end_time: datetime
    status: RunStatus
    sweep: SizeAccumulator
    target_outcomes: tuple[TargetOutcome, ...] = ()
    process_outcomes: tuple[ProcessOutcome, ...] = ()
    abort_reason: str | None = None
    dry_run: bool = False

    def __post_init__(self) -> None:
        """Validate run data after initialization."""
        if not self.run_id:
            msg = "Run ID cannot be empty"
            raise ValueError(msg)
        if self.end_time < self.start_time:
            msg = "Run end_time cannot precede start_time"
            raise ValueError(msg)

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration of the run."""
        return (self.end_time - self.start_time).total_seconds()

    @property
    def terminated_count(self) -> int:
        """Number of processes actually terminated."""
        return sum(
            1 for o in self.process_outcomes if o.termination == TerminationOutcome.TERMINATED
        )

    @property
    def process_errors(self) -> tuple[ProcessOutcome, ...]:
        """Outcomes that count as termination failures."""
        return tuple(o for o in self.process_outcomes if o.termination.is_error)

    @property
    def has_errors(self) -> bool:
        """Check if either phase recorded an error."""
        return self.sweep.has_errors or bool(self.process_errors)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "run_id": self.run_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "status": self.status.value,
            "dry_run": self.dry_run,
            "sweep": self.sweep.to_dict(),
            "target_outcomes": [t.to_dict() for t in self.target_outcomes],
            "process_outcomes": [p.to_dict() for p in self.process_outcomes],
        }
        if self.abort_reason is not None:
            result["abort_reason"] = self.abort_reason
        return result

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunResult:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If an enum value or timestamp is invalid.
        """
        return cls(
            run_id=data["run_id"],
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(data["end_time"]),
            status=RunStatus(data["status"]),
            sweep=SizeAccumulator.from_dict(data["sweep"]),
            target_outcomes=tuple(
                TargetOutcome.from_dict(t) for t in data.get("target_outcomes", [])
            ),
            process_outcomes=tuple(
                ProcessOutcome.from_dict(p) for p in data.get("process_outcomes", [])
            ),
            abort_reason=data.get("abort_reason"),
            dry_run=data.get("dry_run", False),
        )

    @classmethod
    def from_json_line(cls, line: str) -> RunResult:
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If the line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If field values are invalid.
        """
        return cls.from_dict(json.loads(line))


def new_run_id() -> str:
    """Generate a unique run identifier."""
    return uuid.uuid4().hex[:12]
