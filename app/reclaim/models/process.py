"""Process snapshot rows and classification verdicts.

This module defines the immutable process record captured once per run
and the verdict the classifier attaches to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class ProcessInfo:
    """Point-in-time record of a running process.

    Captured once per run and never re-queried while a decision is made.
    The capture timestamp travels with the row so that age can be
    computed without reading the clock.

    Attributes:
        pid: Process identifier.
        name: Executable name (e.g., "tracker-miner-fs").
        start_time: Process creation time as a POSIX timestamp.
        cpu_seconds: CPU time accumulated during the observation window.
        working_set_bytes: Resident set size in bytes.
        has_window: Whether the process owns a visible top-level window.
        window_title: Title of the window, empty when there is none.
        command_line: Full command line joined with spaces.
        snapshot_time: POSIX timestamp at which the row was captured.
    """

    pid: int
    name: str
    start_time: float
    cpu_seconds: float
    working_set_bytes: int
    has_window: bool
    window_title: str
    command_line: str
    snapshot_time: float

    def __post_init__(self) -> None:
        """Validate process data after initialization."""
        if self.pid < 0:
            msg = f"pid cannot be negative, got {self.pid}"
            raise ValueError(msg)
        if self.cpu_seconds < 0:
            msg = f"cpu_seconds cannot be negative, got {self.cpu_seconds}"
            raise ValueError(msg)
        if self.working_set_bytes < 0:
            msg = f"working_set_bytes cannot be negative, got {self.working_set_bytes}"
            raise ValueError(msg)

    @property
    def age_seconds(self) -> float:
        """Seconds between process start and snapshot capture."""
        return max(0.0, self.snapshot_time - self.start_time)


class VerdictKind(str, Enum):
    """Outcome of classifying a process.

    Attributes:
        PRESERVE: Process must be left running.
        CANDIDATE: Process is judged safe to terminate.
    """

    PRESERVE = "preserve"
    CANDIDATE = "candidate"


@dataclass(frozen=True, slots=True)
class ClassificationVerdict:
    """Decision for one process, with the rule that produced it.

    Attributes:
        kind: Preserve or Candidate.
        reason: Human-readable reason (e.g., "visible window").
        rule: Name of the deciding rule, for auditing.
    """

    kind: VerdictKind
    reason: str
    rule: str

    def __post_init__(self) -> None:
        """Validate verdict data after initialization."""
        if not self.reason:
            msg = "Verdict reason cannot be empty"
            raise ValueError(msg)
        if not self.rule:
            msg = "Verdict rule cannot be empty"
            raise ValueError(msg)

    @property
    def is_candidate(self) -> bool:
        """Check if the process may be terminated."""
        return self.kind == VerdictKind.CANDIDATE

    @property
    def is_preserve(self) -> bool:
        """Check if the process must be kept."""
        return self.kind == VerdictKind.PRESERVE

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary for JSON storage."""
        return {"kind": self.kind.value, "reason": self.reason, "rule": self.rule}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClassificationVerdict:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If kind is invalid.
        """
        return cls(kind=VerdictKind(data["kind"]), reason=data["reason"], rule=data["rule"])


def preserve(reason: str, rule: str) -> ClassificationVerdict:
    """Create a Preserve verdict."""
    return ClassificationVerdict(kind=VerdictKind.PRESERVE, reason=reason, rule=rule)


def candidate(reason: str, rule: str) -> ClassificationVerdict:
    """Create a Candidate verdict."""
    return ClassificationVerdict(kind=VerdictKind.CANDIDATE, reason=reason, rule=rule)
