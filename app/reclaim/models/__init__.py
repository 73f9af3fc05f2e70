"""Data models for reclaim.

This module exports the core data structures shared by the sweep,
process, and orchestration layers.
"""

from reclaim.models.accumulator import SizeAccumulator, SweepError, merge_all
from reclaim.models.process import (
    ClassificationVerdict,
    ProcessInfo,
    VerdictKind,
    candidate,
    preserve,
)
from reclaim.models.run_result import (
    ProcessOutcome,
    RunResult,
    RunStatus,
    TargetOutcome,
    TargetStatus,
    TerminationOutcome,
    new_run_id,
)

__all__ = [
    "ClassificationVerdict",
    "ProcessInfo",
    "ProcessOutcome",
    "RunResult",
    "RunStatus",
    "SizeAccumulator",
    "SweepError",
    "TargetOutcome",
    "TargetStatus",
    "TerminationOutcome",
    "VerdictKind",
    "candidate",
    "merge_all",
    "new_run_id",
    "preserve",
]
