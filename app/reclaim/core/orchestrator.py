"""Run orchestration.

The orchestrator composes the sweep aggregator, the process snapshot,
the classifier and the terminator into one maintenance run:

    idle -> running -> completed | completed_with_errors | aborted

Entering the running state requires the injected run lock; a second
caller fails immediately instead of queuing. The sweep phase and the
process phase run concurrently and share one wall-clock timeout. When
the timeout expires the run is aborted and in-flight work is asked to
stop at the next item. The lock stays held for a bounded grace period
so items already in progress can report; then everything gathered so
far is returned as a partial RunResult.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from enum import Enum

from reclaim.core.lock import RunLock
from reclaim.models.accumulator import merge_all
from reclaim.models.process import ClassificationVerdict, ProcessInfo
from reclaim.models.run_result import (
    ProcessOutcome,
    RunResult,
    RunStatus,
    TargetOutcome,
    TerminationOutcome,
    new_run_id,
)
from reclaim.processes.classifier import classify_all
from reclaim.processes.policy import PolicyConfig
from reclaim.processes.snapshot import ProcessSnapshotter
from reclaim.processes.terminator import Terminator
from reclaim.sweep.aggregator import SweepAggregator
from reclaim.sweep.targets import SweepTarget

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Lifecycle state of the orchestrator."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    ABORTED = "aborted"


class _RunCollector:
    """Partial results of the in-flight run.

    Filled from worker threads as items finish, so a timed-out run can
    still report everything that completed before the deadline.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._targets: dict[int, TargetOutcome] = {}
        self._classified: list[tuple[ProcessInfo, ClassificationVerdict]] = []
        self._terminations: dict[int, ProcessOutcome] = {}
        self._attempting: set[int] = set()

    def add_target(self, index: int, outcome: TargetOutcome) -> None:
        with self._lock:
            self._targets[index] = outcome

    def set_classified(self, classified: list[tuple[ProcessInfo, ClassificationVerdict]]) -> None:
        with self._lock:
            self._classified = list(classified)

    def mark_attempting(self, info: ProcessInfo, verdict: ClassificationVerdict) -> None:
        with self._lock:
            self._attempting.add(info.pid)

    def add_termination(self, outcome: ProcessOutcome) -> None:
        with self._lock:
            self._terminations[outcome.pid] = outcome
            self._attempting.discard(outcome.pid)

    def target_outcomes(self) -> tuple[TargetOutcome, ...]:
        """Finished target outcomes in configuration order."""
        with self._lock:
            return tuple(self._targets[i] for i in sorted(self._targets))

    def process_outcomes(self) -> tuple[ProcessOutcome, ...]:
        """One outcome per snapshot row, in snapshot order.

        Candidates whose termination was never attempted are reported
        as NOT_ATTEMPTED; those signalled without a known result yet are
        reported as INTERRUPTED.
        """
        with self._lock:
            outcomes: list[ProcessOutcome] = []
            for info, verdict in self._classified:
                attempted = self._terminations.get(info.pid)
                if attempted is not None:
                    outcomes.append(attempted)
                elif info.pid in self._attempting:
                    outcomes.append(
                        ProcessOutcome(
                            pid=info.pid,
                            name=info.name,
                            verdict=verdict,
                            termination=TerminationOutcome.INTERRUPTED,
                            error="Run ended before termination finished",
                        )
                    )
                else:
                    outcomes.append(
                        ProcessOutcome(
                            pid=info.pid,
                            name=info.name,
                            verdict=verdict,
                            termination=TerminationOutcome.NOT_ATTEMPTED,
                        )
                    )
            return tuple(outcomes)


class RunOrchestrator:
    """Sequences one reclamation run under a run lock and a timeout.

    Args:
        lock: Run lock shared by every orchestrator that must be exclusive.
        aggregator: Sweep aggregator for the filesystem phase.
        snapshotter: Process snapshot source for the process phase.
        terminator: Terminator applied to Candidate verdicts.
        grace_seconds: After a timeout, how long to wait for in-flight
            items to finish before the result is collected.
        clock: Source of run start and end timestamps.
    """

    def __init__(
        self,
        *,
        lock: RunLock,
        aggregator: SweepAggregator,
        snapshotter: ProcessSnapshotter,
        terminator: Terminator,
        grace_seconds: float = 5.0,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        if grace_seconds < 0:
            msg = f"grace_seconds must be >= 0, got {grace_seconds}"
            raise ValueError(msg)
        self._grace_seconds = grace_seconds
        self._lock = lock
        self._aggregator = aggregator
        self._snapshotter = snapshotter
        self._terminator = terminator
        self._clock = clock
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        """Current lifecycle state."""
        return self._state

    def run(
        self,
        policy: PolicyConfig,
        targets: Sequence[SweepTarget],
        timeout: float,
        *,
        terminate_processes: bool = True,
    ) -> RunResult:
        """Execute one reclamation run.

        Args:
            policy: Process classification policy.
            targets: Sweep targets in configuration order.
            timeout: Wall-clock limit for the whole run, in seconds.
            terminate_processes: If False, only the sweep phase runs.

        Returns:
            RunResult; partial with status ABORTED if the timeout expired
            or a phase failed.

        Raises:
            RunAlreadyInProgressError: If another run holds the lock.
            ValueError: If timeout is not positive.
        """
        if timeout <= 0:
            msg = f"timeout must be positive, got {timeout}"
            raise ValueError(msg)

        with self._lock.hold():
            self._state = RunState.RUNNING
            try:
                result = self._execute(policy, targets, timeout, terminate_processes)
            except BaseException:
                self._state = RunState.ABORTED
                raise
            self._state = RunState(result.status.value)
            return result

    def _execute(
        self,
        policy: PolicyConfig,
        targets: Sequence[SweepTarget],
        timeout: float,
        terminate_processes: bool,
    ) -> RunResult:
        start_time = self._clock()
        run_id = new_run_id()
        collector = _RunCollector()
        cancel = threading.Event()
        logger.info("Run %s started: %d targets, timeout %gs", run_id, len(targets), timeout)

        abort_reason: str | None = None
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="reclaim-run")
        phases: dict[Future[object], str] = {}
        try:
            phases[
                pool.submit(
                    self._aggregator.sweep,
                    targets,
                    on_outcome=collector.add_target,
                    cancel=cancel,
                )
            ] = "sweep"
            if terminate_processes:
                phases[pool.submit(self._process_phase, policy, collector, cancel)] = "process"
            done, not_done = wait(phases, timeout=timeout)

            if not_done:
                cancel.set()
                abort_reason = f"run timed out after {timeout:g} seconds"
                logger.warning("Run %s %s", run_id, abort_reason)
                # In-flight items stop at their next boundary; let them report first
                finished, not_done = wait(not_done, timeout=self._grace_seconds)
                done |= finished
                if not_done:
                    logger.warning(
                        "Run %s: %s still running after %gs grace period",
                        run_id,
                        ", ".join(sorted(phases[f] for f in not_done)),
                        self._grace_seconds,
                    )
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        for future in done:
            error = future.exception()
            if error is not None:
                cancel.set()
                logger.error("Run %s: %s phase failed", run_id, phases[future], exc_info=error)
                if abort_reason is None:
                    abort_reason = f"{phases[future]} phase failed: {error}"

        target_outcomes = collector.target_outcomes()
        process_outcomes = collector.process_outcomes()
        sweep = merge_all(o.accumulator for o in target_outcomes)

        if abort_reason is not None:
            status = RunStatus.ABORTED
        elif sweep.has_errors or any(o.termination.is_error for o in process_outcomes):
            status = RunStatus.COMPLETED_WITH_ERRORS
        else:
            status = RunStatus.COMPLETED

        result = RunResult(
            run_id=run_id,
            start_time=start_time,
            end_time=max(self._clock(), start_time),
            status=status,
            sweep=sweep,
            target_outcomes=target_outcomes,
            process_outcomes=process_outcomes,
            abort_reason=abort_reason,
            dry_run=self._aggregator.dry_run and self._terminator.dry_run,
        )
        logger.info(
            "Run %s %s: %d files, %d bytes potential, %d processes terminated",
            run_id,
            status.value,
            sweep.files_removed,
            sweep.bytes_freed,
            result.terminated_count,
        )
        return result

    def _process_phase(
        self,
        policy: PolicyConfig,
        collector: _RunCollector,
        cancel: threading.Event,
    ) -> None:
        """Snapshot, classify, and terminate candidates sequentially."""
        snapshot = self._snapshotter.capture()
        classified = classify_all(snapshot, policy)
        collector.set_classified(classified)
        if cancel.is_set():
            return

        candidates = [(info, verdict) for info, verdict in classified if verdict.is_candidate]
        logger.debug("%d of %d processes are termination candidates", len(candidates), len(snapshot))
        self._terminator.terminate(
            candidates,
            on_outcome=collector.add_termination,
            on_attempt=collector.mark_attempting,
            cancel=cancel,
        )


# Default lock for callers of run_reclamation() that do not inject their own
_DEFAULT_LOCK = RunLock()


def run_reclamation(
    config: PolicyConfig,
    targets: Sequence[SweepTarget],
    timeout: float,
    *,
    lock: RunLock | None = None,
    dry_run: bool = False,
    terminate_processes: bool = True,
    max_workers: int = 4,
    observation_seconds: float = 1.0,
    termination_delay_seconds: float = 0.1,
    termination_timeout_seconds: float = 3.0,
    current_user_only: bool = True,
) -> RunResult:
    """Run one reclamation with default collaborators.

    Synchronous from the caller's perspective; fails immediately if a run
    holding the same lock is active.

    Args:
        config: Process classification policy.
        targets: Sweep targets in configuration order.
        timeout: Wall-clock limit for the run, in seconds.
        lock: Run lock; defaults to a lock shared within this process.
        dry_run: Measure and classify without removing or terminating.
        terminate_processes: If False, skip the process phase.
        max_workers: Concurrent sweep targets.
        observation_seconds: CPU observation window for the snapshot.
        termination_delay_seconds: Pause between termination attempts.
        termination_timeout_seconds: Wait for exit after SIGTERM.
        current_user_only: Only consider the current user's processes.

    Returns:
        RunResult of the run (partial if aborted).

    Raises:
        RunAlreadyInProgressError: If another run holds the lock.
    """
    orchestrator = RunOrchestrator(
        lock=lock if lock is not None else _DEFAULT_LOCK,
        aggregator=SweepAggregator(dry_run=dry_run, max_workers=max_workers),
        snapshotter=ProcessSnapshotter(
            observation_seconds=observation_seconds,
            current_user_only=current_user_only,
        ),
        terminator=Terminator(
            dry_run=dry_run,
            delay_seconds=termination_delay_seconds,
            timeout_seconds=termination_timeout_seconds,
        ),
        grace_seconds=termination_timeout_seconds + 1.0,
    )
    return orchestrator.run(config, targets, timeout, terminate_processes=terminate_processes)
