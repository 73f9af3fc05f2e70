"""Process terminator.

Applies Candidate verdicts by sending SIGTERM to each process in turn.
Every attempt is preceded by a liveness check against the snapshot, so
a process that exited on its own, or whose pid was reused, is recorded
as already gone instead of being signalled. Failures are recorded per
pid and never stop the rest of the batch.
"""

import logging
import threading
from collections.abc import Callable, Sequence

import psutil

from reclaim.models.process import ClassificationVerdict, ProcessInfo
from reclaim.models.run_result import ProcessOutcome, TerminationOutcome

logger = logging.getLogger(__name__)

# Tolerance when comparing psutil create_time against the snapshot
_START_TIME_TOLERANCE = 1.0

OutcomeCallback = Callable[[ProcessOutcome], None]
AttemptCallback = Callable[[ProcessInfo, ClassificationVerdict], None]


class Terminator:
    """Terminates candidate processes sequentially.

    A short delay between attempts keeps the termination of many
    processes from turning into a contention storm; it is a tunable,
    not a correctness requirement.

    Attributes:
        _dry_run: If True, record what would be terminated without signalling.
        _delay_seconds: Pause between two consecutive attempts.
        _timeout_seconds: How long to wait for a signalled process to exit.
    """

    def __init__(
        self,
        *,
        dry_run: bool = False,
        delay_seconds: float = 0.1,
        timeout_seconds: float = 3.0,
    ) -> None:
        """Initialize the Terminator.

        Args:
            dry_run: If True, report what would be terminated without doing it.
            delay_seconds: Pause between consecutive termination attempts.
            timeout_seconds: Per-process wait for exit after SIGTERM.
        """
        if delay_seconds < 0 or timeout_seconds <= 0:
            msg = "delay_seconds must be >= 0 and timeout_seconds must be > 0"
            raise ValueError(msg)
        self._dry_run = dry_run
        self._delay_seconds = delay_seconds
        self._timeout_seconds = timeout_seconds

    @property
    def dry_run(self) -> bool:
        """Check if terminator is in dry-run mode."""
        return self._dry_run

    def terminate(
        self,
        candidates: Sequence[tuple[ProcessInfo, ClassificationVerdict]],
        *,
        on_outcome: OutcomeCallback | None = None,
        on_attempt: AttemptCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> list[ProcessOutcome]:
        """Terminate candidate processes in order.

        Args:
            candidates: Snapshot rows with their Candidate verdicts.
            on_outcome: Called with each outcome as soon as it is known.
            on_attempt: Called right before a process is signalled.
            cancel: When set, stops before the next attempt; remaining
                candidates get no outcome.

        Returns:
            One ProcessOutcome per attempted candidate, in input order.

        Raises:
            ValueError: If a verdict is not a Candidate.
        """
        cancel = cancel or threading.Event()
        outcomes: list[ProcessOutcome] = []

        for index, (info, verdict) in enumerate(candidates):
            if not verdict.is_candidate:
                msg = f"Process {info.pid} ({info.name}) is not a termination candidate"
                raise ValueError(msg)

            if cancel.is_set():
                break

            # Pause between attempts; returns early when the run is cancelled
            pause = self._delay_seconds if index > 0 and not self._dry_run else 0
            if pause and cancel.wait(pause):
                break

            if on_attempt is not None and not self._dry_run:
                on_attempt(info, verdict)
            outcome = self.terminate_one(info, verdict)
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        return outcomes

    def terminate_one(self, info: ProcessInfo, verdict: ClassificationVerdict) -> ProcessOutcome:
        """Terminate a single process.

        Args:
            info: Snapshot row of the process.
            verdict: Candidate verdict that justified termination.

        Returns:
            ProcessOutcome with the termination result.
        """

        def outcome(result: TerminationOutcome, error: str | None = None) -> ProcessOutcome:
            return ProcessOutcome(
                pid=info.pid,
                name=info.name,
                verdict=verdict,
                termination=result,
                error=error,
            )

        try:
            proc = psutil.Process(info.pid)
            if not self._is_same_process(proc, info):
                logger.debug("Pid %d was reused since the snapshot", info.pid)
                return outcome(TerminationOutcome.ALREADY_GONE)

            if self._dry_run:
                logger.info("Dry-run: would terminate %s (pid %d)", info.name, info.pid)
                return outcome(TerminationOutcome.DRY_RUN)

            proc.terminate()
            proc.wait(timeout=self._timeout_seconds)
        except psutil.NoSuchProcess:
            return outcome(TerminationOutcome.ALREADY_GONE)
        except psutil.AccessDenied as e:
            logger.warning("Termination of %s (pid %d) denied", info.name, info.pid)
            return outcome(TerminationOutcome.DENIED, str(e) or "Access denied")
        except psutil.TimeoutExpired:
            logger.warning("%s (pid %d) did not exit after SIGTERM", info.name, info.pid)
            return outcome(
                TerminationOutcome.FAILED,
                f"Process did not exit within {self._timeout_seconds:g}s",
            )
        except OSError as e:
            logger.warning("Cannot terminate %s (pid %d): %s", info.name, info.pid, e)
            return outcome(TerminationOutcome.FAILED, str(e))

        logger.info("Terminated %s (pid %d): %s", info.name, info.pid, verdict.reason)
        return outcome(TerminationOutcome.TERMINATED)

    @staticmethod
    def _is_same_process(proc: psutil.Process, info: ProcessInfo) -> bool:
        """Check that a live pid still belongs to the snapshotted process.

        Raises:
            psutil.NoSuchProcess: If the process has exited.
        """
        if proc.status() == psutil.STATUS_ZOMBIE:
            return False
        return abs(proc.create_time() - info.start_time) <= _START_TIME_TOLERANCE
