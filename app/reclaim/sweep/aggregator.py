"""Sweep aggregator.

Walks a list of sweep targets, measures and removes every file found,
and merges the per-target totals. A failure on one file never stops the
sweep of the remaining files, and a failure on one target never affects
another target's outcome.

Accounting is optimistic: a file's size is added to ``bytes_freed``
before its removal is attempted and stays counted if removal fails.
Totals must be reported as potential savings.
"""

import logging
import os
import threading
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from reclaim.models.accumulator import SizeAccumulator, SweepError, merge_all
from reclaim.models.run_result import TargetOutcome, TargetStatus
from reclaim.sweep.protected import is_protected_path
from reclaim.sweep.targets import ExpansionMode, SweepTarget

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[int, TargetOutcome], None]


@dataclass(frozen=True, slots=True)
class SweepReport:
    """Result of sweeping a list of targets.

    Attributes:
        accumulator: Merged totals across all targets.
        outcomes: Per-target outcomes in configuration order.
    """

    accumulator: SizeAccumulator
    outcomes: tuple[TargetOutcome, ...]


@dataclass(slots=True)
class _Tally:
    """Mutable counters for a single target while it is being swept."""

    category: str
    files_removed: int = 0
    bytes_freed: int = 0
    errors: list[SweepError] = field(default_factory=list)

    def add_error(self, path: str, message: str) -> None:
        self.errors.append(SweepError(category=self.category, path=path, message=message))

    def freeze(self) -> SizeAccumulator:
        return SizeAccumulator(
            files_removed=self.files_removed,
            bytes_freed=self.bytes_freed,
            errors=tuple(self.errors),
        )


class SweepAggregator:
    """Executes sweep targets and aggregates their statistics.

    Targets are declared disjoint, so they are swept in parallel on a
    small thread pool. Outcomes are still reported in configuration order
    and the merged totals do not depend on completion order. Duplicate
    targets are not deduplicated: sweeping the same directory twice
    counts it twice.

    Attributes:
        _dry_run: If True, measure files without removing them.
        _max_workers: Size of the worker pool for target-level parallelism.
    """

    def __init__(self, *, dry_run: bool = False, max_workers: int = 4) -> None:
        """Initialize the SweepAggregator.

        Args:
            dry_run: If True, report what would be removed without removing.
            max_workers: Maximum number of targets swept concurrently.

        Raises:
            ValueError: If max_workers is less than 1.
        """
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        self._dry_run = dry_run
        self._max_workers = max_workers

    @property
    def dry_run(self) -> bool:
        """Check if aggregator is in dry-run mode."""
        return self._dry_run

    def sweep(
        self,
        targets: Sequence[SweepTarget],
        *,
        on_outcome: OutcomeCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> SweepReport:
        """Sweep all targets and return merged totals.

        Args:
            targets: Targets in configuration order.
            on_outcome: Called with ``(index, outcome)`` as each target
                finishes, from the worker thread that swept it.
            cancel: When set, in-flight targets stop at the next file and
                report what they reached; targets not yet started finish
                immediately with empty totals.

        Returns:
            SweepReport with merged accumulator and ordered outcomes.
        """
        if not targets:
            return SweepReport(accumulator=SizeAccumulator.empty(), outcomes=())

        cancel = cancel or threading.Event()

        def work(index: int, target: SweepTarget) -> TargetOutcome:
            outcome = self.sweep_target(target, cancel=cancel)
            if on_outcome is not None:
                on_outcome(index, outcome)
            return outcome

        workers = min(self._max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reclaim-sweep") as pool:
            futures = [pool.submit(work, i, t) for i, t in enumerate(targets)]
            outcomes = tuple(f.result() for f in futures)

        return SweepReport(
            accumulator=merge_all(o.accumulator for o in outcomes),
            outcomes=outcomes,
        )

    def sweep_target(
        self,
        target: SweepTarget,
        *,
        cancel: threading.Event | None = None,
    ) -> TargetOutcome:
        """Sweep a single target.

        A target whose root does not exist (or whose glob matches
        nothing) is reported as SKIPPED with zero totals.

        Args:
            target: Target to sweep.
            cancel: Optional event checked between files.

        Returns:
            TargetOutcome for this target.
        """
        roots = target.resolve_roots()
        if not roots:
            logger.debug("Sweep target missing, skipping: %s", target.root_path)
            return TargetOutcome(
                category=target.category,
                root=target.root_path,
                status=TargetStatus.SKIPPED,
            )

        tally = _Tally(category=target.category)
        for directory in self._sweep_directories(target, roots, tally):
            if cancel is not None and cancel.is_set():
                break
            self._sweep_tree(directory, tally, cancel)

        accumulator = tally.freeze()
        status = TargetStatus.PARTIAL_FAILURE if accumulator.has_errors else TargetStatus.SUCCESS
        logger.debug(
            "Swept %s: %d files, %d bytes, %d errors",
            target.root_path,
            accumulator.files_removed,
            accumulator.bytes_freed,
            accumulator.error_count,
        )
        return TargetOutcome(
            category=target.category,
            root=target.root_path,
            status=status,
            failures=accumulator.error_count,
            accumulator=accumulator,
        )

    def _sweep_directories(
        self,
        target: SweepTarget,
        roots: list[Path],
        tally: _Tally,
    ) -> Iterator[Path]:
        """Yield the paths to sweep for a target after profile expansion.

        For PER_SUBDIRECTORY targets each immediate subdirectory of a root
        is a profile; ``<profile>/<suffix>`` is yielded when it exists.
        Profiles without the suffix contribute nothing.
        """
        if target.expansion == ExpansionMode.NONE:
            yield from roots
            return

        suffix = target.relative_suffix or ""
        for root in roots:
            try:
                profiles = sorted(p for p in root.iterdir() if p.is_dir() and not p.is_symlink())
            except OSError as e:
                logger.warning("Cannot list profiles in %s: %s", root, e)
                tally.add_error(str(root), str(e))
                continue

            for profile in profiles:
                nested = profile / suffix
                if nested.exists():
                    yield nested

    def _sweep_tree(
        self,
        path: Path,
        tally: _Tally,
        cancel: threading.Event | None,
    ) -> None:
        """Measure and remove every file under ``path``.

        The top-level path is resolved once: a directory, or a symlink to
        one, is walked; anything else is processed as a single file.
        Symlinks found inside the walk are never followed. Unreadable
        directories are recorded as errors.
        """
        if not path.is_dir():
            self._sweep_file(path, tally)
            return

        def on_walk_error(error: OSError) -> None:
            location = error.filename or str(path)
            logger.warning("Cannot enumerate %s: %s", location, error.strerror or error)
            tally.add_error(str(location), error.strerror or str(error))

        for dirpath, _dirnames, filenames in os.walk(path, onerror=on_walk_error):
            for filename in filenames:
                if cancel is not None and cancel.is_set():
                    return
                self._sweep_file(Path(dirpath) / filename, tally)

    def _sweep_file(self, path: Path, tally: _Tally) -> None:
        """Measure one file, then try to remove it.

        The size is counted before removal is attempted and stays counted
        on failure. Protected paths are recorded as errors and left alone.
        """
        path_str = str(path)
        if is_protected_path(path_str):
            tally.add_error(path_str, "Protected path cannot be removed")
            return

        try:
            size = path.lstat().st_size
        except FileNotFoundError:
            # Vanished between enumeration and measurement
            return
        except OSError as e:
            tally.add_error(path_str, e.strerror or str(e))
            return

        tally.bytes_freed += size

        if self._dry_run:
            tally.files_removed += 1
            return

        try:
            path.unlink()
        except FileNotFoundError:
            # Removed by someone else; the space is gone either way
            tally.files_removed += 1
        except OSError as e:
            logger.debug("Cannot remove %s: %s", path_str, e)
            tally.add_error(path_str, e.strerror or str(e))
        else:
            tally.files_removed += 1
