"""Unit tests for SweepAggregator.

Tests for target sweeping, profile expansion, error isolation, and
aggregation across targets.
"""

import threading
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from reclaim.models.run_result import TargetOutcome, TargetStatus
from reclaim.sweep.aggregator import SweepAggregator
from reclaim.sweep.targets import ExpansionMode, SweepTarget

_real_unlink = Path.unlink


def _failing_unlink(*names: str) -> Callable[..., None]:
    """Build an unlink replacement that fails for the given file names."""

    def _unlink(self: Path, missing_ok: bool = False) -> None:
        if self.name in names:
            raise PermissionError(13, "Permission denied", str(self))
        _real_unlink(self, missing_ok=missing_ok)

    return _unlink


class TestSweepAggregatorInit:
    """Tests for SweepAggregator construction."""

    def test_default_not_dry_run(self) -> None:
        """Aggregator removes files by default."""
        assert SweepAggregator().dry_run is False

    def test_invalid_workers_raises(self) -> None:
        """max_workers must be positive."""
        with pytest.raises(ValueError, match="max_workers must be at least 1"):
            SweepAggregator(max_workers=0)


class TestSweepTarget:
    """Tests for sweeping a single target."""

    def test_missing_root_is_skipped(self, tmp_path: Path) -> None:
        """A nonexistent root yields SKIPPED with zero totals."""
        target = SweepTarget(root_path=str(tmp_path / "nope"), category="thumbnails")
        outcome = SweepAggregator().sweep_target(target)

        assert outcome.status == TargetStatus.SKIPPED
        assert outcome.failures == 0
        assert outcome.accumulator.files_removed == 0
        assert outcome.accumulator.bytes_freed == 0

    def test_removes_all_files_recursively(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """Every file under the root is removed and counted."""
        root = tmp_path / "thumbs"
        files = write_files(root, {"a.png": 100, "large/b.png": 200, "x/y/z.png": 50})
        outcome = SweepAggregator().sweep_target(
            SweepTarget(root_path=str(root), category="thumbnails")
        )

        assert outcome.status == TargetStatus.SUCCESS
        assert outcome.accumulator.files_removed == 3
        assert outcome.accumulator.bytes_freed == 350
        assert not any(f.exists() for f in files)
        # Directories stay in place
        assert root.is_dir()

    def test_empty_root_succeeds_with_zero(self, tmp_path: Path) -> None:
        """An existing empty root is a success with zero totals."""
        (tmp_path / "empty").mkdir()
        outcome = SweepAggregator().sweep_target(
            SweepTarget(root_path=str(tmp_path / "empty"), category="trash")
        )
        assert outcome.status == TargetStatus.SUCCESS
        assert outcome.accumulator.files_removed == 0

    def test_dry_run_keeps_files(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """Dry-run measures and counts files but leaves them in place."""
        files = write_files(tmp_path / "c", {"one": 10, "two": 20})
        outcome = SweepAggregator(dry_run=True).sweep_target(
            SweepTarget(root_path=str(tmp_path / "c"), category="cache")
        )

        assert outcome.accumulator.files_removed == 2
        assert outcome.accumulator.bytes_freed == 30
        assert all(f.exists() for f in files)

    def test_partial_failure_continues(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """A file that cannot be removed is recorded; the rest are swept."""
        write_files(tmp_path / "c", {"ok1": 10, "locked": 40, "ok2": 20})

        with patch.object(Path, "unlink", _failing_unlink("locked")):
            outcome = SweepAggregator().sweep_target(
                SweepTarget(root_path=str(tmp_path / "c"), category="cache")
            )

        acc = outcome.accumulator
        assert outcome.status == TargetStatus.PARTIAL_FAILURE
        assert outcome.failures == 1
        assert acc.files_removed == 2
        # Optimistic accounting counts the failed file's bytes too
        assert acc.bytes_freed == 70
        assert acc.errors[0].path == str(tmp_path / "c" / "locked")
        assert acc.errors[0].category == "cache"
        assert (tmp_path / "c" / "locked").exists()
        assert not (tmp_path / "c" / "ok1").exists()

    def test_single_file_root(self, tmp_path: Path) -> None:
        """A root that is a file is measured and removed."""
        path = tmp_path / "core.dump"
        path.write_bytes(b"x" * 64)
        outcome = SweepAggregator().sweep_target(
            SweepTarget(root_path=str(path), category="dumps")
        )
        assert outcome.accumulator.files_removed == 1
        assert outcome.accumulator.bytes_freed == 64
        assert not path.exists()

    def test_symlinks_not_followed(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """Symlinked directories are not descended into."""
        outside = write_files(tmp_path / "outside", {"keep.txt": 100})[0]
        root = tmp_path / "cache"
        root.mkdir()
        (root / "link").symlink_to(tmp_path / "outside", target_is_directory=True)

        SweepAggregator().sweep_target(SweepTarget(root_path=str(root), category="cache"))

        assert outside.exists()

    def test_symlinked_root_is_walked(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """A root that links to a directory sweeps the files behind the link."""
        inner = write_files(tmp_path / "real_cache", {"sub/f": 64})[0]
        link = tmp_path / "cache_link"
        link.symlink_to(tmp_path / "real_cache", target_is_directory=True)

        outcome = SweepAggregator().sweep_target(
            SweepTarget(root_path=str(link), category="cache")
        )

        assert outcome.status == TargetStatus.SUCCESS
        assert outcome.accumulator.files_removed == 1
        assert outcome.accumulator.bytes_freed == 64
        assert link.is_symlink()
        assert not inner.exists()

    def test_protected_files_are_not_removed(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        write_files: Callable[..., list[Path]],
    ) -> None:
        """Files matching a protected pattern are reported and kept."""
        monkeypatch.setenv("HOME", str(tmp_path))
        key = write_files(tmp_path / ".ssh", {"id_ed25519": 400})[0]

        outcome = SweepAggregator().sweep_target(
            SweepTarget(root_path="~/.ssh", category="oops")
        )

        assert key.exists()
        assert outcome.status == TargetStatus.PARTIAL_FAILURE
        assert outcome.accumulator.files_removed == 0
        assert "Protected" in outcome.accumulator.errors[0].message

    def test_cancel_stops_before_next_file(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """A set cancel event stops the sweep at the next file."""
        files = write_files(tmp_path / "c", {f"f{i}": 1 for i in range(5)})
        cancel = threading.Event()
        cancel.set()

        outcome = SweepAggregator().sweep_target(
            SweepTarget(root_path=str(tmp_path / "c"), category="cache"), cancel=cancel
        )

        assert outcome.accumulator.files_removed == 0
        assert all(f.exists() for f in files)


class TestProfileExpansion:
    """Tests for per-subdirectory profile expansion."""

    def test_sweeps_suffix_in_each_profile(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """Only <profile>/<suffix> is swept, in every profile that has it."""
        root = tmp_path / "firefox"
        write_files(
            root,
            {
                "abc.default/cache2/entries/1": 100,
                "abc.default/cache2/entries/2": 100,
                "xyz.work/cache2/entries/3": 50,
                "abc.default/prefs.js": 999,
            },
        )
        (root / "empty.profile").mkdir()

        outcome = SweepAggregator().sweep_target(
            SweepTarget(
                root_path=str(root),
                category="browser-cache",
                expansion=ExpansionMode.PER_SUBDIRECTORY,
                relative_suffix="cache2",
            )
        )

        assert outcome.status == TargetStatus.SUCCESS
        assert outcome.accumulator.files_removed == 3
        assert outcome.accumulator.bytes_freed == 250
        assert (root / "abc.default" / "prefs.js").exists()

    def test_profiles_without_suffix_contribute_nothing(self, tmp_path: Path) -> None:
        """A root whose profiles lack the suffix sweeps nothing."""
        (tmp_path / "chrome" / "Default").mkdir(parents=True)
        outcome = SweepAggregator().sweep_target(
            SweepTarget(
                root_path=str(tmp_path / "chrome"),
                category="browser-cache",
                expansion=ExpansionMode.PER_SUBDIRECTORY,
                relative_suffix="Cache",
            )
        )
        assert outcome.status == TargetStatus.SUCCESS
        assert outcome.accumulator.files_removed == 0


class TestSweepMany:
    """Tests for sweeping a list of targets."""

    def test_no_targets(self) -> None:
        """An empty target list yields an empty report."""
        report = SweepAggregator().sweep([])
        assert report.outcomes == ()
        assert report.accumulator.files_removed == 0

    def test_outcomes_in_configuration_order(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """Outcomes follow target order regardless of completion order."""
        targets = []
        for i in range(6):
            write_files(tmp_path / f"t{i}", {f"f{j}": 10 for j in range(i + 1)})
            targets.append(SweepTarget(root_path=str(tmp_path / f"t{i}"), category=f"c{i}"))
        targets.insert(2, SweepTarget(root_path=str(tmp_path / "missing"), category="gone"))

        report = SweepAggregator(max_workers=3).sweep(targets)

        assert [o.category for o in report.outcomes] == [t.category for t in targets]
        assert report.outcomes[2].status == TargetStatus.SKIPPED
        assert report.accumulator.files_removed == sum(range(1, 7))
        assert report.accumulator.bytes_freed == 10 * sum(range(1, 7))

    def test_failure_in_one_target_does_not_affect_another(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """Errors stay attributed to the target that hit them."""
        write_files(tmp_path / "a", {"locked": 5, "fine": 5})
        write_files(tmp_path / "b", {"other": 7})
        targets = [
            SweepTarget(root_path=str(tmp_path / "a"), category="a"),
            SweepTarget(root_path=str(tmp_path / "b"), category="b"),
        ]

        with patch.object(Path, "unlink", _failing_unlink("locked")):
            report = SweepAggregator().sweep(targets)

        assert report.outcomes[0].status == TargetStatus.PARTIAL_FAILURE
        assert report.outcomes[1].status == TargetStatus.SUCCESS
        assert report.accumulator.files_removed == 2
        assert report.accumulator.error_count == 1

    def test_duplicate_targets_double_count(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """The same directory listed twice is measured twice in dry-run."""
        write_files(tmp_path / "dup", {"a": 100})
        target = SweepTarget(root_path=str(tmp_path / "dup"), category="dup")

        report = SweepAggregator(dry_run=True, max_workers=1).sweep([target, target])

        assert report.accumulator.bytes_freed == 200
        assert report.accumulator.files_removed == 2

    def test_on_outcome_called_per_target(
        self, tmp_path: Path, write_files: Callable[..., list[Path]]
    ) -> None:
        """on_outcome receives each target's index and outcome."""
        write_files(tmp_path / "x", {"f": 1})
        seen: dict[int, TargetOutcome] = {}
        lock = threading.Lock()

        def record(index: int, outcome: TargetOutcome) -> None:
            with lock:
                seen[index] = outcome

        targets = [
            SweepTarget(root_path=str(tmp_path / "x"), category="x"),
            SweepTarget(root_path=str(tmp_path / "y"), category="y"),
        ]
        SweepAggregator().sweep(targets, on_outcome=record)

        assert sorted(seen) == [0, 1]
        assert seen[1].status == TargetStatus.SKIPPED

    def test_glob_target_sweeps_each_match(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        write_files: Callable[..., list[Path]],
    ) -> None:
        """A glob root sweeps every matching directory."""
        monkeypatch.setenv("HOME", str(tmp_path))
        write_files(tmp_path / ".config" / "Code" / "GPUCache", {"data_0": 30})
        write_files(tmp_path / ".config" / "Slack" / "GPUCache", {"data_0": 20})

        report = SweepAggregator().sweep(
            [SweepTarget(root_path="~/.config/*/GPUCache", category="gpu-cache")]
        )

        assert report.outcomes[0].status == TargetStatus.SUCCESS
        assert report.accumulator.files_removed == 2
        assert report.accumulator.bytes_freed == 50
