"""Unit tests for run locks."""

import fcntl
import os
import threading
from pathlib import Path

import pytest
from reclaim.core.errors import RunAlreadyInProgressError
from reclaim.core.lock import FileRunLock, RunLock


class TestRunLock:
    """Tests for the in-process RunLock."""

    def test_acquire_release(self) -> None:
        """The lock can be taken and released repeatedly."""
        lock = RunLock()
        for _ in range(3):
            lock.acquire()
            assert lock.locked
            lock.release()
            assert not lock.locked

    def test_second_acquire_fails_immediately(self) -> None:
        """A held lock rejects a second caller without blocking."""
        lock = RunLock()
        lock.acquire()
        try:
            with pytest.raises(RunAlreadyInProgressError):
                lock.acquire()
        finally:
            lock.release()

    def test_hold_releases_on_exception(self) -> None:
        """hold() releases the lock when the block raises."""
        lock = RunLock()
        with pytest.raises(RuntimeError), lock.hold():
            raise RuntimeError("boom")
        assert not lock.locked

    def test_contention_from_threads(self) -> None:
        """Exactly one of many concurrent callers gets the lock."""
        lock = RunLock()
        barrier = threading.Barrier(8)
        release = threading.Event()
        winners: list[int] = []
        losers: list[int] = []
        guard = threading.Lock()

        def contender(n: int) -> None:
            barrier.wait()
            try:
                with lock.hold():
                    with guard:
                        winners.append(n)
                    release.wait(timeout=5)
            except RunAlreadyInProgressError:
                with guard:
                    losers.append(n)
                if len(losers) == 7:
                    release.set()

        threads = [threading.Thread(target=contender, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert len(winners) == 1
        assert len(losers) == 7
        assert not lock.locked


class TestFileRunLock:
    """Tests for the cross-process FileRunLock."""

    def test_writes_pid(self, tmp_path: Path) -> None:
        """The lock file records the holder's pid."""
        lock = FileRunLock(tmp_path / "state" / "run.lock")
        with lock.hold():
            assert (tmp_path / "state" / "run.lock").read_text().strip() == str(os.getpid())

    def test_second_instance_rejected(self, tmp_path: Path) -> None:
        """Two lock objects on one file exclude each other."""
        path = tmp_path / "run.lock"
        first, second = FileRunLock(path), FileRunLock(path)
        with first.hold():
            with pytest.raises(RunAlreadyInProgressError, match="already in progress"):
                second.acquire()
            assert not second.locked
        with second.hold():
            assert second.locked

    def test_rejected_when_file_locked_elsewhere(self, tmp_path: Path) -> None:
        """An flock held through another descriptor blocks acquisition."""
        path = tmp_path / "run.lock"
        fd = os.open(path, os.O_RDWR | os.O_CREAT)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            with pytest.raises(RunAlreadyInProgressError):
                FileRunLock(path).acquire()
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

    def test_release_allows_reacquire(self, tmp_path: Path) -> None:
        """A released lock can be taken again by the same object."""
        lock = FileRunLock(tmp_path / "run.lock")
        lock.acquire()
        lock.release()
        lock.acquire()
        assert lock.locked
        lock.release()
