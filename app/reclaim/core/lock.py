"""Run locks.

A run lock guarantees that at most one reclamation run executes at a
time. Acquisition never blocks: a second caller fails immediately with
RunAlreadyInProgressError and decides for itself whether to retry.

Two implementations are provided. RunLock guards runs inside a single
process; FileRunLock uses an advisory ``flock`` on a lock file so that
separate reclaim processes (for example, a scheduled run and a manual
one) exclude each other as well.
"""

import fcntl
import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from reclaim.core.errors import RunAlreadyInProgressError

logger = logging.getLogger(__name__)


class RunLock:
    """In-process, non-blocking run lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        """Check if a run currently holds the lock."""
        return self._lock.locked()

    def acquire(self) -> None:
        """Take the lock without waiting.

        Raises:
            RunAlreadyInProgressError: If the lock is already held.
        """
        if not self._lock.acquire(blocking=False):
            raise RunAlreadyInProgressError("A reclamation run is already in progress")

    def release(self) -> None:
        """Release the lock."""
        self._lock.release()

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Hold the lock for the duration of a ``with`` block.

        The lock is released on every exit path, including exceptions.

        Raises:
            RunAlreadyInProgressError: If the lock is already held.
        """
        self.acquire()
        try:
            yield
        finally:
            self.release()


class FileRunLock(RunLock):
    """Cross-process run lock backed by ``flock`` on a lock file.

    The in-process lock is taken first so that threads of the same
    process are excluded without touching the file.

    Args:
        path: Lock file location; parent directories are created on acquire.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path
        self._fd: int | None = None

    @property
    def path(self) -> Path:
        """Lock file location."""
        return self._path

    def acquire(self) -> None:
        """Take the lock without waiting.

        Raises:
            RunAlreadyInProgressError: If another thread or process holds the lock.
            OSError: If the lock file cannot be opened.
        """
        super().acquire()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError:
            super().release()
            raise

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            os.close(fd)
            super().release()
            raise RunAlreadyInProgressError(
                f"A reclamation run is already in progress (lock: {self._path})"
            ) from e
        except OSError:
            os.close(fd)
            super().release()
            raise

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        logger.debug("Acquired run lock %s", self._path)

    def release(self) -> None:
        """Release the lock and close the lock file."""
        fd, self._fd = self._fd, None
        try:
            if fd is not None:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)
        finally:
            super().release()
