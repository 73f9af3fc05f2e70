"""Process snapshot capture.

Enumerates running processes once per run with psutil and freezes the
attributes the classifier needs into ProcessInfo rows. CPU activity is
measured over a short observation window: CPU times are sampled twice
and the difference is reported.
"""

import logging
import os
import time
from collections.abc import Callable

import psutil

from reclaim.models.process import ProcessInfo
from reclaim.processes.windows import WindowProbe

logger = logging.getLogger(__name__)

# Environment variables that mark a process as part of a graphical session
_DISPLAY_ENV_VARS: tuple[str, ...] = ("DISPLAY", "WAYLAND_DISPLAY")

_PROCESS_ERRORS = (psutil.NoSuchProcess, psutil.ZombieProcess, psutil.AccessDenied)


def _cpu_total(proc: psutil.Process) -> float:
    """User plus system CPU seconds consumed by a process."""
    times = proc.cpu_times()
    return float(times.user + times.system)


class ProcessSnapshotter:
    """Captures an immutable snapshot of running processes.

    The snapshotter never includes its own process or any of its
    ancestors, and skips kernel threads (processes without a command
    line). By default only processes owned by the invoking user are
    captured, since terminating other users' processes would require
    elevated privileges.

    Window ownership comes from a WindowProbe. When the probe cannot list
    windows, any process whose environment carries a display variable is
    marked as having a window, so the classifier's window veto errs on
    the side of preserving.

    Args:
        observation_seconds: Length of the CPU sampling window. With 0,
            cpu_seconds is the process's lifetime CPU time.
        current_user_only: Only capture processes owned by the current user.
        window_probe: Window lister; defaults to a wmctrl-based probe.
        clock: Source of the snapshot timestamp.
        sleep: Sleep function used for the observation window.
    """

    def __init__(
        self,
        *,
        observation_seconds: float = 1.0,
        current_user_only: bool = True,
        window_probe: WindowProbe | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if observation_seconds < 0:
            msg = f"observation_seconds cannot be negative, got {observation_seconds}"
            raise ValueError(msg)
        self._observation_seconds = observation_seconds
        self._current_user_only = current_user_only
        self._window_probe = window_probe if window_probe is not None else WindowProbe()
        self._clock = clock
        self._sleep = sleep

    def capture(self) -> list[ProcessInfo]:
        """Enumerate processes and return snapshot rows sorted by pid.

        Processes that exit or deny access while being sampled are left
        out of the snapshot.

        Returns:
            List of ProcessInfo rows.
        """
        excluded = self._excluded_pids()
        username = self._current_username() if self._current_user_only else None
        if self._current_user_only and username is None:
            logger.warning("Cannot determine current user; capturing no processes")
            return []

        procs: list[psutil.Process] = []
        baseline: dict[int, float] = {}
        for proc in psutil.process_iter(["pid", "username", "cmdline"]):
            info = proc.info
            if info["pid"] in excluded or not info.get("cmdline"):
                continue
            if username is not None and info.get("username") != username:
                continue
            try:
                baseline[proc.pid] = _cpu_total(proc)
            except _PROCESS_ERRORS:
                continue
            procs.append(proc)

        if self._observation_seconds > 0:
            self._sleep(self._observation_seconds)

        windows = self._window_probe.list_windows()
        if windows is None:
            logger.info("Window listing unavailable; using display environment fallback")

        snapshot_time = self._clock()
        rows: list[ProcessInfo] = []
        for proc in sorted(procs, key=lambda p: p.pid):
            try:
                rows.append(self._build_row(proc, baseline[proc.pid], windows, snapshot_time))
            except _PROCESS_ERRORS:
                logger.debug("Process %d vanished during snapshot", proc.pid)
                continue

        logger.debug("Captured %d processes", len(rows))
        return rows

    def _build_row(
        self,
        proc: psutil.Process,
        cpu_before: float,
        windows: dict[int, str] | None,
        snapshot_time: float,
    ) -> ProcessInfo:
        """Freeze one process into a ProcessInfo row.

        Raises:
            psutil.NoSuchProcess: If the process exited.
            psutil.AccessDenied: If its attributes cannot be read.
        """
        with proc.oneshot():
            cpu_now = _cpu_total(proc)
            cpu_seconds = cpu_now - cpu_before if self._observation_seconds > 0 else cpu_now
            name = proc.name()
            start_time = proc.create_time()
            rss = proc.memory_info().rss
            command_line = " ".join(proc.cmdline())

        if windows is not None:
            has_window = proc.pid in windows
            title = windows.get(proc.pid, "")
        else:
            has_window = self._has_display_env(proc)
            title = ""

        return ProcessInfo(
            pid=proc.pid,
            name=name,
            start_time=start_time,
            cpu_seconds=max(0.0, cpu_seconds),
            working_set_bytes=rss,
            has_window=has_window,
            window_title=title,
            command_line=command_line,
            snapshot_time=snapshot_time,
        )

    @staticmethod
    def _has_display_env(proc: psutil.Process) -> bool:
        """Check if a process runs inside a graphical session.

        Unreadable environments count as graphical.
        """
        try:
            env = proc.environ()
        except (psutil.AccessDenied, psutil.ZombieProcess):
            return True
        return any(var in env for var in _DISPLAY_ENV_VARS)

    @staticmethod
    def _excluded_pids() -> set[int]:
        """Pids that must never appear in the snapshot: self and ancestors."""
        me = psutil.Process(os.getpid())
        excluded = {0, 1, me.pid}
        try:
            excluded.update(p.pid for p in me.parents())
        except _PROCESS_ERRORS:
            logger.warning("Cannot determine parent processes")
        return excluded

    @staticmethod
    def _current_username() -> str | None:
        try:
            return psutil.Process(os.getpid()).username()
        except (psutil.AccessDenied, KeyError):
            return None
