"""Top-level window discovery.

Maps process ids to the titles of their visible top-level windows so
the snapshot can tell interactive applications apart from background
processes. Uses ``wmctrl -lp``, which works on X11 and on XWayland.
"""

import logging
import subprocess

from reclaim.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class WindowProbe:
    """Lists visible top-level windows by owning pid.

    ``list_windows`` returns None when no window listing is available
    (no ``wmctrl``, no display, or the command failed). Callers must
    then fall back to a conservative heuristic rather than assume that
    no process has a window.
    """

    def is_available(self) -> bool:
        """Check if wmctrl is installed."""
        return command_exists("wmctrl")

    def list_windows(self) -> dict[int, str] | None:
        """Return a mapping of pid to window title.

        When a process owns several windows, the first listed title wins.

        Returns:
            Mapping of pid to title, or None if windows cannot be listed.
        """
        if not self.is_available():
            return None

        try:
            result = run_command(["wmctrl", "-lp"], timeout=5.0)
        except (FileNotFoundError, OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Cannot list windows: %s", e)
            return None

        if not result.success:
            logger.warning("wmctrl failed: %s", result.stderr.strip())
            return None

        return parse_wmctrl_output(result.stdout)


def parse_wmctrl_output(output: str) -> dict[int, str]:
    """Parse ``wmctrl -lp`` output.

    Each line has the form ``<window id> <desktop> <pid> <host> <title>``.
    Lines with pid 0 (windows whose owner is unknown) and malformed lines
    are ignored.

    Args:
        output: Raw stdout from ``wmctrl -lp``.

    Returns:
        Mapping of pid to window title.
    """
    windows: dict[int, str] = {}
    for line in output.splitlines():
        parts = line.split(None, 4)
        if len(parts) < 4:
            continue
        try:
            pid = int(parts[2])
        except ValueError:
            continue
        if pid <= 0:
            continue
        title = parts[4].strip() if len(parts) == 5 else ""
        windows.setdefault(pid, title)
    return windows
