"""Helpers for running desktop tools.

The process snapshot shells out to window-listing tools such as
``wmctrl``. Their output is parsed, so they run with a fixed locale and
a short timeout; a missing or hung tool must never stall a run.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass

# Keeps tool output stable for parsing
_PARSE_ENV = {"LC_ALL": "C"}


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured output of a tool invocation.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if the tool exited with status 0."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    timeout: float = 10.0,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a tool and capture its output.

    A non-zero exit status is reported through the result, not raised.

    Args:
        args: Command and arguments to execute.
        timeout: Maximum time in seconds to wait for the tool.
        env: Extra variables merged over the current environment and the
            fixed parsing locale.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.TimeoutExpired: If the tool exceeds the timeout.
        FileNotFoundError: If the executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
        env={**os.environ, **_PARSE_ENV, **(env or {})},
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a tool is available on PATH."""
    return shutil.which(name) is not None
