"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from reclaim.models.process import ProcessInfo

SNAPSHOT_TIME = 1_700_000_000.0
MB = 1024 * 1024


@pytest.fixture
def make_process() -> Callable[..., ProcessInfo]:
    """Factory for ProcessInfo rows with sensible defaults.

    Defaults describe an old, idle, windowless, small background process.
    ``age`` is given in seconds relative to the snapshot time.
    """

    def _make(
        pid: int = 4242,
        name: str = "some-daemon",
        age: float = 3600.0,
        cpu_seconds: float = 0.0,
        working_set_bytes: int = 5 * MB,
        has_window: bool = False,
        window_title: str = "",
        command_line: str | None = None,
    ) -> ProcessInfo:
        return ProcessInfo(
            pid=pid,
            name=name,
            start_time=SNAPSHOT_TIME - age,
            cpu_seconds=cpu_seconds,
            working_set_bytes=working_set_bytes,
            has_window=has_window,
            window_title=window_title,
            command_line=command_line if command_line is not None else f"/usr/bin/{name}",
            snapshot_time=SNAPSHOT_TIME,
        )

    return _make


@pytest.fixture
def write_files() -> Callable[..., list[Path]]:
    """Factory that creates files of given sizes below a root directory."""

    def _write(root: Path, files: dict[str, int]) -> list[Path]:
        created: list[Path] = []
        for rel, size in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"x" * size)
            created.append(path)
        return created

    return _write


@pytest.fixture
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Point XDG config and state directories into tmp_path."""
    config_home = tmp_path / "config"
    state_home = tmp_path / "state"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("XDG_STATE_HOME", str(state_home))
    return {
        "config": config_home / "reclaim",
        "state": state_home / "reclaim",
    }
