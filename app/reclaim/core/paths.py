"""XDG-compliant path management for reclaim.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and state storage.

XDG defaults:
- Config: ~/.config/reclaim/
- State: ~/.local/state/reclaim/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "reclaim"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/reclaim/ (or XDG_CONFIG_HOME/reclaim/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the run history and the run lock file.

    Returns:
        Path to ~/.local/state/reclaim/ (or XDG_STATE_HOME/reclaim/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/reclaim/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_history_path() -> Path:
    """Get the run history file path.

    Returns:
        Path to ~/.local/state/reclaim/history.jsonl.
    """
    return get_state_dir() / "history.jsonl"


def get_lock_path() -> Path:
    """Get the cross-process run lock file path.

    Returns:
        Path to ~/.local/state/reclaim/run.lock.
    """
    return get_state_dir() / "run.lock"


def _ensure_dir(path: Path, name: str, env_var: str) -> Path:
    """Create a reclaim directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.
        env_var: XDG variable that relocates the directory, named in errors.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = (
            f"Cannot create reclaim {name} directory {path}: permission denied "
            f"(set {env_var} to use another location)"
        )
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create reclaim {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config", "XDG_CONFIG_HOME")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state", "XDG_STATE_HOME")
