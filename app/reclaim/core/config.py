"""Configuration models and I/O.

Configuration is stored in ~/.config/reclaim/config.toml and has three
sections::

    [policy]     # process classification thresholds and patterns
    [run]        # timeouts, worker counts, and termination tuning
    [[targets]]  # sweep targets; the built-in defaults apply when absent

Every section is validated when loaded; unknown keys and out-of-range
values are rejected before a run starts.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from reclaim.core.errors import ConfigError, ConfigNotFoundError, ConfigParseError
from reclaim.core.paths import get_config_path
from reclaim.processes.policy import PolicyConfig
from reclaim.sweep.targets import DEFAULT_TARGETS, ExpansionMode, SweepTarget

logger = logging.getLogger(__name__)


class RunSettings(BaseModel):
    """Execution settings for a reclamation run.

    Attributes:
        timeout_seconds: Hard wall-clock limit for one run.
        max_workers: Number of sweep targets processed concurrently.
        observation_seconds: CPU sampling window for the process snapshot.
        termination_delay_seconds: Pause between two termination attempts.
        termination_timeout_seconds: Wait for a process to exit after SIGTERM.
        terminate_processes: Run the process phase at all.
        current_user_only: Only consider processes owned by the current user.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout_seconds: Annotated[
        float,
        Field(gt=0, le=86400, description="Run timeout in seconds"),
    ] = 600.0
    max_workers: Annotated[
        int,
        Field(ge=1, le=32, description="Concurrent sweep targets"),
    ] = 4
    observation_seconds: Annotated[
        float,
        Field(ge=0, le=60, description="CPU observation window in seconds"),
    ] = 1.0
    termination_delay_seconds: Annotated[
        float,
        Field(ge=0, le=10, description="Delay between termination attempts"),
    ] = 0.1
    termination_timeout_seconds: Annotated[
        float,
        Field(ge=0.1, le=60, description="Per-process exit wait after SIGTERM"),
    ] = 3.0
    terminate_processes: bool = True
    current_user_only: bool = True


class TargetSpec(BaseModel):
    """Configuration form of a sweep target."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    root_path: str
    category: str
    expansion: ExpansionMode = ExpansionMode.NONE
    relative_suffix: str | None = None

    @model_validator(mode="after")
    def validate_target(self) -> "TargetSpec":
        """Run SweepTarget validation so bad targets fail at load time."""
        self.to_target()
        return self

    def to_target(self) -> SweepTarget:
        """Convert to the immutable SweepTarget consumed by the aggregator.

        Raises:
            ValueError: If the combination of fields is invalid.
        """
        return SweepTarget.from_dict(self.model_dump(mode="json", exclude_none=True))

    @classmethod
    def from_target(cls, target: SweepTarget) -> "TargetSpec":
        """Build a spec from an existing SweepTarget."""
        return cls.model_validate(target.to_dict())


class ReclaimConfig(BaseModel):
    """Complete reclaim configuration.

    Attributes:
        policy: Process classification policy.
        run: Run execution settings.
        targets: Sweep targets; None means the built-in defaults.
    """

    model_config = ConfigDict(extra="forbid")

    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    run: RunSettings = Field(default_factory=RunSettings)
    targets: list[TargetSpec] | None = None

    def sweep_targets(self) -> tuple[SweepTarget, ...]:
        """Return the configured targets, or the defaults if none are set."""
        if self.targets is None:
            return DEFAULT_TARGETS
        return tuple(spec.to_target() for spec in self.targets)


def load_config(path: Path | None = None) -> ReclaimConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated ReclaimConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return ReclaimConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> ReclaimConfig:
    """Load configuration, falling back to defaults when no file exists.

    An explicitly given path must exist; only the default location may
    be absent.

    Raises:
        ConfigNotFoundError: If an explicit path doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    if path is None and not get_config_path().exists():
        logger.debug("No config file at %s, using defaults", get_config_path())
        return get_default_config()
    return load_config(path)


def save_config(config: ReclaimConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The ReclaimConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        # os.replace() is atomic on POSIX
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: ReclaimConfig) -> dict[str, Any]:
    """Convert ReclaimConfig to a dictionary for TOML serialization.

    Pattern sets are written as sorted lists, and targets are always
    written out explicitly so users can edit the defaults.
    """
    policy = config.policy.model_dump(mode="json")
    policy["critical_name_patterns"] = sorted(config.policy.critical_name_patterns)
    policy["critical_title_patterns"] = sorted(config.policy.critical_title_patterns)

    targets = [
        TargetSpec.from_target(target).model_dump(mode="json", exclude_none=True)
        for target in config.sweep_targets()
    ]

    return {
        "policy": policy,
        "run": config.run.model_dump(mode="json"),
        "targets": targets,
    }


def get_default_config() -> ReclaimConfig:
    """Create a default ReclaimConfig."""
    return ReclaimConfig()
