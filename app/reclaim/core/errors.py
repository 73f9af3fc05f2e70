"""Exception hierarchy for reclaim.

Only invocation-level failures are exceptions. Per-item failures (a
locked file, a denied signal, a missing target) are recorded as values
in the RunResult and never raised.
"""


class ReclaimError(Exception):
    """Base exception for reclaim errors."""


class RunAlreadyInProgressError(ReclaimError):
    """Raised when a run is started while another one holds the run lock."""


class ConfigError(ReclaimError):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""
