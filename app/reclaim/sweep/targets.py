"""Sweep target declarations.

A sweep target describes one cleanup location: a root path or glob,
an optional profile expansion rule, and a category label used in
reports. Targets are built once from configuration and never mutated.
"""

from __future__ import annotations

import glob
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any

_GLOB_CHARS = frozenset("*?[")


class ExpansionMode(str, Enum):
    """How a target's root is turned into sweep directories.

    Attributes:
        NONE: Sweep every file under the root recursively.
        PER_SUBDIRECTORY: Treat each immediate subdirectory of the root as
            a profile and sweep ``<profile>/<relative_suffix>`` in each.
    """

    NONE = "none"
    PER_SUBDIRECTORY = "per_subdirectory"


@dataclass(frozen=True, slots=True)
class SweepTarget:
    """Declarative description of a cleanup location.

    Attributes:
        root_path: Directory, file, or glob pattern. A leading ``~`` is
            expanded to the user's home directory at sweep time.
        category: Label used in reports (e.g., "browser-cache").
        expansion: Profile expansion mode.
        relative_suffix: Path inside each profile to sweep. Required for
            PER_SUBDIRECTORY, forbidden otherwise.
    """

    root_path: str
    category: str
    expansion: ExpansionMode = ExpansionMode.NONE
    relative_suffix: str | None = None

    def __post_init__(self) -> None:
        """Validate target data after initialization."""
        if not self.root_path:
            msg = "Sweep target root_path cannot be empty"
            raise ValueError(msg)
        if not self.category:
            msg = "Sweep target category cannot be empty"
            raise ValueError(msg)

        if self.expansion == ExpansionMode.PER_SUBDIRECTORY:
            if not self.relative_suffix:
                msg = f"Target {self.root_path!r}: per_subdirectory expansion needs relative_suffix"
                raise ValueError(msg)
            suffix = PurePosixPath(self.relative_suffix)
            if suffix.is_absolute() or ".." in suffix.parts:
                msg = (
                    f"Target {self.root_path!r}: relative_suffix must be a relative path "
                    f"without '..', got {self.relative_suffix!r}"
                )
                raise ValueError(msg)
        elif self.relative_suffix is not None:
            msg = f"Target {self.root_path!r}: relative_suffix requires per_subdirectory expansion"
            raise ValueError(msg)

    @property
    def is_glob(self) -> bool:
        """Check if the root path contains glob characters."""
        return any(ch in _GLOB_CHARS for ch in self.root_path)

    def resolve_roots(self) -> list[Path]:
        """Expand ``~`` and glob characters into existing root paths.

        Returns:
            Sorted list of existing paths. Empty when nothing matches,
            which callers treat as a missing target.
        """
        expanded = os.path.expanduser(self.root_path)
        if self.is_glob:
            return [Path(p) for p in sorted(glob.glob(expanded))]
        root = Path(expanded)
        if root.exists() or root.is_symlink():
            return [root]
        return []

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary for TOML/JSON storage."""
        result = {
            "root_path": self.root_path,
            "category": self.category,
            "expansion": self.expansion.value,
        }
        if self.relative_suffix is not None:
            result["relative_suffix"] = self.relative_suffix
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SweepTarget:
        """Deserialize from dictionary.

        Args:
            data: Mapping with ``root_path``, ``category`` and optional
                ``expansion`` / ``relative_suffix`` keys.

        Returns:
            Validated SweepTarget.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If an unknown key or invalid value is present.
        """
        allowed = {"root_path", "category", "expansion", "relative_suffix"}
        unknown = set(data) - allowed
        if unknown:
            msg = f"Unknown sweep target keys: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        return cls(
            root_path=data["root_path"],
            category=data["category"],
            expansion=ExpansionMode(data.get("expansion", ExpansionMode.NONE.value)),
            relative_suffix=data.get("relative_suffix"),
        )


# Default sweep targets for a Linux desktop (XDG layout).
DEFAULT_TARGETS: tuple[SweepTarget, ...] = (
    SweepTarget(root_path="~/.cache/thumbnails", category="thumbnails"),
    SweepTarget(root_path="~/.local/share/Trash/files", category="trash"),
    SweepTarget(root_path="~/.local/share/Trash/info", category="trash"),
    SweepTarget(
        root_path="~/.cache/mozilla/firefox",
        category="browser-cache",
        expansion=ExpansionMode.PER_SUBDIRECTORY,
        relative_suffix="cache2",
    ),
    SweepTarget(
        root_path="~/.cache/google-chrome",
        category="browser-cache",
        expansion=ExpansionMode.PER_SUBDIRECTORY,
        relative_suffix="Cache",
    ),
    SweepTarget(
        root_path="~/.cache/chromium",
        category="browser-cache",
        expansion=ExpansionMode.PER_SUBDIRECTORY,
        relative_suffix="Cache",
    ),
    SweepTarget(root_path="~/.config/*/GPUCache", category="gpu-cache"),
)
