"""Size accounting for filesystem sweeps.

This module defines the value type that every sweep step reports into:
how many files were removed, how many bytes were measured, and which
paths could not be removed.

Byte accounting is optimistic: ``bytes_freed`` includes the size of every
file the sweep measured, whether or not its removal succeeded. Callers
must present it as *potential* savings, not guaranteed freed space.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SweepError:
    """A single file or directory that a sweep could not process.

    Attributes:
        category: Category label of the sweep target that hit the error.
        path: Absolute path the error is attributed to.
        message: OS error message or short description.
    """

    category: str
    path: str
    message: str

    def __post_init__(self) -> None:
        """Validate error data after initialization."""
        if not self.path:
            msg = "Error path cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary for JSON storage."""
        return {"category": self.category, "path": self.path, "message": self.message}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SweepError:
        """Deserialize from dictionary."""
        return cls(category=data["category"], path=data["path"], message=data["message"])


@dataclass(frozen=True, slots=True)
class SizeAccumulator:
    """Running totals of a sweep.

    Accumulators are immutable; combining two of them with :meth:`merge`
    returns a new instance. Merging is associative, commutative over the
    numeric fields, and concatenates error sequences in order.

    Attributes:
        files_removed: Number of files actually removed.
        bytes_freed: Bytes measured across all enumerated files (potential savings).
        errors: Ordered sequence of per-path failures.
    """

    files_removed: int = 0
    bytes_freed: int = 0
    errors: tuple[SweepError, ...] = ()

    def __post_init__(self) -> None:
        """Validate accumulator data after initialization."""
        if self.files_removed < 0:
            msg = f"files_removed cannot be negative, got {self.files_removed}"
            raise ValueError(msg)
        if self.bytes_freed < 0:
            msg = f"bytes_freed cannot be negative, got {self.bytes_freed}"
            raise ValueError(msg)

    @classmethod
    def empty(cls) -> SizeAccumulator:
        """Return the zero accumulator."""
        return cls()

    @property
    def error_count(self) -> int:
        """Number of recorded errors."""
        return len(self.errors)

    @property
    def has_errors(self) -> bool:
        """Check if any error was recorded."""
        return bool(self.errors)

    def merge(self, other: SizeAccumulator) -> SizeAccumulator:
        """Combine two accumulators.

        Args:
            other: Accumulator to add to this one.

        Returns:
            New accumulator with summed counters and ``self.errors``
            followed by ``other.errors``.
        """
        return SizeAccumulator(
            files_removed=self.files_removed + other.files_removed,
            bytes_freed=self.bytes_freed + other.bytes_freed,
            errors=self.errors + other.errors,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "files_removed": self.files_removed,
            "bytes_freed": self.bytes_freed,
            "errors": [e.to_dict() for e in self.errors],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SizeAccumulator:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            files_removed=data["files_removed"],
            bytes_freed=data["bytes_freed"],
            errors=tuple(SweepError.from_dict(e) for e in data.get("errors", [])),
        )


def merge_all(accumulators: Iterable[SizeAccumulator]) -> SizeAccumulator:
    """Fold a sequence of accumulators into one, starting from zero."""
    total = SizeAccumulator.empty()
    for acc in accumulators:
        total = total.merge(acc)
    return total
