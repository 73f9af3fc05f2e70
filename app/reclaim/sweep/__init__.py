"""Filesystem sweep module.

This module provides sweep target declarations, the protected path
guard, and the aggregator that measures and removes files.
"""

from reclaim.sweep.aggregator import SweepAggregator, SweepReport
from reclaim.sweep.protected import PROTECTED_PATH_PATTERNS, is_protected_path
from reclaim.sweep.targets import DEFAULT_TARGETS, ExpansionMode, SweepTarget

__all__ = [
    "DEFAULT_TARGETS",
    "PROTECTED_PATH_PATTERNS",
    "ExpansionMode",
    "SweepAggregator",
    "SweepReport",
    "SweepTarget",
    "is_protected_path",
]
