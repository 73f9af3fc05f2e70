"""Process snapshot, classification, and termination module.

This module provides the psutil-based process snapshot, the policy and
ordered-rule classifier that decide what may be terminated, and the
terminator that applies those decisions.
"""

from reclaim.processes.classifier import DEFAULT_RULE, RULES, Rule, classify, classify_all
from reclaim.processes.policy import DEFAULT_CRITICAL_NAME_PATTERNS, PolicyConfig
from reclaim.processes.snapshot import ProcessSnapshotter
from reclaim.processes.terminator import Terminator
from reclaim.processes.windows import WindowProbe, parse_wmctrl_output

__all__ = [
    "DEFAULT_CRITICAL_NAME_PATTERNS",
    "DEFAULT_RULE",
    "RULES",
    "PolicyConfig",
    "ProcessSnapshotter",
    "Rule",
    "Terminator",
    "WindowProbe",
    "classify",
    "classify_all",
    "parse_wmctrl_output",
]
