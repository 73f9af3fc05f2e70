"""Process classifier.

Decides, for a single snapshot row, whether a process must be preserved
or may be terminated. The decision is an ordered rule list evaluated top
to bottom; the first matching rule wins and its name travels with the
verdict. Any positive signal of activity is checked before the idle
rules, and a visible window vetoes termination outright.

The classifier is a pure function: it reads nothing but its arguments.
"""

import fnmatch
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from reclaim.models.process import ClassificationVerdict, ProcessInfo, VerdictKind
from reclaim.processes.policy import PolicyConfig

Predicate = Callable[[ProcessInfo, PolicyConfig], bool]


@dataclass(frozen=True, slots=True)
class Rule:
    """One entry in the ordered decision list.

    Attributes:
        name: Stable rule identifier recorded in verdicts.
        kind: Verdict produced when the predicate matches.
        reason: Human-readable reason recorded in verdicts.
        predicate: Test over a snapshot row and the policy.
    """

    name: str
    kind: VerdictKind
    reason: str
    predicate: Predicate

    def matches(self, info: ProcessInfo, policy: PolicyConfig) -> bool:
        """Check if this rule applies."""
        return self.predicate(info, policy)

    def verdict(self) -> ClassificationVerdict:
        """Build the verdict this rule produces."""
        return ClassificationVerdict(kind=self.kind, reason=self.reason, rule=self.name)


def _matches_any(value: str, patterns: Iterable[str]) -> bool:
    value = value.lower()
    return any(fnmatch.fnmatchcase(value, p.lower()) for p in patterns)


def _cpu_idle(info: ProcessInfo, policy: PolicyConfig) -> bool:
    return info.cpu_seconds <= policy.cpu_idle_epsilon


def _has_window(info: ProcessInfo, policy: PolicyConfig) -> bool:
    return info.has_window


def _recently_started(info: ProcessInfo, policy: PolicyConfig) -> bool:
    return info.age_seconds < policy.min_age_seconds


def _is_critical(info: ProcessInfo, policy: PolicyConfig) -> bool:
    patterns = policy.critical_name_patterns | policy.critical_title_patterns
    values = [info.name, info.command_line]
    argv = info.command_line.split()
    if argv:
        values.append(os.path.basename(argv[0]))
    if any(_matches_any(value, patterns) for value in values if value):
        return True
    return bool(info.window_title) and _matches_any(
        info.window_title, policy.critical_title_patterns
    )


def _cpu_active(info: ProcessInfo, policy: PolicyConfig) -> bool:
    return info.cpu_seconds > policy.cpu_activity_threshold


def _small_windowless(info: ProcessInfo, policy: PolicyConfig) -> bool:
    return info.working_set_bytes < policy.idle_memory_floor_bytes and not info.has_window


def _large_idle(info: ProcessInfo, policy: PolicyConfig) -> bool:
    return info.working_set_bytes >= policy.idle_memory_floor_bytes and _cpu_idle(info, policy)


def _long_lived_idle(info: ProcessInfo, policy: PolicyConfig) -> bool:
    return info.age_seconds >= policy.idle_memory_age_seconds and _cpu_idle(info, policy)


# Order matters: first match wins.
RULES: tuple[Rule, ...] = (
    Rule("visible_window", VerdictKind.PRESERVE, "visible window", _has_window),
    Rule("recently_started", VerdictKind.PRESERVE, "recently started", _recently_started),
    Rule("critical_process", VerdictKind.PRESERVE, "critical subsystem process", _is_critical),
    Rule("active_cpu", VerdictKind.PRESERVE, "active CPU usage", _cpu_active),
    Rule("low_memory_no_window", VerdictKind.CANDIDATE, "low memory, no window", _small_windowless),
    Rule(
        "idle_large_footprint",
        VerdictKind.CANDIDATE,
        "idle despite large footprint",
        _large_idle,
    ),
    Rule("long_lived_idle", VerdictKind.CANDIDATE, "long-lived idle process", _long_lived_idle),
)

DEFAULT_RULE = Rule(
    "insufficient_evidence",
    VerdictKind.PRESERVE,
    "insufficient evidence to classify as safe",
    lambda info, policy: True,
)


def classify(
    info: ProcessInfo,
    policy: PolicyConfig,
    rules: tuple[Rule, ...] = RULES,
) -> ClassificationVerdict:
    """Classify one process.

    Args:
        info: Snapshot row for the process.
        policy: Thresholds and patterns.
        rules: Ordered decision list; defaults to the standard rules.

    Returns:
        Verdict from the first matching rule, or the default Preserve
        verdict when no rule matches.
    """
    for rule in rules:
        if rule.matches(info, policy):
            return rule.verdict()
    return DEFAULT_RULE.verdict()


def classify_all(
    snapshot: Iterable[ProcessInfo],
    policy: PolicyConfig,
) -> list[tuple[ProcessInfo, ClassificationVerdict]]:
    """Classify every row of a snapshot, preserving its order."""
    return [(info, classify(info, policy)) for info in snapshot]
