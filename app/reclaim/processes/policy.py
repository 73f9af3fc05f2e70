"""Process classification policy.

This module defines the validated thresholds and pattern sets that drive
the process classifier. Values are checked when the policy is built, so
a malformed configuration is rejected before any process is examined.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

MB = 1024 * 1024

# Processes that keep a Linux desktop session alive. Matched
# case-insensitively with fnmatch against the process name, the
# executable basename, and the full command line.
DEFAULT_CRITICAL_NAME_PATTERNS: frozenset[str] = frozenset(
    {
        # init and session management
        "systemd",
        "systemd-*",
        "(sd-pam)",
        "dbus-daemon",
        "dbus-broker*",
        "gnome-session*",
        "ksmserver",
        "login",
        "polkit*",
        # display and compositor
        "xorg",
        "xwayland",
        "gnome-shell",
        "gsd-*",
        "kwin*",
        "plasmashell",
        "cosmic-*",
        "gdm*",
        "sddm*",
        "lightdm*",
        "xdg-*",
        "at-spi*",
        "ibus*",
        "fcitx*",
        # audio
        "pipewire*",
        "wireplumber",
        "pulseaudio",
        # credentials
        "ssh-agent",
        "gpg-agent",
        "gnome-keyring-daemon",
        "kwalletd*",
        # shells and terminal multiplexers
        "bash",
        "zsh",
        "fish",
        "sh",
        "dash",
        "tmux*",
        "screen",
        "sudo",
        "su",
        # networking
        "networkmanager",
        "sshd",
        # reclaim itself
        "reclaim",
        "*/reclaim *",
    }
)


class PolicyConfig(BaseModel):
    """Thresholds and patterns for the process classifier.

    Attributes:
        min_age_seconds: Processes younger than this are always preserved.
        cpu_activity_threshold: CPU seconds in the observation window above
            which a process counts as active.
        idle_memory_floor_bytes: Resident size separating small idle
            processes from large ones.
        idle_memory_age_minutes: Age after which an idle process counts as
            long-lived.
        cpu_idle_epsilon: CPU seconds at or below which CPU use counts as
            effectively zero.
        critical_name_patterns: fnmatch patterns for process names and
            command lines that must never be terminated.
        critical_title_patterns: fnmatch patterns for window titles that
            must never be terminated.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    min_age_seconds: Annotated[
        float,
        Field(ge=0, description="Minimum process age before it may be terminated"),
    ] = 300.0
    cpu_activity_threshold: Annotated[
        float,
        Field(ge=0, description="CPU seconds per observation window that mark a process active"),
    ] = 0.5
    idle_memory_floor_bytes: Annotated[
        int,
        Field(ge=0, description="Resident size separating small and large idle processes"),
    ] = 50 * MB
    idle_memory_age_minutes: Annotated[
        float,
        Field(ge=0, description="Age in minutes after which an idle process is long-lived"),
    ] = 60.0
    cpu_idle_epsilon: Annotated[
        float,
        Field(ge=0, description="CPU seconds treated as effectively zero"),
    ] = 0.01
    critical_name_patterns: frozenset[str] = DEFAULT_CRITICAL_NAME_PATTERNS
    critical_title_patterns: frozenset[str] = frozenset()

    @field_validator("critical_name_patterns", "critical_title_patterns", mode="before")
    @classmethod
    def validate_patterns(cls, v: object) -> frozenset[str]:
        """Normalize pattern collections and reject blank patterns."""
        if isinstance(v, str) or not isinstance(v, list | tuple | set | frozenset):
            msg = "patterns must be a list of strings"
            raise ValueError(msg)
        patterns: set[str] = set()
        for item in v:
            if not isinstance(item, str) or not item.strip():
                msg = f"invalid pattern {item!r}: must be a non-empty string"
                raise ValueError(msg)
            patterns.add(item.strip())
        return frozenset(patterns)

    @property
    def idle_memory_age_seconds(self) -> float:
        """Long-lived threshold converted to seconds."""
        return self.idle_memory_age_minutes * 60.0
