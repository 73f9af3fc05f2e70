"""Protected filesystem paths that a sweep must never remove.

Sweep targets come from configuration, so a mistyped root could point
at user secrets or reclaim's own state. Files matching these patterns
are reported as errors and left in place.
"""

import fnmatch
from pathlib import Path

# Protected filesystem path patterns (glob-style).
# Patterns starting with ~ are expanded to the user's home directory
# before matching. Patterns starting with / are matched as-is.
PROTECTED_PATH_PATTERNS: list[str] = [
    # SSH and security
    "~/.ssh/*",
    "~/.gnupg/*",
    "~/.pki/*",
    "~/.password-store/*",
    # Keyrings and wallets
    "~/.local/share/keyrings/*",
    "~/.local/share/kwalletd/*",
    # Browser profile data (only caches may be swept)
    "~/.mozilla/firefox/*/key4.db",
    "~/.mozilla/firefox/*/logins.json",
    "~/.mozilla/firefox/*/places.sqlite",
    "~/.config/google-chrome/*/Login Data",
    "~/.config/chromium/*/Login Data",
    # reclaim itself
    "~/.config/reclaim/*",
    "~/.local/state/reclaim/*",
    # System
    "/etc/*",
    "/boot/*",
    "/usr/*",
]


def is_protected_path(path: str) -> bool:
    """Check if a filesystem path is protected and must not be removed.

    Patterns using ~ notation are expanded to the actual home directory
    before comparison using fnmatch for glob-style matching.

    Args:
        path: Absolute filesystem path to check.

    Returns:
        True if the path matches any protected pattern, False otherwise.
    """
    home = str(Path.home())

    for pattern in PROTECTED_PATH_PATTERNS:
        expanded = home + pattern[1:] if pattern.startswith("~") else pattern

        if fnmatch.fnmatch(path, expanded):
            return True

    return False
