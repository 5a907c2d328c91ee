"""OS detection and environment-variable access.

Everything that reads ``os.environ`` or asks which platform we run on goes
through this module, so locators never touch process state directly.
"""

from __future__ import annotations

import os
import platform
from enum import Enum
from pathlib import Path


class OSType(Enum):
    """Operating system families with distinct interpreter layouts."""

    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


def get_os_type() -> OSType:
    """Return the current platform identifier."""
    system = platform.system().lower()
    if system == "darwin":
        return OSType.MACOS
    if system == "windows":
        return OSType.WINDOWS
    if system == "linux":
        return OSType.LINUX
    return OSType.UNKNOWN


def is_case_insensitive_fs() -> bool:
    """Whether paths compare case-insensitively on this platform by default."""
    return get_os_type() in (OSType.WINDOWS, OSType.MACOS)


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Read an environment variable, treating an empty value as unset."""
    value = os.environ.get(name)
    return value if value else default


def get_user_home() -> Path:
    """Resolve the user's home directory."""
    return Path.home()


def get_search_path_entries() -> list[str]:
    """Split ``PATH`` into its ordered, non-empty directory entries.

    Duplicates are kept; callers decide how to collapse them.
    """
    value = get_env_var("PATH", "") or ""
    return [entry.strip() for entry in value.split(os.pathsep) if entry.strip()]
