"""Narrow helpers for the OS, the filesystem and interpreter processes.

Locators consume these through small functions so tests can substitute
them without touching the real machine.
"""

from __future__ import annotations

from runtimescout.common.binaries import (
    get_interpreter_path_in_dir,
    is_standard_python_binary,
    looks_executable,
)
from runtimescout.common.platform import (
    OSType,
    get_env_var,
    get_os_type,
    get_search_path_entries,
    get_user_home,
)

__all__ = [
    "OSType",
    "get_env_var",
    "get_interpreter_path_in_dir",
    "get_os_type",
    "get_search_path_entries",
    "get_user_home",
    "is_standard_python_binary",
    "looks_executable",
]
