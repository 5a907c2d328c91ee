"""Classification of files that may be Python interpreters.

These are cheap filename and permission checks only. Nothing here runs a
binary; see ``runtimescout.common.interpreter`` for that.
"""

from __future__ import annotations

import os
import re
import stat
from pathlib import Path

from runtimescout.common.platform import OSType, get_env_var, get_os_type
from runtimescout.exceptions import ProbeError

# python, python3, python3.11, python.exe, python3.11.exe
_STANDARD_BINARY_RE = re.compile(r"^python(\d+(\.\d+)?)?(\.exe)?$", re.IGNORECASE)

_DEFAULT_PATHEXT = ".COM;.EXE;.BAT;.CMD"


def is_standard_python_binary(filename: str | os.PathLike[str]) -> bool:
    """Check whether a file name looks like a standard Python executable name.

    Only the base name is inspected. ``python3-config``, ``pythonw.exe``
    and ``python3.9m`` are rejected.
    """
    base = os.path.basename(os.fspath(filename))
    return bool(_STANDARD_BINARY_RE.match(base))


def _windows_executable_suffixes() -> set[str]:
    pathext = get_env_var("PATHEXT", _DEFAULT_PATHEXT) or _DEFAULT_PATHEXT
    return {ext.lower() for ext in pathext.split(";") if ext}


def looks_executable(path: str | os.PathLike[str], mode: int | None = None) -> bool:
    """Check whether ``path`` is a regular file the OS would execute.

    On Windows the file extension decides (``PATHEXT``); elsewhere the
    execute permission bit. ``mode`` may be passed when the caller already
    holds a ``stat`` result.

    Raises:
        OSError: If the file cannot be stat-ed for a reason other than
            not existing.
    """
    if mode is None:
        try:
            mode = os.stat(path).st_mode
        except FileNotFoundError:
            return False
    if not stat.S_ISREG(mode):
        return False
    if get_os_type() == OSType.WINDOWS:
        return Path(path).suffix.lower() in _windows_executable_suffixes()
    return bool(mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))


def interpreter_relpaths() -> list[str]:
    """Relative locations of the interpreter inside an environment folder."""
    if get_os_type() == OSType.WINDOWS:
        return ["python.exe", os.path.join("Scripts", "python.exe")]
    return [os.path.join("bin", "python"), os.path.join("bin", "python3")]


def get_interpreter_path_in_dir(env_dir: str | os.PathLike[str]) -> str | None:
    """Return the interpreter inside an environment directory, if any."""
    for rel in interpreter_relpaths():
        candidate = os.path.join(os.fspath(env_dir), rel)
        try:
            if looks_executable(candidate):
                return candidate
        except OSError:
            continue
    return None


def check_executable_file(path: str | os.PathLike[str]) -> bool:
    """Like ``looks_executable`` but for resolution paths.

    Raises:
        ProbeError: If the file exists but cannot be inspected.
    """
    try:
        mode = os.stat(path).st_mode
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise ProbeError(f"Cannot inspect {os.fspath(path)}: {exc}") from exc
    return looks_executable(path, mode)
