"""Record model for discovered Python environments.

Public API::

    from runtimescout.info import EnvInfo, EnvKind, build_env_info

    env = build_env_info("/usr/bin/python3", EnvKind.PATH_ENTRY)
    print(env.identity, env.display_name)
"""

from __future__ import annotations

from runtimescout.info.models import (
    EMPTY_VERSION,
    UNKNOWN,
    Architecture,
    Distro,
    EnvInfo,
    EnvKind,
    PythonVersion,
    build_env_info,
    get_executable,
    get_identity,
    merge_env_infos,
    merge_versions,
    normalize_identity,
    same_environment,
)
from runtimescout.info.version import (
    parse_pyenv_dirname,
    parse_version,
    read_pyvenv_cfg,
    version_from_install,
)

__all__ = [
    "Architecture",
    "Distro",
    "EMPTY_VERSION",
    "EnvInfo",
    "EnvKind",
    "PythonVersion",
    "UNKNOWN",
    "build_env_info",
    "get_executable",
    "get_identity",
    "merge_env_infos",
    "merge_versions",
    "normalize_identity",
    "parse_pyenv_dirname",
    "parse_version",
    "read_pyvenv_cfg",
    "same_environment",
    "version_from_install",
]
