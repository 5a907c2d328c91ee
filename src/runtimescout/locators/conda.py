"""Conda environments.

A folder is a conda environment when it has a ``conda-meta`` directory.
Environments are found three ways:

1. Each known conda root (``~/miniconda3``, ``/opt/conda``...) is itself
   the ``base`` environment.
2. ``<root>/envs/*`` holds named environments.
3. ``~/.conda/environments.txt`` lists environments created elsewhere
   (``conda create -p``).
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Iterable

from runtimescout.common.binaries import (
    check_executable_file,
    get_interpreter_path_in_dir,
    is_standard_python_binary,
)
from runtimescout.common.platform import OSType, get_env_var, get_os_type, get_user_home
from runtimescout.common.watcher import WatchFactory
from runtimescout.info.models import (
    EnvInfo,
    EnvKind,
    build_env_info,
    get_executable,
    normalize_identity,
)
from runtimescout.info.version import version_from_install
from runtimescout.locator.base import EnvIdentity
from runtimescout.locator.query import LocatorQuery, kind_allowed
from runtimescout.locators.watching import FSWatchingLocator, list_subdirectories

logger = logging.getLogger(__name__)

_ROOT_DIR_NAMES: list[str] = [
    "anaconda3",
    "anaconda",
    "miniconda3",
    "miniconda",
    "miniforge3",
    "mambaforge",
]


def is_conda_env(path: str | os.PathLike[str]) -> bool:
    """Whether ``path`` is a conda environment folder."""
    try:
        return os.path.isdir(os.path.join(os.fspath(path), "conda-meta"))
    except OSError:
        return False


def get_conda_roots() -> list[str]:
    """Candidate conda installation roots for this machine, in priority order."""
    roots: list[str] = []
    prefix = get_env_var("CONDA_PREFIX")
    if prefix:
        head, sep, _ = prefix.rpartition(os.sep + "envs" + os.sep)
        roots.append(head if sep else prefix)
    home = get_user_home()
    roots.extend(str(home / name) for name in _ROOT_DIR_NAMES)
    if get_os_type() == OSType.WINDOWS:
        local = home / "AppData" / "Local" / "Continuum"
        roots.extend(str(local / name) for name in _ROOT_DIR_NAMES)
        roots.extend(os.path.join("C:\\", name) for name in _ROOT_DIR_NAMES)
    else:
        roots.extend(["/opt/conda", "/opt/anaconda3", "/opt/miniconda3"])
    return roots


def read_environments_file(path: str) -> list[str]:
    """Environment folders listed in conda's ``environments.txt``."""
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            return [line.strip() for line in fh if line.strip()]
    except FileNotFoundError:
        return []
    except OSError:
        logger.debug("Cannot read %s", path, exc_info=True)
        return []


class CondaEnvLocator(FSWatchingLocator):
    """Locate conda base and named environments."""

    def __init__(
        self,
        roots: Iterable[str | os.PathLike[str]] | None = None,
        *,
        environments_file: str | os.PathLike[str] | None = None,
        watch_factory: WatchFactory | None = None,
    ) -> None:
        super().__init__(EnvKind.CONDA, watch_factory=watch_factory)
        raw_roots = list(roots) if roots is not None else get_conda_roots()
        self.roots: tuple[str, ...] = tuple(os.path.abspath(os.fspath(r)) for r in raw_roots)
        self.environments_file = (
            os.fspath(environments_file)
            if environments_file is not None
            else str(get_user_home() / ".conda" / "environments.txt")
        )
        self._root_keys = {normalize_identity(r) for r in self.roots}

    @property
    def name(self) -> str:
        return "conda"

    def watch_roots(self) -> list[tuple[str, str]]:
        watched = [(os.path.join(root, "envs"), "*") for root in self.roots]
        watched.append((os.path.dirname(self.environments_file), "environments.txt"))
        return watched

    def _env_name(self, env_dir: str) -> str:
        if normalize_identity(env_dir) in self._root_keys:
            return "base"
        return os.path.basename(env_dir.rstrip(os.sep))

    def _candidate_dirs(self) -> list[str]:
        candidates: list[str] = []
        for root in self.roots:
            candidates.append(root)
            candidates.extend(list_subdirectories(os.path.join(root, "envs")))
        candidates.extend(read_environments_file(self.environments_file))

        seen: set[str] = set()
        unique: list[str] = []
        for candidate in candidates:
            key = normalize_identity(candidate)
            if key not in seen:
                seen.add(key)
                unique.append(candidate)
        return unique

    def _build_env(self, env_dir: str, executable: str) -> EnvInfo:
        return build_env_info(
            executable,
            EnvKind.CONDA,
            version=version_from_install(env_dir, executable),
            location=env_dir,
            name=self._env_name(env_dir),
            search_location=os.path.dirname(env_dir),
            source=(self.name,),
        )

    def _scan_env_dir(self, env_dir: str) -> EnvInfo | None:
        if not is_conda_env(env_dir):
            return None
        executable = get_interpreter_path_in_dir(env_dir)
        if executable is None:
            logger.debug("Conda environment without interpreter: %s", env_dir)
            return None
        return self._build_env(env_dir, executable)

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        if not kind_allowed(query, self.kind):
            return
        for env_dir in await asyncio.to_thread(self._candidate_dirs):
            try:
                env = await asyncio.to_thread(self._scan_env_dir, env_dir)
            except OSError:
                logger.debug("Skipping unreadable conda environment %s", env_dir, exc_info=True)
                continue
            if env is not None:
                yield env

    @staticmethod
    def _env_dir_of(executable: str) -> str:
        parent = os.path.dirname(executable)
        if os.path.basename(parent).lower() in ("bin", "scripts"):
            return os.path.dirname(parent)
        return parent

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        executable = get_executable(env)
        if not is_standard_python_binary(executable):
            return None
        env_dir = self._env_dir_of(executable)
        if not await asyncio.to_thread(is_conda_env, env_dir):
            return None
        if not await asyncio.to_thread(check_executable_file, executable):
            return None
        return await asyncio.to_thread(self._build_env, env_dir, executable)
