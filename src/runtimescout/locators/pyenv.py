"""Interpreters installed by pyenv.

pyenv keeps each install in ``$PYENV_ROOT/versions/<name>``. The name is
either a plain CPython version (``3.9.0``), a distribution with its own
release number (``miniconda3-4.7.12``, ``pypy3.6-7.3.1``), or a
pyenv-virtualenv environment with an arbitrary name (``venv1``). The
version comes from the name when it can, and otherwise from marker files
inside the install.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator

from runtimescout.common.binaries import (
    check_executable_file,
    get_interpreter_path_in_dir,
    is_standard_python_binary,
)
from runtimescout.common.platform import OSType, get_env_var, get_os_type, get_user_home
from runtimescout.common.watcher import WatchFactory
from runtimescout.info.models import (
    Distro,
    EnvInfo,
    EnvKind,
    build_env_info,
    get_executable,
    merge_versions,
    normalize_identity,
)
from runtimescout.info.version import parse_pyenv_dirname, version_from_install
from runtimescout.locator.base import EnvIdentity
from runtimescout.locator.query import LocatorQuery, kind_allowed
from runtimescout.locators.watching import FSWatchingLocator

logger = logging.getLogger(__name__)


def get_pyenv_root() -> str:
    """Where pyenv lives: ``$PYENV_ROOT`` or the platform default."""
    root = get_env_var("PYENV_ROOT")
    if root:
        return root
    home = get_user_home()
    if get_os_type() == OSType.WINDOWS:
        return str(home / ".pyenv" / "pyenv-win")
    return str(home / ".pyenv")


class PyenvLocator(FSWatchingLocator):
    """Locate every install under pyenv's ``versions`` directory."""

    def __init__(
        self,
        root: str | os.PathLike[str] | None = None,
        *,
        watch_factory: WatchFactory | None = None,
    ) -> None:
        super().__init__(EnvKind.PYENV, watch_factory=watch_factory)
        self.root = os.path.abspath(os.fspath(root)) if root is not None else get_pyenv_root()
        self.versions_dir = os.path.join(self.root, "versions")

    @property
    def name(self) -> str:
        return "pyenv"

    def watch_roots(self) -> list[tuple[str, str]]:
        return [(self.versions_dir, "*")]

    def _build_env(self, env_dir: str, executable: str) -> EnvInfo:
        dirname = os.path.basename(env_dir)
        version, org = parse_pyenv_dirname(dirname)
        if not version.is_complete:
            version = merge_versions(version, version_from_install(env_dir, executable))
        return build_env_info(
            executable,
            EnvKind.PYENV,
            version=version,
            location=env_dir,
            name=dirname,
            distro=Distro(org=org),
            search_location=self.versions_dir,
            source=(self.name,),
        )

    def _scan_env_dir(self, env_dir: str) -> EnvInfo | None:
        executable = get_interpreter_path_in_dir(env_dir)
        if executable is None:
            logger.debug("No interpreter in pyenv version %s", env_dir)
            return None
        return self._build_env(env_dir, executable)

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        if not kind_allowed(query, self.kind):
            return
        for env_dir in await self._subdirectories(self.versions_dir):
            try:
                env = await asyncio.to_thread(self._scan_env_dir, env_dir)
            except OSError:
                logger.debug("Skipping unreadable pyenv version %s", env_dir, exc_info=True)
                continue
            if env is not None:
                yield env

    def _env_dir_of(self, executable: str) -> str | None:
        """The ``versions/<name>`` folder holding ``executable``, if any."""
        prefix = normalize_identity(self.versions_dir) + os.sep
        if not normalize_identity(executable).startswith(prefix):
            return None
        rel = os.path.relpath(executable, self.versions_dir)
        parts = rel.split(os.sep)
        if len(parts) < 2:
            return None
        env_dir = os.path.join(self.versions_dir, parts[0])
        inner = parts[1:]
        if get_os_type() == OSType.WINDOWS:
            allowed = len(inner) == 1 or (len(inner) == 2 and inner[0].lower() == "scripts")
        else:
            allowed = len(inner) == 2 and inner[0] == "bin"
        return env_dir if allowed else None

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        executable = get_executable(env)
        if not is_standard_python_binary(executable):
            return None
        env_dir = self._env_dir_of(executable)
        if env_dir is None:
            return None
        if not await asyncio.to_thread(check_executable_file, executable):
            return None
        return await asyncio.to_thread(self._build_env, env_dir, executable)
