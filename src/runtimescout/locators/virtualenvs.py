"""Virtual environments created by venv, virtualenv and their wrappers.

Two locators live here:

* ``GlobalVirtualEnvLocator`` scans the well-known folders where tools
  keep environments outside any project (``$WORKON_HOME``,
  ``~/.virtualenvs``, pipenv's ``~/.local/share/virtualenvs``...).
* ``WorkspaceVirtualEnvLocator`` probes the conventional in-project names
  (``.venv``, ``venv``, ``.env``, ``env`` and ``.direnv/*``) inside one
  workspace folder.

A folder counts as a virtual environment when it holds an interpreter and
either a ``pyvenv.cfg`` file or an ``activate`` script.
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
from runtimescout.common.watcher import WatchFactory, WatchPattern
from runtimescout.info.models import (
    EnvInfo,
    EnvKind,
    build_env_info,
    get_executable,
    normalize_identity,
)
from runtimescout.info.version import read_pyvenv_cfg, version_from_install
from runtimescout.locator.base import EnvIdentity
from runtimescout.locator.query import LocatorQuery, kind_allowed, location_allowed
from runtimescout.locators.watching import FSWatchingLocator, list_subdirectories

logger = logging.getLogger(__name__)

VIRTUAL_ENV_KINDS: frozenset[EnvKind] = frozenset({
    EnvKind.VENV,
    EnvKind.VIRTUALENV,
    EnvKind.VIRTUALENVWRAPPER,
    EnvKind.PIPENV,
})

WORKSPACE_ENV_DIR_NAMES: tuple[str, ...] = (".venv", "venv", ".env", "env")


def _activate_script_names() -> list[str]:
    if get_os_type() == OSType.WINDOWS:
        return [os.path.join("Scripts", "activate.bat"), os.path.join("Scripts", "activate")]
    return [os.path.join("bin", "activate")]


def is_virtual_env(env_dir: str | os.PathLike[str]) -> bool:
    """Whether ``env_dir`` has the marker files of a virtual environment."""
    root = os.fspath(env_dir)
    if os.path.isfile(os.path.join(root, "pyvenv.cfg")):
        return True
    return any(os.path.isfile(os.path.join(root, rel)) for rel in _activate_script_names())


def classify_virtual_env(env_dir: str) -> EnvKind:
    """``VENV`` for stdlib ``venv`` folders, ``VIRTUALENV`` for the rest.

    ``virtualenv`` writes its own version into ``pyvenv.cfg``; legacy
    virtualenv folders have no ``pyvenv.cfg`` at all.
    """
    cfg = read_pyvenv_cfg(env_dir)
    if cfg and "virtualenv" not in cfg:
        return EnvKind.VENV
    return EnvKind.VIRTUALENV


def get_workon_home() -> str:
    """virtualenvwrapper's home: ``$WORKON_HOME`` or the platform default."""
    workon = get_env_var("WORKON_HOME")
    if workon:
        return os.path.abspath(os.path.expanduser(workon))
    home = get_user_home()
    if get_os_type() == OSType.WINDOWS:
        return str(home / "Envs")
    return str(home / ".virtualenvs")


def get_pipenv_home() -> str:
    """Where pipenv keeps environments when not told otherwise."""
    return str(get_user_home() / ".local" / "share" / "virtualenvs")


def get_global_virtualenv_roots() -> list[str]:
    """Folders commonly used to hold virtual environments, in priority order."""
    home = get_user_home()
    roots = [
        get_workon_home(),
        str(home / ".virtualenvs"),
        str(home / ".venvs"),
        str(home / "Envs"),
        str(home / "envs"),
        get_pipenv_home(),
    ]
    seen: set[str] = set()
    unique: list[str] = []
    for root in roots:
        key = normalize_identity(root)
        if key not in seen:
            seen.add(key)
            unique.append(root)
    return unique


def _env_dir_of(executable: str) -> str:
    parent = os.path.dirname(executable)
    if os.path.basename(parent).lower() in ("bin", "scripts"):
        return os.path.dirname(parent)
    return parent


class GlobalVirtualEnvLocator(FSWatchingLocator):
    """Locate virtual environments kept in the shared environment folders.

    Environments directly under ``$WORKON_HOME`` are reported as
    ``VIRTUALENVWRAPPER`` and those under pipenv's folder as ``PIPENV``.
    Anything else is ``VENV`` or ``VIRTUALENV`` depending on ``pyvenv.cfg``.

    Args:
        roots: Folders to scan. Defaults to ``get_global_virtualenv_roots()``.
        watch_factory: Replacement for the filesystem watch service.
    """

    def __init__(
        self,
        roots: Iterable[str | os.PathLike[str]] | None = None,
        *,
        watch_factory: WatchFactory | None = None,
    ) -> None:
        super().__init__(EnvKind.VIRTUALENV, watch_factory=watch_factory)
        raw_roots = list(roots) if roots is not None else get_global_virtualenv_roots()
        self.roots: tuple[str, ...] = tuple(os.path.abspath(os.fspath(r)) for r in raw_roots)
        self._root_keys = {normalize_identity(r): r for r in self.roots}
        self._workon_key = normalize_identity(get_workon_home())
        self._pipenv_key = normalize_identity(get_pipenv_home())

    @property
    def name(self) -> str:
        return "virtualenvs"

    def watch_roots(self) -> list[tuple[str, WatchPattern]]:
        return [(root, "*") for root in self.roots]

    def _kind_for(self, env_dir: str, root: str) -> EnvKind:
        root_key = normalize_identity(root)
        if root_key == self._workon_key:
            return EnvKind.VIRTUALENVWRAPPER
        if root_key == self._pipenv_key:
            return EnvKind.PIPENV
        return classify_virtual_env(env_dir)

    def _build_env(self, env_dir: str, root: str, executable: str) -> EnvInfo:
        return build_env_info(
            executable,
            self._kind_for(env_dir, root),
            version=version_from_install(env_dir, executable),
            location=env_dir,
            name=os.path.basename(env_dir),
            search_location=root,
            source=(self.name,),
        )

    def _scan_root(self, root: str) -> list[EnvInfo]:
        found: list[EnvInfo] = []
        for env_dir in list_subdirectories(root):
            try:
                if not is_virtual_env(env_dir):
                    continue
                executable = get_interpreter_path_in_dir(env_dir)
                if executable is None:
                    logger.debug("Virtual environment without interpreter: %s", env_dir)
                    continue
                found.append(self._build_env(env_dir, root, executable))
            except OSError:
                logger.debug("Skipping unreadable environment %s", env_dir, exc_info=True)
        return found

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        if not any(kind_allowed(query, kind) for kind in VIRTUAL_ENV_KINDS):
            return
        for root in self.roots:
            if not location_allowed(query, root):
                continue
            for env in await asyncio.to_thread(self._scan_root, root):
                if kind_allowed(query, env.kind):
                    yield env

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        executable = get_executable(env)
        if not is_standard_python_binary(executable):
            return None
        env_dir = _env_dir_of(executable)
        root = self._root_keys.get(normalize_identity(os.path.dirname(env_dir)))
        if root is None:
            return None
        if not await asyncio.to_thread(is_virtual_env, env_dir):
            return None
        if not await asyncio.to_thread(check_executable_file, executable):
            return None
        return await asyncio.to_thread(self._build_env, env_dir, root, executable)


class WorkspaceVirtualEnvLocator(FSWatchingLocator):
    """Locate virtual environments inside one project folder.

    Records carry the workspace folder as ``search_location`` so queries
    scoped to the workspace find them.
    """

    def __init__(
        self,
        workspace_root: str | os.PathLike[str],
        *,
        watch_factory: WatchFactory | None = None,
    ) -> None:
        super().__init__(EnvKind.VENV, watch_factory=watch_factory)
        self.workspace_root = os.path.abspath(os.fspath(workspace_root))

    @property
    def name(self) -> str:
        return "workspace"

    def watch_roots(self) -> list[tuple[str, WatchPattern]]:
        return [(self.workspace_root, (*WORKSPACE_ENV_DIR_NAMES, ".direnv/*"))]

    def _candidate_dirs(self) -> list[str]:
        candidates = [os.path.join(self.workspace_root, n) for n in WORKSPACE_ENV_DIR_NAMES]
        candidates.extend(list_subdirectories(os.path.join(self.workspace_root, ".direnv")))
        return candidates

    def _is_candidate(self, env_dir: str) -> bool:
        key = normalize_identity(env_dir)
        return any(normalize_identity(c) == key for c in self._candidate_dirs())

    def _build_env(self, env_dir: str, executable: str) -> EnvInfo:
        return build_env_info(
            executable,
            classify_virtual_env(env_dir),
            version=version_from_install(env_dir, executable),
            location=env_dir,
            name=os.path.basename(env_dir),
            search_location=self.workspace_root,
            source=(self.name,),
        )

    def _scan(self) -> list[EnvInfo]:
        found: list[EnvInfo] = []
        for env_dir in self._candidate_dirs():
            try:
                if not os.path.isdir(env_dir) or not is_virtual_env(env_dir):
                    continue
                executable = get_interpreter_path_in_dir(env_dir)
                if executable is not None:
                    found.append(self._build_env(env_dir, executable))
            except OSError:
                logger.debug("Skipping unreadable environment %s", env_dir, exc_info=True)
        return found

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        if not any(kind_allowed(query, kind) for kind in (EnvKind.VENV, EnvKind.VIRTUALENV)):
            return
        if not location_allowed(query, self.workspace_root):
            return
        for env in await asyncio.to_thread(self._scan):
            if kind_allowed(query, env.kind):
                yield env

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        executable = get_executable(env)
        if not is_standard_python_binary(executable):
            return None
        env_dir = _env_dir_of(executable)
        if not await asyncio.to_thread(self._is_candidate, env_dir):
            return None
        if not await asyncio.to_thread(is_virtual_env, env_dir):
            return None
        if not await asyncio.to_thread(check_executable_file, executable):
            return None
        return await asyncio.to_thread(self._build_env, env_dir, executable)
