"""Shared test helpers for building fake interpreter layouts and locators.

The layout helpers create minimal but realistic directory trees under
``tmp_path``: executables are tiny shell scripts with the execute bit
set. ``StaticLocator`` and ``FakeWatchFactory`` stand in for real
discovery strategies and for the filesystem watch service.
"""

from __future__ import annotations

import asyncio
import os
import stat
from collections.abc import AsyncIterator, Iterable
from pathlib import Path

from runtimescout.exceptions import ProbeError
from runtimescout.info.models import EnvInfo, EnvKind, build_env_info, get_identity
from runtimescout.locator.base import EnvIdentity, Locator
from runtimescout.locator.events import ChangeType
from runtimescout.locator.query import LocatorQuery


def make_executable(path: Path) -> Path:
    """Create ``path`` as an executable file, creating parent folders."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def make_file(path: Path, content: str = "") -> Path:
    """Create a plain, non-executable file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(0o644)
    return path


def create_path_dirs(root: Path) -> list[Path]:
    """Three search-path folders holding python, python3 and readme.txt."""
    first = root / "path1"
    second = root / "path2"
    third = root / "path3"
    make_executable(first / "python")
    make_executable(second / "python3")
    make_file(third / "readme.txt", "not an interpreter\n")
    return [first, second, third]


def create_pyenv_root(root: Path, *names: str) -> Path:
    """A pyenv root with ``versions/<name>/bin/python`` for each name."""
    for name in names:
        make_executable(root / "versions" / name / "bin" / "python")
    return root


def create_venv(env_dir: Path, *, version: str = "3.11.4", virtualenv: bool = False) -> Path:
    """A venv (or virtualenv when ``virtualenv``) folder. Returns the interpreter."""
    lines = ["home = /usr/bin", f"version = {version}", "include-system-site-packages = false"]
    if virtualenv:
        lines.append("virtualenv = 20.24.0")
    make_file(env_dir / "pyvenv.cfg", "\n".join(lines) + "\n")
    make_file(env_dir / "bin" / "activate", "# activate\n")
    return make_executable(env_dir / "bin" / "python")


def create_conda_env(env_dir: Path, version: str = "3.10.12") -> Path:
    """A conda environment folder. Returns the interpreter."""
    make_file(env_dir / "conda-meta" / "history")
    make_file(env_dir / "conda-meta" / f"python-{version}-h955ad1f_0.json", "{}")
    return make_executable(env_dir / "bin" / "python")


async def collect(iterator: AsyncIterator[EnvInfo]) -> list[EnvInfo]:
    return [env async for env in iterator]


def run_collect(iterator: AsyncIterator[EnvInfo]) -> list[EnvInfo]:
    """Drain an environment iterator synchronously."""
    return asyncio.run(collect(iterator))


def executables(envs: Iterable[EnvInfo]) -> set[str]:
    return {env.executable for env in envs}


class StaticLocator(Locator):
    """Locator over a fixed list of records, with knobs for timing tests.

    Args:
        name: Recorded in ``EnvInfo.source`` of every record.
        envs: Executable paths or ready-made records to report.
        delay: Seconds to sleep before each record.
        fail_after: Raise ``RuntimeError`` after this many records.
        resolve_error: Raise ``ProbeError`` from ``resolve_env``.
        resolve_delay: Seconds to sleep in ``resolve_env``.
    """

    def __init__(
        self,
        name: str,
        envs: Iterable[str | EnvInfo] = (),
        *,
        kind: EnvKind = EnvKind.CUSTOM,
        delay: float = 0.0,
        fail_after: int | None = None,
        resolve_error: bool = False,
        resolve_delay: float = 0.0,
    ) -> None:
        super().__init__()
        self._name = name
        self.envs = [
            e if isinstance(e, EnvInfo) else build_env_info(e, kind, source=(name,))
            for e in envs
        ]
        self.delay = delay
        self.fail_after = fail_after
        self.resolve_error = resolve_error
        self.resolve_delay = resolve_delay
        self.dispose_count = 0
        self.closed_iterations = 0
        self.started_iterations = 0
        self.resolve_calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        self.started_iterations += 1
        try:
            for count, env in enumerate(self.envs):
                if self.fail_after is not None and count >= self.fail_after:
                    raise RuntimeError(f"{self._name} broke")
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield env
        finally:
            self.closed_iterations += 1

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        self.resolve_calls += 1
        if self.resolve_delay:
            await asyncio.sleep(self.resolve_delay)
        if self.resolve_error:
            raise ProbeError(f"{self._name} cannot read {env}")
        key = get_identity(env)
        for known in self.envs:
            if known.identity == key:
                return known
        return None

    def dispose(self) -> None:
        self.dispose_count += 1
        super().dispose()


class FakeWatchHandle:
    def __init__(self, root: str, pattern: object, callback) -> None:
        self.root = root
        self.pattern = pattern
        self.callback = callback
        self.disposed = False

    def dispose(self) -> None:
        self.disposed = True


class FakeWatchFactory:
    """Records watch registrations; ``trigger`` simulates a filesystem change."""

    def __init__(self) -> None:
        self.handles: list[FakeWatchHandle] = []

    def __call__(self, root: str, pattern, callback) -> FakeWatchHandle:
        handle = FakeWatchHandle(root, pattern, callback)
        self.handles.append(handle)
        return handle

    @property
    def roots(self) -> list[str]:
        return [h.root for h in self.handles]

    def trigger(
        self,
        root: str | os.PathLike[str],
        change: ChangeType = ChangeType.CREATED,
        path: str = "",
    ) -> None:
        root = os.fspath(root)
        for handle in self.handles:
            if handle.root == root and not handle.disposed:
                handle.callback(change, path or root)
