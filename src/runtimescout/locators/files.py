"""Directory-scan primitive: every executable directly inside one folder.

``DirFilesLocator`` lists the direct children of a directory and reports
each one that looks executable as a minimal record (path and kind). It
does not check that the file really is a Python interpreter; wrapping
strategies such as the ``$PATH`` locator add that filter, which keeps this
primitive reusable.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator

from runtimescout.common.binaries import check_executable_file, looks_executable
from runtimescout.exceptions import SourceUnavailableError
from runtimescout.info.models import (
    EnvInfo,
    EnvKind,
    build_env_info,
    get_executable,
    normalize_identity,
)
from runtimescout.locator.base import EnvIdentity, Locator
from runtimescout.locator.query import LocatorQuery, kind_allowed, location_allowed

logger = logging.getLogger(__name__)


def list_executables(directory: str) -> list[str]:
    """Executables directly inside ``directory``, in listing order.

    Entries that cannot be inspected are skipped.

    Raises:
        SourceUnavailableError: If the directory is missing or unreadable.
    """
    found: list[str] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if looks_executable(entry.path, entry.stat().st_mode):
                        found.append(entry.path)
                except OSError:
                    logger.debug("Skipping unreadable entry %s", entry.path)
    except OSError as exc:
        raise SourceUnavailableError(f"Cannot list {directory}: {exc}") from exc
    return found


class DirFilesLocator(Locator):
    """Locate executables that are direct children of one directory.

    Attributes:
        directory: Absolute path of the scanned directory.
        kind: Kind given to every record.
        search_location: Recorded on each record; defaults to
            ``directory``.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        kind: EnvKind,
        *,
        search_location: str | os.PathLike[str] | None = None,
        name: str = "files",
    ) -> None:
        super().__init__()
        self.directory = os.path.normpath(os.path.abspath(os.fspath(directory)))
        self.kind = kind
        self.search_location = (
            os.fspath(search_location) if search_location is not None else self.directory
        )
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def _build(self, executable: str) -> EnvInfo:
        return build_env_info(
            executable,
            self.kind,
            location=self.directory,
            search_location=self.search_location,
            source=(self.name,),
        )

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        if not kind_allowed(query, self.kind):
            return
        if not location_allowed(query, self.search_location):
            return
        try:
            executables = await asyncio.to_thread(list_executables, self.directory)
        except SourceUnavailableError as exc:
            logger.debug("%s", exc)
            return
        for executable in executables:
            yield self._build(executable)

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        executable = get_executable(env)
        if normalize_identity(os.path.dirname(executable)) != normalize_identity(self.directory):
            return None
        if not await asyncio.to_thread(check_executable_file, executable):
            return None
        return self._build(executable)
