"""Interpreters found on the ``$PATH`` search path.

The search path is read exactly once, when the locator is built, and is
assumed not to change for the rest of the process. Each directory gets its
own ``DirFilesLocator`` wrapped in a ``FilteredLocator`` that keeps only
standard interpreter names (``python``, ``python3``, ``python3.11``...),
so iteration and resolution agree on what qualifies.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import aclosing

from runtimescout.common.binaries import is_standard_python_binary
from runtimescout.common.platform import get_search_path_entries
from runtimescout.info.models import EnvInfo, EnvKind, normalize_identity
from runtimescout.locator.aggregator import Locators
from runtimescout.locator.base import EnvIdentity, FilteredLocator, Locator
from runtimescout.locator.query import LocatorQuery
from runtimescout.locators.files import DirFilesLocator

logger = logging.getLogger(__name__)


class PathEnvVarLocator(Locator):
    """Locate interpreters in the directories listed in ``$PATH``.

    Never fires ``on_changed``.

    Attributes:
        directories: The de-duplicated search path captured at construction.
    """

    def __init__(
        self,
        search_path: Iterable[str] | None = None,
        *,
        kind: EnvKind = EnvKind.PATH_ENTRY,
        is_interpreter: Callable[[str], bool] = is_standard_python_binary,
    ) -> None:
        super().__init__()
        entries = list(search_path) if search_path is not None else get_search_path_entries()

        seen: set[str] = set()
        directories: list[str] = []
        for entry in entries:
            directory = os.path.normpath(os.path.abspath(entry))
            key = normalize_identity(directory)
            if key in seen:
                continue
            seen.add(key)
            directories.append(directory)
        self.directories: tuple[str, ...] = tuple(directories)

        children: list[Locator] = [
            FilteredLocator(DirFilesLocator(d, kind, name=self.name), is_interpreter)
            for d in self.directories
        ]
        self._locators = Locators(children, name=self.name)
        self._disposables.push(self._locators)
        logger.debug("Search path has %d directories", len(self.directories))

    @property
    def name(self) -> str:
        return "path"

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        async with aclosing(self._locators.iter_envs(query)) as envs:
            async for env in envs:
                yield env

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        return await self._locators.resolve_env(env)
