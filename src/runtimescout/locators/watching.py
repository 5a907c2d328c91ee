"""Base class for locators whose environments live under watched folders.

``FSWatchingLocator`` asks its subclass for ``(root, pattern)`` pairs and,
on first use, registers a filesystem watch for each root that exists. Any
matching change is re-fired as an ``EnvsChangedEvent`` tagged with the
locator's kind and the root. Roots that do not exist make the locator an
empty source: no watch, no records, no error.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from abc import abstractmethod
from collections.abc import AsyncIterator

from runtimescout.common.watcher import WatchFactory, WatchPattern, watch_location_for_pattern
from runtimescout.info.models import EnvInfo, EnvKind
from runtimescout.locator.base import EnvIdentity, Locator
from runtimescout.locator.events import ChangeType, EnvsChangedEvent
from runtimescout.locator.query import LocatorQuery

logger = logging.getLogger(__name__)


def list_subdirectories(root: str) -> list[str]:
    """Absolute paths of the directories directly inside ``root``, sorted.

    Unreadable entries are skipped; a missing root gives an empty list.
    """
    found: list[str] = []
    try:
        with os.scandir(root) as entries:
            for entry in entries:
                try:
                    if entry.is_dir():
                        found.append(entry.path)
                except OSError:
                    logger.debug("Skipping unreadable entry %s", entry.path)
    except FileNotFoundError:
        logger.debug("Root does not exist: %s", root)
    except OSError:
        logger.debug("Cannot list %s", root, exc_info=True)
    return sorted(found)


class FSWatchingLocator(Locator):
    """A locator that relays filesystem changes under its roots.

    Args:
        kind: Kind attached to emitted change events.
        watch_factory: Replacement for ``watch_location_for_pattern``
            (tests pass a fake).
    """

    def __init__(
        self,
        kind: EnvKind,
        *,
        watch_factory: WatchFactory | None = None,
    ) -> None:
        super().__init__()
        self.kind = kind
        self._watch_factory: WatchFactory = watch_factory or watch_location_for_pattern
        self._watch_lock = threading.Lock()
        self._watching = False

    @abstractmethod
    def watch_roots(self) -> list[tuple[str, WatchPattern]]:
        """``(root directory, glob pattern)`` pairs to watch."""

    def start_watching(self) -> None:
        """Register the filesystem watches. Runs once per locator."""
        with self._watch_lock:
            if self._watching or self.disposed:
                return
            self._watching = True
        for root, pattern in self.watch_roots():
            if not os.path.isdir(root):
                logger.debug("%s: not watching missing root %s", self.name, root)
                continue
            try:
                handle = self._watch_factory(
                    root, pattern, lambda change, path, root=root: self._on_fs_change(root, change),
                )
            except Exception:
                logger.warning("%s: cannot watch %s", self.name, root, exc_info=True)
                continue
            self._disposables.push(handle)

    def _on_fs_change(self, root: str, change_type: ChangeType) -> None:
        self._emitter.fire(
            EnvsChangedEvent(kind=self.kind, search_location=root, change_type=change_type)
        )

    def iter_envs(self, query: LocatorQuery | None = None) -> AsyncIterator[EnvInfo]:
        iterator = super().iter_envs(query)
        self.start_watching()
        return iterator

    async def resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        self._check_not_disposed()
        self.start_watching()
        return await self._resolve_env(env)

    async def _subdirectories(self, root: str) -> list[str]:
        return await asyncio.to_thread(list_subdirectories, root)
