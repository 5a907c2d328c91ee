"""The uniform contract every environment locator implements.

Defines the ``Locator`` abstract base class. A locator is one discovery
strategy (scan a directory, scan a version manager's tree, ...) exposing
exactly four capabilities:

* ``iter_envs(query)`` - an async generator of ``EnvInfo`` records.
  Calling it twice performs two independent scans. An unreadable entry is
  skipped, never raised.
* ``resolve_env(env)`` - a path or partial record in, a fully populated
  record or ``None`` out. ``None`` means "not mine"; only genuine I/O
  failures raise (``ProbeError``).
* ``on_changed`` - an ``EventEmitter`` firing ``EnvsChangedEvent``.
* ``dispose()`` - release watches and children; idempotent.

Composition happens through ``Locators`` (see ``aggregator``), which
holds children typed as ``Locator`` rather than relying on duck typing.
"""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing

from runtimescout.exceptions import DisposedError
from runtimescout.info.models import EnvInfo, get_executable
from runtimescout.locator.events import Disposables, EventEmitter
from runtimescout.locator.query import LocatorQuery

logger = logging.getLogger(__name__)

EnvIdentity = str | os.PathLike[str] | EnvInfo


class Locator(ABC):
    """Abstract base class for environment locators.

    Subclasses implement ``_iter_envs`` and ``_resolve_env``; the public
    methods add the disposed-state check and validate the query. Resources
    acquired by a subclass are registered with ``self._disposables``.
    """

    def __init__(self) -> None:
        self._emitter = EventEmitter()
        self._disposables = Disposables()
        self._dispose_lock = threading.Lock()
        self._disposed = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier recorded in ``EnvInfo.source`` (e.g. 'pyenv')."""

    @abstractmethod
    def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        """Yield environments. Implemented as an async generator."""

    @abstractmethod
    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        """Resolve one environment, or return ``None`` if not recognized."""

    @property
    def on_changed(self) -> EventEmitter:
        return self._emitter

    @property
    def disposed(self) -> bool:
        return self._disposed

    def iter_envs(self, query: LocatorQuery | None = None) -> AsyncIterator[EnvInfo]:
        """Start a new scan.

        Raises:
            DisposedError: If the locator was disposed.
            QueryError: If ``query`` is malformed.
        """
        self._check_not_disposed()
        if query is not None:
            query.validate()
        return self._iter_envs(query)

    async def resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        """Resolve ``env`` into a full record.

        Raises:
            DisposedError: If the locator was disposed.
            ProbeError: On an I/O failure while reading the environment.
        """
        self._check_not_disposed()
        return await self._resolve_env(env)

    def dispose(self) -> None:
        """Release every resource held by this locator. Safe to repeat."""
        with self._dispose_lock:
            if self._disposed:
                return
            self._disposed = True
        self._disposables.dispose()
        self._emitter.clear()

    def _check_not_disposed(self) -> None:
        if self._disposed:
            raise DisposedError(f"{type(self).__name__} ({self.name}) has been disposed")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class FilteredLocator(Locator):
    """Restrict a locator to executables accepted by a predicate.

    The predicate is applied to both iteration and resolution so the two
    always agree on what qualifies. The wrapped locator is owned and
    disposed with this one.
    """

    def __init__(self, locator: Locator, predicate: Callable[[str], bool]) -> None:
        super().__init__()
        self._locator = locator
        self._predicate = predicate
        self._disposables.push(locator)
        self._disposables.push(locator.on_changed.subscribe(self._emitter.fire))

    @property
    def name(self) -> str:
        return self._locator.name

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        async with aclosing(self._locator.iter_envs(query)) as envs:
            async for env in envs:
                if self._predicate(env.executable):
                    yield env

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        if not self._predicate(get_executable(env)):
            return None
        return await self._locator.resolve_env(env)
