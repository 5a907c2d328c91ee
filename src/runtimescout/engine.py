"""The public facade: one deduplicated, cached view over all locators.

``EnvironmentsEngine`` sits on top of a ``Locators`` aggregator and adds
what callers of a discovery service expect:

* Deduplication by identity. Several locators may report the same
  interpreter (``/usr/bin/python3`` is both on ``$PATH`` and a system
  install). ``iter_envs`` yields each identity once, the first time it is
  seen; later reports are merged into the stored record. On conflicting
  fields the locator registered first wins, regardless of arrival order.
* A snapshot cache. A completed unfiltered scan is kept and serves later
  queries until any locator reports a change.
* Optional enrichment of resolved records by running the interpreter.

Change events may arrive on a watcher thread while a scan is running on
the event loop. A generation counter bumped by every event makes sure a
scan that overlapped with a change is never cached.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import AsyncIterator
from contextlib import aclosing
from enum import Enum

from runtimescout.common.interpreter import InterpreterProbe
from runtimescout.exceptions import DisposedError, ProbeError
from runtimescout.info.models import Architecture, EnvInfo, merge_env_infos
from runtimescout.locator.aggregator import Locators
from runtimescout.locator.base import EnvIdentity
from runtimescout.locator.events import EnvsChangedEvent, EventEmitter
from runtimescout.locator.query import LocatorQuery, query_matches

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    DISPOSED = "disposed"


class EnvironmentsEngine:
    """Deduplicating, caching front end for a ``Locators`` aggregator.

    The engine owns the aggregator: disposing the engine disposes it.

    Args:
        locators: The composed discovery strategies.
        cache_enabled: Keep the result of a complete unfiltered scan.
        interpreter_probe: When set, ``resolve_env`` runs the interpreter
            to complete a partial version or unknown architecture.
    """

    def __init__(
        self,
        locators: Locators,
        *,
        cache_enabled: bool = True,
        interpreter_probe: InterpreterProbe | None = None,
    ) -> None:
        self._locators = locators
        self.cache_enabled = cache_enabled
        self._probe = interpreter_probe
        self._emitter = EventEmitter()
        self._lock = threading.Lock()
        self._generation = 0
        self._active_scans = 0
        self._cache: list[EnvInfo] | None = None
        self._disposed = False
        self._subscription = locators.on_changed.subscribe(self._on_locators_changed)

    @property
    def locators(self) -> Locators:
        return self._locators

    @property
    def on_changed(self) -> EventEmitter:
        """Fires after the cache has been invalidated by a change."""
        return self._emitter

    @property
    def state(self) -> EngineState:
        with self._lock:
            if self._disposed:
                return EngineState.DISPOSED
            return EngineState.SCANNING if self._active_scans else EngineState.IDLE

    @property
    def has_snapshot(self) -> bool:
        with self._lock:
            return self._cache is not None

    def _on_locators_changed(self, event: EnvsChangedEvent) -> None:
        with self._lock:
            self._generation += 1
            self._cache = None
        logger.debug("Environments changed (%s); cache invalidated", event)
        self._emitter.fire(event)

    def _check_not_disposed(self) -> None:
        if self._disposed:
            raise DisposedError("EnvironmentsEngine has been disposed")

    def iter_envs(self, query: LocatorQuery | None = None) -> AsyncIterator[EnvInfo]:
        """Yield every known environment matching ``query`` once.

        Raises:
            DisposedError: If the engine was disposed.
            QueryError: If ``query`` is malformed.
        """
        self._check_not_disposed()
        if query is not None:
            query.validate()
        return self._iter_envs(query, {})

    async def get_envs(self, query: LocatorQuery | None = None) -> list[EnvInfo]:
        """Run a complete scan and return the merged records.

        Unlike ``iter_envs``, which yields each record as first seen, the
        list holds every record after all reports of it were merged, in
        first-seen order.

        Raises:
            DisposedError: If the engine was disposed.
            QueryError: If ``query`` is malformed.
        """
        self._check_not_disposed()
        if query is not None:
            query.validate()
        merged: dict[str, EnvInfo] = {}
        async with aclosing(self._iter_envs(query, merged)) as envs:
            async for _env in envs:
                pass
        return [env for env in merged.values() if query_matches(query, env)]

    async def _iter_envs(
        self,
        query: LocatorQuery | None,
        merged: dict[str, EnvInfo],
    ) -> AsyncIterator[EnvInfo]:
        with self._lock:
            snapshot = self._cache
        if snapshot is not None:
            logger.debug("Serving %d environments from the snapshot", len(snapshot))
            for env in snapshot:
                merged[env.identity] = env
                if query_matches(query, env):
                    yield env
            return

        unfiltered = query is None or query.is_empty
        with self._lock:
            generation = self._generation
            self._active_scans += 1
        ranks: dict[str, int] = {}
        completed = False
        try:
            async with aclosing(
                self._locators.iter_indexed(None if unfiltered else query)
            ) as stream:
                async for index, env in stream:
                    key = env.identity
                    known = merged.get(key)
                    if known is None:
                        merged[key] = env
                        ranks[key] = index
                        if query_matches(query, env):
                            yield env
                    elif index < ranks[key]:
                        merged[key] = merge_env_infos(env, known)
                        ranks[key] = index
                    else:
                        merged[key] = merge_env_infos(known, env)
            completed = True
        finally:
            with self._lock:
                self._active_scans -= 1
                if (
                    completed
                    and unfiltered
                    and self.cache_enabled
                    and not self._disposed
                    and generation == self._generation
                ):
                    self._cache = list(merged.values())
                    logger.debug("Cached snapshot of %d environments", len(self._cache))

    async def resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        """Resolve a path or partial record into a complete record.

        Returns:
            The resolved record, or ``None`` when no locator recognizes it.

        Raises:
            DisposedError: If the engine was disposed.
            ProbeError: If no locator resolved ``env`` and one of them
                failed with an I/O error.
        """
        self._check_not_disposed()
        resolved = await self._locators.resolve_env(env)
        if resolved is None:
            return None
        if self._probe is not None and (
            not resolved.version.is_complete or resolved.arch == Architecture.UNKNOWN
        ):
            resolved = await self._enrich(self._probe, resolved)
        return resolved

    async def _enrich(self, probe: InterpreterProbe, env: EnvInfo) -> EnvInfo:
        try:
            info = await probe.probe(env.executable)
        except ProbeError as exc:
            logger.warning("Could not probe %s: %s", env.executable, exc)
            return env
        changes: dict[str, object] = {}
        if not env.version.is_complete:
            changes["version"] = info.version
        if env.arch == Architecture.UNKNOWN:
            changes["arch"] = info.arch
        return dataclasses.replace(env, **changes)

    def invalidate(self) -> None:
        """Drop the snapshot so the next query rescans.

        Raises:
            DisposedError: If the engine was disposed.
        """
        self._check_not_disposed()
        with self._lock:
            self._generation += 1
            self._cache = None

    def dispose(self) -> None:
        """Release every locator. Safe to repeat."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._cache = None
        self._subscription.dispose()
        self._locators.dispose()
        self._emitter.clear()
