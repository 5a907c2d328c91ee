"""Composition of many locators into one logical locator.

``Locators`` owns an ordered list of child locators and presents them as a
single ``Locator``:

Iteration (fan-in)
------------------
Each child's async iterator is advanced by its own task. Whenever any
child produces a record it is yielded immediately, and only then is that
child asked for its next one. At most one unconsumed record per child is
buffered, and a slow child never holds back a fast one. Order is preserved
within a child and unspecified across children.

A child whose scan raises is logged and dropped; its siblings continue.
If the consumer stops early, pending tasks are cancelled and every child
iterator is closed so that children release their handles.

Resolution
----------
Children are consulted in registration order and the first non-``None``
answer wins. Each child call may be bounded by ``resolve_timeout``.

Events and lifecycle
--------------------
Every child's ``on_changed`` is relayed unchanged. Disposing the aggregator
disposes each child exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing

from runtimescout.exceptions import DisposedError, ProbeError, QueryError
from runtimescout.info.models import EnvInfo
from runtimescout.locator.base import EnvIdentity, Locator
from runtimescout.locator.query import LocatorQuery

logger = logging.getLogger(__name__)


_EXHAUSTED = object()


async def _next_env(iterator: AsyncIterator[EnvInfo]) -> object:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _EXHAUSTED


class Locators(Locator):
    """Aggregate locator over an ordered set of children.

    Attributes:
        locators: The children in registration order.
        resolve_timeout: Per-child bound in seconds for ``resolve_env``;
            ``None`` disables the bound.
    """

    def __init__(
        self,
        locators: Sequence[Locator],
        *,
        resolve_timeout: float | None = None,
        name: str = "locators",
    ) -> None:
        super().__init__()
        self.locators: tuple[Locator, ...] = tuple(locators)
        self.resolve_timeout = resolve_timeout
        self._name = name
        for locator in self.locators:
            self._disposables.push(locator.on_changed.subscribe(self._emitter.fire))
        self._disposables.push(*self.locators)

    @property
    def name(self) -> str:
        return self._name

    async def _iter_envs(self, query: LocatorQuery | None) -> AsyncIterator[EnvInfo]:
        async with aclosing(self._merge(query)) as merged:
            async for _index, env in merged:
                yield env

    def iter_indexed(
        self, query: LocatorQuery | None = None,
    ) -> AsyncIterator[tuple[int, EnvInfo]]:
        """Like ``iter_envs`` but tag each record with its child's index.

        The index is the child's registration position, used by callers
        that rank sources (lower index is more authoritative).
        """
        self._check_not_disposed()
        if query is not None:
            query.validate()
        return self._merge(query)

    async def _merge(
        self, query: LocatorQuery | None,
    ) -> AsyncIterator[tuple[int, EnvInfo]]:
        iterators: dict[int, AsyncIterator[EnvInfo]] = {}
        for index, locator in enumerate(self.locators):
            try:
                iterators[index] = locator.iter_envs(query)
            except Exception:
                logger.warning("Locator %r failed to start", locator, exc_info=True)

        pending: dict[asyncio.Task[object], int] = {
            asyncio.ensure_future(_next_env(it)): index for index, it in iterators.items()
        }
        try:
            while pending:
                done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                # Deterministic order when several children finish together.
                for task in sorted(done, key=pending.__getitem__):
                    index = pending.pop(task)
                    try:
                        env = task.result()
                    except Exception:
                        logger.warning(
                            "Locator %r failed during iteration",
                            self.locators[index],
                            exc_info=True,
                        )
                        continue
                    if env is _EXHAUSTED:
                        continue
                    pending[asyncio.ensure_future(_next_env(iterators[index]))] = index
                    yield index, env
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            for iterator in iterators.values():
                aclose = getattr(iterator, "aclose", None)
                if aclose is None:
                    continue
                try:
                    await aclose()
                except Exception:
                    logger.debug("Error closing iterator of a child locator", exc_info=True)

    async def _resolve_env(self, env: EnvIdentity) -> EnvInfo | None:
        first_error: ProbeError | None = None
        for locator in self.locators:
            try:
                if self.resolve_timeout is None:
                    resolved = await locator.resolve_env(env)
                else:
                    resolved = await asyncio.wait_for(
                        locator.resolve_env(env), timeout=self.resolve_timeout,
                    )
            except asyncio.TimeoutError:
                logger.warning(
                    "Locator %r timed out after %ss resolving %s",
                    locator, self.resolve_timeout, env,
                )
                continue
            except ProbeError as exc:
                logger.warning("Locator %r failed to resolve %s: %s", locator, env, exc)
                if first_error is None:
                    first_error = exc
                continue
            except (DisposedError, QueryError):
                raise
            except Exception:
                logger.warning(
                    "Locator %r failed to resolve %s", locator, env, exc_info=True,
                )
                continue
            if resolved is not None:
                return resolved
        if first_error is not None:
            raise first_error
        return None
