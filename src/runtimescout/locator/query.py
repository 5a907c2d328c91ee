"""Queries narrowing iteration, and helpers to evaluate them.

A ``LocatorQuery`` is passed through every layer. Low-level locators use
it to prune early where that is cheap (skip a whole directory whose kind
is excluded) and may ignore the rest; the engine applies the full filter
to the merged stream with ``query_matches``.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass

from runtimescout.exceptions import QueryError
from runtimescout.info.models import EnvInfo, EnvKind, normalize_identity


@dataclass(frozen=True)
class LocatorQuery:
    """Optional filter for ``iter_envs``.

    Attributes:
        kinds: Restrict results to these kinds. ``None`` means all kinds.
        search_locations: Restrict results to environments found under
            these absolute directories. ``None`` means no restriction.
    """

    kinds: frozenset[EnvKind] | None = None
    search_locations: tuple[str, ...] | None = None

    def validate(self) -> LocatorQuery:
        """Check the query is well formed and return it.

        Raises:
            QueryError: For kinds that are not ``EnvKind`` members or
                search locations that are not absolute paths.
        """
        if self.kinds is not None:
            for kind in self.kinds:
                if not isinstance(kind, EnvKind):
                    raise QueryError(f"Unknown environment kind: {kind!r}")
        if self.search_locations is not None:
            for location in self.search_locations:
                if not isinstance(location, str) or not os.path.isabs(location):
                    raise QueryError(
                        f"Search locations must be absolute paths, got {location!r}"
                    )
        return self

    @property
    def is_empty(self) -> bool:
        return self.kinds is None and self.search_locations is None


def build_query(
    kinds: Iterable[EnvKind | str] | None = None,
    search_locations: Iterable[str | os.PathLike[str]] | None = None,
) -> LocatorQuery:
    """Translate loose caller input into a validated ``LocatorQuery``.

    Kind names are accepted as strings (``"pyenv"``); search locations are
    made absolute.

    Raises:
        QueryError: For unknown kind names.
    """
    kind_set: frozenset[EnvKind] | None = None
    if kinds is not None:
        parsed: set[EnvKind] = set()
        for kind in kinds:
            try:
                parsed.add(EnvKind(kind))
            except ValueError:
                raise QueryError(f"Unknown environment kind: {kind!r}") from None
        kind_set = frozenset(parsed)

    locations: tuple[str, ...] | None = None
    if search_locations is not None:
        locations = tuple(
            os.path.normpath(os.path.abspath(os.fspath(loc))) for loc in search_locations
        )

    return LocatorQuery(kinds=kind_set, search_locations=locations).validate()


def kind_allowed(query: LocatorQuery | None, kind: EnvKind) -> bool:
    """Whether records of ``kind`` can satisfy ``query``."""
    return query is None or query.kinds is None or kind in query.kinds


def _is_under(path: str, root: str) -> bool:
    path_key = normalize_identity(path)
    root_key = normalize_identity(root)
    return path_key == root_key or path_key.startswith(root_key.rstrip(os.sep) + os.sep)


def location_allowed(query: LocatorQuery | None, location: str) -> bool:
    """Whether a locator rooted at ``location`` can satisfy ``query``.

    A locator whose root contains one of the requested search locations
    can also contribute, so containment is checked in both directions.
    """
    if query is None or query.search_locations is None:
        return True
    if not location:
        return False
    return any(
        _is_under(location, root) or _is_under(root, location)
        for root in query.search_locations
    )


def query_matches(query: LocatorQuery | None, env: EnvInfo) -> bool:
    """Full evaluation of ``query`` against one record."""
    if query is None:
        return True
    if not kind_allowed(query, env.kind):
        return False
    if query.search_locations is not None:
        anchors = [a for a in (env.search_location, env.location) if a]
        return any(
            _is_under(anchor, root)
            for anchor in anchors
            for root in query.search_locations
        )
    return True


async def filter_envs(
    iterator: AsyncIterator[EnvInfo],
    query: LocatorQuery | None,
) -> AsyncIterator[EnvInfo]:
    """Yield only the records of ``iterator`` that match ``query``."""
    async for env in iterator:
        if query_matches(query, env):
            yield env


async def get_envs(iterator: AsyncIterator[EnvInfo]) -> list[EnvInfo]:
    """Drain an environment iterator into a list."""
    return [env async for env in iterator]
