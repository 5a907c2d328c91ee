"""The locator contract and its composition primitives.

Public API::

    from runtimescout.locator import Locators, build_query, get_envs

    locators = Locators([first, second], resolve_timeout=10)
    query = build_query(kinds=["pyenv"])
    envs = await get_envs(locators.iter_envs(query))
"""

from __future__ import annotations

from runtimescout.locator.aggregator import Locators
from runtimescout.locator.base import EnvIdentity, FilteredLocator, Locator
from runtimescout.locator.events import (
    ChangeType,
    Disposables,
    EnvsChangedEvent,
    EventEmitter,
    Subscription,
)
from runtimescout.locator.query import (
    LocatorQuery,
    build_query,
    filter_envs,
    get_envs,
    kind_allowed,
    location_allowed,
    query_matches,
)

__all__ = [
    "ChangeType",
    "Disposables",
    "EnvIdentity",
    "EnvsChangedEvent",
    "EventEmitter",
    "FilteredLocator",
    "Locator",
    "LocatorQuery",
    "Locators",
    "Subscription",
    "build_query",
    "filter_envs",
    "get_envs",
    "kind_allowed",
    "location_allowed",
    "query_matches",
]
