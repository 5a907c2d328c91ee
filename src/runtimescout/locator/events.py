"""Change notifications and disposable resources.

Locators announce that "something may have changed" through an
``EventEmitter``. Relays (aggregator, engine) subscribe once and re-fire
what they receive; every subscription is a disposable tied to the owner's
``dispose()``.

Listeners may be invoked from a filesystem-watcher thread, so the emitter
guards its listener list with a lock and iterates over a snapshot.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from runtimescout.info.models import EnvKind

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    CREATED = "created"
    DELETED = "deleted"
    CHANGED = "changed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class EnvsChangedEvent:
    """Notification that environments may have changed.

    The fields are hints only. Receivers must not assume the event lists
    every affected environment.

    Attributes:
        kind: Kind of the locator that noticed the change, if known.
        search_location: Root folder the change happened under, if known.
        change_type: What the filesystem reported.
    """

    kind: EnvKind | None = None
    search_location: str = ""
    change_type: ChangeType = ChangeType.UNKNOWN


Listener = Callable[[EnvsChangedEvent], None]


class Disposable(Protocol):
    def dispose(self) -> None: ...


class Subscription:
    """Handle returned by ``EventEmitter.subscribe``."""

    def __init__(self, emitter: EventEmitter, listener: Listener) -> None:
        self._emitter = emitter
        self._listener = listener
        self._disposed = False

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._emitter._remove(self._listener)


class EventEmitter:
    """A minimal synchronous publish/subscribe channel."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Subscription:
        """Register ``listener`` and return a handle that removes it."""
        with self._lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def fire(self, event: EnvsChangedEvent) -> None:
        """Deliver ``event`` to every current listener.

        A failing listener is logged and does not prevent delivery to the
        others.
        """
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.warning("Change listener %r failed", listener, exc_info=True)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _remove(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass


class Disposables:
    """An ordered set of resources released together, exactly once."""

    def __init__(self, items: Iterable[Disposable] = ()) -> None:
        self._items: list[Disposable] = list(items)
        self._lock = threading.Lock()
        self._disposed = False

    def push(self, *items: Disposable) -> None:
        """Track more resources. Adding after disposal releases them at once."""
        with self._lock:
            if not self._disposed:
                self._items.extend(items)
                return
        for item in items:
            item.dispose()

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            items, self._items = self._items, []
        for item in items:
            try:
                item.dispose()
            except Exception:
                logger.warning("Failed to dispose %r", item, exc_info=True)
