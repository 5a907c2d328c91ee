"""Filesystem watch service backed by ``watchfiles``.

``watch_location_for_pattern`` watches one root directory and calls back
for every change whose path, relative to the root, matches one of its glob
patterns.
Watching happens on a daemon thread so that locators can be constructed
outside of any event loop; the returned handle stops the thread on
``dispose()``.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import threading
from collections.abc import Callable
from typing import Protocol

from watchfiles import Change, watch

from runtimescout.locator.events import ChangeType

logger = logging.getLogger(__name__)

WatchCallback = Callable[[ChangeType, str], None]
WatchPattern = str | tuple[str, ...]

_CHANGE_TYPES: dict[Change, ChangeType] = {
    Change.added: ChangeType.CREATED,
    Change.deleted: ChangeType.DELETED,
    Change.modified: ChangeType.CHANGED,
}

# Milliseconds; watchfiles groups events arriving within this window.
DEFAULT_DEBOUNCE_MS: int = 1600

# Seconds dispose waits for the watcher thread to finish.
_JOIN_TIMEOUT: float = 5.0


class WatchHandle(Protocol):
    def dispose(self) -> None: ...


class WatchFactory(Protocol):
    def __call__(self, root: str, pattern: WatchPattern, callback: WatchCallback) -> WatchHandle: ...


def _matches(root: str, path: str, patterns: tuple[str, ...]) -> bool:
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        return False
    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return False
    rel_parts = rel.replace(os.sep, "/").split("/")
    for pattern in patterns:
        parts = pattern.split("/")
        if len(parts) == len(rel_parts) and all(
            fnmatch.fnmatch(name, part) for name, part in zip(rel_parts, parts)
        ):
            return True
    return False


class FileSystemWatcher:
    """A running watch on one directory. Created by ``watch_location_for_pattern``."""

    def __init__(
        self,
        root: str,
        pattern: WatchPattern,
        callback: WatchCallback,
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ) -> None:
        self.root = root
        self.patterns: tuple[str, ...] = (pattern,) if isinstance(pattern, str) else tuple(pattern)
        self._callback = callback
        self._debounce_ms = debounce_ms
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"watch:{root}", daemon=True,
        )

    def start(self) -> FileSystemWatcher:
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            for changes in watch(
                self.root,
                stop_event=self._stop,
                watch_filter=None,
                debounce=self._debounce_ms,
                recursive=True,
                raise_interrupt=False,
            ):
                for change, path in changes:
                    if self._stop.is_set():
                        return
                    if _matches(self.root, path, self.patterns):
                        self._callback(_CHANGE_TYPES.get(change, ChangeType.UNKNOWN), path)
        except FileNotFoundError:
            logger.debug("Watched root disappeared: %s", self.root)
        except Exception:
            logger.warning("Watching %s stopped unexpectedly", self.root, exc_info=True)

    def dispose(self) -> None:
        self._stop.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=_JOIN_TIMEOUT)


def watch_location_for_pattern(
    root: str,
    pattern: WatchPattern,
    callback: WatchCallback,
) -> FileSystemWatcher:
    """Watch ``root`` for changes to paths matching ``pattern``.

    Args:
        root: Existing directory to watch.
        pattern: Glob relative to ``root`` (e.g. ``"*"`` for direct
            children, ``"*/bin/python"``), or a tuple of globs. A
            change matches only when its full relative path matches;
            changes deeper inside a matched folder are ignored.
        callback: Called on the watcher thread with the change type and
            the absolute path that changed.

    Returns:
        A running watcher; call ``dispose()`` to stop it.
    """
    return FileSystemWatcher(root, pattern, callback).start()
