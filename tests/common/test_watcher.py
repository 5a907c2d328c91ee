"""Tests for the watchfiles-backed filesystem watch service."""

from __future__ import annotations

import threading
from pathlib import Path

from runtimescout.common.watcher import FileSystemWatcher, _matches, watch_location_for_pattern
from runtimescout.locator.events import ChangeType


class TestPatternMatching:
    def test_direct_child(self, tmp_path: Path) -> None:
        assert _matches(str(tmp_path), str(tmp_path / "3.9.0"), ("*",))

    def test_deeper_change_ignored(self, tmp_path: Path) -> None:
        assert not _matches(str(tmp_path), str(tmp_path / "3.9.0" / "lib" / "x.py"), ("*",))

    def test_nested_pattern(self, tmp_path: Path) -> None:
        assert _matches(str(tmp_path), str(tmp_path / "env" / "bin" / "python"), ("*/bin/python",))

    def test_any_of_several_patterns(self, tmp_path: Path) -> None:
        patterns = (".venv", ".direnv/*")
        assert _matches(str(tmp_path), str(tmp_path / ".direnv" / "python-3.11"), patterns)
        assert not _matches(str(tmp_path), str(tmp_path / "src"), patterns)

    def test_outside_root(self, tmp_path: Path) -> None:
        assert not _matches(str(tmp_path / "a"), str(tmp_path / "b"), ("*",))

    def test_child_name_starting_with_dots(self, tmp_path: Path) -> None:
        assert _matches(str(tmp_path), str(tmp_path / "..venv-old"), ("*",))

    def test_parent_of_root(self, tmp_path: Path) -> None:
        assert not _matches(str(tmp_path / "a"), str(tmp_path), ("*",))


class TestFileSystemWatcher:
    def test_single_pattern_normalized(self, tmp_path: Path) -> None:
        watcher = FileSystemWatcher(str(tmp_path), "*", lambda change, path: None)
        assert watcher.patterns == ("*",)

    def test_reports_created_folder(self, tmp_path: Path) -> None:
        seen: list[tuple[ChangeType, str]] = []
        arrived = threading.Event()

        def callback(change: ChangeType, path: str) -> None:
            seen.append((change, path))
            arrived.set()

        watcher = watch_location_for_pattern(str(tmp_path), "*", callback)
        try:
            # Give the watcher thread time to register before changing anything.
            threading.Event().wait(0.5)
            (tmp_path / "3.12.0").mkdir()
            assert arrived.wait(timeout=10)
        finally:
            watcher.dispose()
        assert (ChangeType.CREATED, str(tmp_path / "3.12.0")) in seen

    def test_dispose_stops_thread(self, tmp_path: Path) -> None:
        watcher = watch_location_for_pattern(str(tmp_path), "*", lambda change, path: None)
        threading.Event().wait(0.2)
        watcher.dispose()
        assert not watcher._thread.is_alive()

    def test_dispose_before_start(self, tmp_path: Path) -> None:
        watcher = FileSystemWatcher(str(tmp_path), "*", lambda change, path: None)
        watcher.dispose()
        assert not watcher._thread.is_alive()
